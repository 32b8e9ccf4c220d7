"""Main Flask WSGI application hosting the diamond brokerage records API."""

import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from config import Config
from views import create_app

logging.basicConfig(
    stream=sys.stdout,
    level=Config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

try:
    app, _ = create_app(testing=False)
except SQLAlchemyError as err:
    # nothing to recover from: the database file is unreadable
    logger.critical('Database error: %s', err)
    sys.exit(1)

if __name__ == '__main__':
    logger.info('Diamond Intel running on port %d', Config.PORT)
    app.run(port=Config.PORT)
