"""Environment-driven configuration for the app."""

import os

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


class Config:
    """Settings read from the environment (or a local .env file)."""

    DIAMOND_DB_PATH = os.environ.get('DIAMOND_DB_PATH') or os.path.join(
        BASE_DIR, 'data', 'diamond.db')
    PORT = int(os.environ.get('PORT', 3001))
    STATIC_FOLDER = os.environ.get('STATIC_FOLDER') or os.path.join(
        BASE_DIR, 'public')
    CORS_ORIGIN = os.environ.get('CORS_ORIGIN', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
