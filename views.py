"""
HTTP routing and behavior for the application,
separated from app.py for testing purposes.
"""

import logging
import os

from flask import Flask, jsonify, request, send_from_directory
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from calculator import CalculationError, calculate_margin
from config import Config
from ledger import Ledger
from storage_strategy import get_storage_strategy, StorageStrategy

logger = logging.getLogger(__name__)


def create_app(testing: bool,
               static_folder: str | None = None
               ) -> tuple[Flask, StorageStrategy]:
    """
    Initiate and get the "global" objects for the Flask app.

    Args:
        testing (bool): keep the database in memory instead of on disk
        static_folder (str|None): where the built frontend lives
            (defaults to Config.STATIC_FOLDER)

    Returns:
        The app and the storage strategy it owns.

    Raises:
        sqlalchemy.exc.SQLAlchemyError if the database file can't be opened.
    """

    app = Flask(__name__, static_folder=None)
    app.config.from_object(Config)
    if static_folder:
        app.config['STATIC_FOLDER'] = static_folder

    storage_strategy: StorageStrategy = get_storage_strategy(
        app, None if testing else app.config['DIAMOND_DB_PATH'])
    ledger = Ledger(storage_strategy)

    def payload() -> dict:
        """The request body, or {} when it is missing or not JSON."""

        return request.get_json(silent=True) or {}

    def not_found(what: str):
        return jsonify({'error': f'{what} not found'}), 404

    @app.after_request
    def allow_cross_origin(response):
        """Let the frontend call the API from another origin."""

        response.headers['Access-Control-Allow-Origin'] = app.config[
            'CORS_ORIGIN']
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
        response.headers[
            'Access-Control-Allow-Methods'] = 'GET, POST, PUT, DELETE, OPTIONS'
        return response

    @app.errorhandler(SQLAlchemyError)
    def store_error(err):
        """Surface the database's own message as a 500."""

        logger.exception('Store error on %s %s', request.method, request.path)
        return jsonify({'error': str(getattr(err, 'orig', None) or err)}), 500

    @app.errorhandler(Exception)
    def unexpected_error(err):
        """Anything else that escapes a view becomes a 500 with its message."""

        if isinstance(err, HTTPException):
            return err
        logger.exception('Unhandled error on %s %s', request.method,
                         request.path)
        return jsonify({'error': str(err)}), 500

    # stones

    @app.route('/api/stones', methods=['GET'])
    def list_stones():
        """
        HTTP GET method to list the inventory.

        Returns:
            All stones, newest first, each with its supplier's name.
        """

        return jsonify(ledger.list_stones())

    @app.route('/api/stones', methods=['POST'])
    def create_stone():
        """
        HTTP POST method to add a stone to inventory.

        Args:
            request.json (dict): fields from Stone (status defaults to
                Available)

        Returns:
            tuple(stone, 201)
        """

        return jsonify(ledger.create_stone(payload())), 201

    @app.route('/api/stones/<int:stone_id>', methods=['PUT'])
    def update_stone(stone_id):
        """
        HTTP PUT method to replace a stone's fields.

        Args:
            stone_id (int): the stone to edit
            request.json (dict): every editable field from Stone

        Returns:
            On success, the updated stone.
            On failure, an appropriate 404 message.
        """

        stone = ledger.update_stone(stone_id, payload())
        if not stone:
            return not_found('Stone')
        return jsonify(stone)

    @app.route('/api/stones/<int:stone_id>', methods=['DELETE'])
    def delete_stone(stone_id):
        """
        HTTP DELETE method for a stone (deals on it are left alone).

        Returns:
            {'message': 'Deleted'}, even if there was no such stone.
        """

        ledger.delete_stone(stone_id)
        return jsonify({'message': 'Deleted'})

    # contacts

    @app.route('/api/contacts', methods=['GET'])
    def list_contacts():
        """
        HTTP GET method to list contacts.

        Returns:
            All contacts ordered by name.
        """

        return jsonify(ledger.list_contacts())

    @app.route('/api/contacts', methods=['POST'])
    def create_contact():
        """
        HTTP POST method to add a contact.

        Args:
            request.json (dict): fields from Contact (name and type required)

        Returns:
            tuple(contact, 201)
        """

        return jsonify(ledger.create_contact(payload())), 201

    @app.route('/api/contacts/<int:contact_id>', methods=['PUT'])
    def update_contact(contact_id):
        """
        HTTP PUT method to replace a contact's fields.

        Args:
            contact_id (int): the contact to edit
            request.json (dict): every editable field from Contact

        Returns:
            On success, the updated contact.
            On failure, an appropriate 404 message.
        """

        contact = ledger.update_contact(contact_id, payload())
        if not contact:
            return not_found('Contact')
        return jsonify(contact)

    @app.route('/api/contacts/<int:contact_id>', methods=['DELETE'])
    def delete_contact(contact_id):
        """
        HTTP DELETE method for a contact.

        Returns:
            {'message': 'Deleted'}, even if there was no such contact.
        """

        ledger.delete_contact(contact_id)
        return jsonify({'message': 'Deleted'})

    # deals

    @app.route('/api/deals', methods=['GET'])
    def list_deals():
        """
        HTTP GET method to list deals.

        Returns:
            All deals, newest first, with stone and buyer details.
        """

        return jsonify(ledger.list_deals())

    @app.route('/api/deals', methods=['POST'])
    def create_deal():
        """
        HTTP POST method to open a deal.

        The deal's stone is marked Reserved.

        Args:
            request.json (dict): stone_id, buyer_id, asking_price,
                offered_price, commission_percent (default 3), notes

        Returns:
            tuple(deal, 201)
        """

        return jsonify(ledger.create_deal(payload())), 201

    @app.route('/api/deals/<int:deal_id>', methods=['PUT'])
    def update_deal(deal_id):
        """
        HTTP PUT method to move a deal along.

        Args:
            deal_id (int): the deal to update
            request.json (dict): status, offered_price, final_price,
                commission, notes

        Returns:
            On success, the updated deal.
            On failure, an appropriate 404 message.
        """

        deal = ledger.update_deal(deal_id, payload())
        if not deal:
            return not_found('Deal')
        return jsonify(deal)

    @app.route('/api/deals/<int:deal_id>', methods=['DELETE'])
    def delete_deal(deal_id):
        """
        HTTP DELETE method for a deal.

        The deal's stone goes back to Available first.

        Returns:
            {'message': 'Deleted'}, even if there was no such deal.
        """

        ledger.delete_deal(deal_id)
        return jsonify({'message': 'Deleted'})

    # prices

    @app.route('/api/prices', methods=['GET'])
    def list_prices():
        """
        HTTP GET method to list the price log.

        Returns:
            Entries by date logged, latest first (newest entry first on ties).
        """

        return jsonify(ledger.list_prices())

    @app.route('/api/prices', methods=['POST'])
    def create_price():
        """
        HTTP POST method to log a market price.

        Args:
            request.json (dict): fields from PriceLogEntry (carat_max
                defaults to carat_min)

        Returns:
            tuple(entry, 201)
        """

        return jsonify(ledger.create_price(payload())), 201

    # read-only summaries

    @app.route('/api/stats', methods=['GET'])
    def stats():
        """
        HTTP GET method for the dashboard summary.

        Returns:
            Inventory, deal and contact counts and totals, plus the five
            newest stones and deals.
        """

        return jsonify(ledger.stats())

    @app.route('/api/calculate', methods=['POST'])
    def calculate():
        """
        HTTP POST method for the margin calculator (nothing is stored).

        Args:
            request.json (dict): cost_price, carat, target_margin and
                optionally commission_percent

        Returns:
            On success, the calculated prices.
            On bad input, a 400 message.
        """

        data = payload()
        try:
            result = calculate_margin(data.get('cost_price'),
                                      data.get('carat'),
                                      data.get('target_margin'),
                                      data.get('commission_percent'))
        except CalculationError as err:
            return jsonify({'error': str(err)}), 400
        return jsonify(result)

    # frontend

    @app.route('/', defaults={'path': ''}, methods=['GET'])
    @app.route('/<path:path>', methods=['GET'])
    def frontend(path):
        """
        Serve the built single-page app.

        Existing files are served as-is, anything else gets index.html so
        the client side router can handle it.
        """

        if path == 'api' or path.startswith('api/'):
            return jsonify({'error': 'Not found'}), 404

        folder = app.config['STATIC_FOLDER']
        if path and os.path.isfile(os.path.join(folder, path)):
            return send_from_directory(folder, path)
        return send_from_directory(folder, 'index.html')

    return app, storage_strategy
