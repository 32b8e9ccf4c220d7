"""Tests for storage_strategy.py."""

import os
import tempfile
import unittest

from flask import Flask
from sqlalchemy.exc import DatabaseError, IntegrityError

from storage_strategy import (FileStorageStrategy, InMemoryStorageStrategy,
                              UnitTestingStorageStrategy, get_storage_strategy)

INSERT_CONTACT = 'INSERT INTO contacts (name, type) VALUES (:name, :type)'


class StorageStrategyTests(unittest.TestCase):
    """Tests for storage_strategy.py"""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, 'data', 'diamond.db')

    def tearDown(self):
        self.tmp.cleanup()

    def in_memory(self):
        app = Flask('__main__')
        storage = InMemoryStorageStrategy(app)
        context = app.app_context()
        context.push()
        self.addCleanup(context.pop)
        return storage

    def test_get_storage_strategy_test_mode(self):
        res = get_storage_strategy(Flask('__main__'), None)

        self.assertIsInstance(res, UnitTestingStorageStrategy)

    def test_get_storage_strategy_file_mode(self):
        res = get_storage_strategy(Flask('__main__'), self.path)

        self.assertIsInstance(res, FileStorageStrategy)
        self.assertTrue(os.path.exists(self.path))

    def test_schema_created(self):
        storage = self.in_memory()

        rows = storage.fetch_all(
            "SELECT name FROM sqlite_master WHERE type = 'table' "
            "AND name NOT LIKE 'sqlite_%' ORDER BY name")

        self.assertEqual([row['name'] for row in rows],
                         ['contacts', 'deals', 'price_log', 'stones'])

    def test_execute_insert_returns_row_id(self):
        storage = self.in_memory()

        first = storage.execute(INSERT_CONTACT, {'name': 'A', 'type': 'Buyer'})
        second = storage.execute(INSERT_CONTACT, {'name': 'B', 'type': 'Buyer'})

        self.assertEqual(second, first + 1)

    def test_execute_update_returns_none(self):
        storage = self.in_memory()
        storage.execute(INSERT_CONTACT, {'name': 'A', 'type': 'Buyer'})

        res = storage.execute('UPDATE contacts SET name = :name',
                              {'name': 'B'})

        self.assertIsNone(res)

    def test_fetch_one_missing_row(self):
        storage = self.in_memory()

        res = storage.fetch_one('SELECT * FROM contacts WHERE id = :id',
                                {'id': 1})

        self.assertIsNone(res)

    def test_fetch_all_returns_dicts(self):
        storage = self.in_memory()
        storage.execute(INSERT_CONTACT, {'name': 'A', 'type': 'Buyer'})

        rows = storage.fetch_all('SELECT name, type FROM contacts')

        self.assertEqual(rows, [{'name': 'A', 'type': 'Buyer'}])

    def test_parameters_are_bound_not_interpolated(self):
        storage = self.in_memory()
        name = "x'); DROP TABLE contacts; --"

        storage.execute(INSERT_CONTACT, {'name': name, 'type': 'Buyer'})

        rows = storage.fetch_all('SELECT name FROM contacts')
        self.assertEqual(rows, [{'name': name}])

    def test_failed_statement_leaves_store_usable(self):
        storage = self.in_memory()

        with self.assertRaises(IntegrityError):
            storage.execute(INSERT_CONTACT, {'name': None, 'type': 'Buyer'})
        storage.execute(INSERT_CONTACT, {'name': 'A', 'type': 'Buyer'})

        self.assertEqual(len(storage.fetch_all('SELECT * FROM contacts')), 1)

    def test_transaction_rolls_back_on_error(self):
        storage = self.in_memory()

        with self.assertRaises(IntegrityError):
            with storage.transaction():
                storage.execute(INSERT_CONTACT, {'name': 'A', 'type': 'Buyer'})
                storage.execute(INSERT_CONTACT, {'name': 'B', 'type': None})

        self.assertEqual(storage.fetch_all('SELECT * FROM contacts'), [])

    def test_transaction_commits(self):
        storage = self.in_memory()

        with storage.transaction():
            storage.execute(INSERT_CONTACT, {'name': 'A', 'type': 'Buyer'})
            storage.execute(INSERT_CONTACT, {'name': 'B', 'type': 'Buyer'})

        self.assertEqual(len(storage.fetch_all('SELECT * FROM contacts')), 2)

    def test_file_writes_survive_reopen(self):
        app = Flask('__main__')
        storage = FileStorageStrategy(app, self.path)
        with app.app_context():
            storage.execute(INSERT_CONTACT, {'name': 'A', 'type': 'Buyer'})
            storage.db.engine.dispose()

        reopened_app = Flask('__main__')
        reopened = FileStorageStrategy(reopened_app, self.path)
        with reopened_app.app_context():
            rows = reopened.fetch_all('SELECT name FROM contacts')
            reopened.db.engine.dispose()

        self.assertEqual(rows, [{'name': 'A'}])

    def test_corrupt_file_fails(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, 'wb') as f:
            f.write(b'this is not a database' * 200)

        with self.assertRaises(DatabaseError):
            FileStorageStrategy(Flask('__main__'), self.path)


if __name__ == '__main__':
    unittest.main()
