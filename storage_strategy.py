"""Storage-related functionality for the app."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
import logging
import os
import threading

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text

from schema import TABLES

logger = logging.getLogger(__name__)


class StorageStrategy(ABC):
    """
    Abstract base for storage behavior.

    All access is serialized behind one re-entrant lock. Statements executed
    outside of a transaction are committed (and so persisted) immediately.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._in_transaction = False

    def start_transaction(self):
        """Begin a transaction, holding the store lock until it ends."""

        self._lock.acquire()
        self._in_transaction = True

    def end_transaction(self):
        """Commit/end a transaction."""

        try:
            self._commit()
        except Exception:
            self._rollback()
            raise
        finally:
            self._in_transaction = False
            self._lock.release()

    def rollback_transaction(self):
        """Discard everything done since start_transaction()."""

        try:
            self._rollback()
        finally:
            self._in_transaction = False
            self._lock.release()

    @contextmanager
    def transaction(self):
        """Run the enclosed statements atomically (rollback on any error)."""

        self.start_transaction()
        try:
            yield self
        except BaseException:
            self.rollback_transaction()
            raise
        self.end_transaction()

    def execute(self, sql: str, params: dict | None = None) -> int | None:
        """
        Run a mutating statement and persist it.

        Returns:
            The new row id for an INSERT, otherwise None.
        """

        with self._lock:
            try:
                row_id = self._execute(sql, params or {})
                if not self._in_transaction:
                    self._commit()
            except Exception:
                if not self._in_transaction:
                    self._rollback()
                raise
        if sql.lstrip().upper().startswith('INSERT'):
            return row_id
        return None

    def fetch_one(self, sql: str, params: dict | None = None) -> dict | None:
        """Get the first matching row (or None)."""

        rows = self.fetch_all(sql, params)
        return rows[0] if rows else None

    def fetch_all(self, sql: str, params: dict | None = None) -> list[dict]:
        """Get every matching row, in query order."""

        with self._lock:
            try:
                return self._query(sql, params or {})
            except Exception:
                if not self._in_transaction:
                    self._rollback()
                raise

    def create_schema(self):
        """Create any missing tables."""

        with self.transaction():
            for ddl in TABLES:
                self.execute(ddl)
        logger.info('Database initialized')

    @abstractmethod
    def _execute(self, sql: str, params: dict) -> int | None:
        """Subclass must override to run a statement and return lastrowid."""

        raise NotImplementedError()

    @abstractmethod
    def _query(self, sql: str, params: dict) -> list[dict]:
        """Subclass must override to run a query and return its rows."""

        raise NotImplementedError()

    @abstractmethod
    def _commit(self):
        """Subclass must override to make pending writes durable."""

        raise NotImplementedError()

    @abstractmethod
    def _rollback(self):
        """Subclass must override to discard pending writes."""

        raise NotImplementedError()


class DatabaseStorageStrategy(StorageStrategy):
    """Storage strategy backed by SQLite through Flask-SQLAlchemy."""

    def __init__(self, app: Flask, database_uri: str):
        super().__init__()
        app.config['SQLALCHEMY_DATABASE_URI'] = database_uri
        app.config.setdefault('SQLALCHEMY_TRACK_MODIFICATIONS', False)

        self.db = SQLAlchemy(app)
        with app.app_context():
            self.create_schema()

    def _execute(self, sql, params):
        result = self.db.session.execute(text(sql), params)
        return result.lastrowid

    def _query(self, sql, params):
        result = self.db.session.execute(text(sql), params)
        return [dict(row) for row in result.mappings()]

    def _commit(self):
        self.db.session.commit()

    def _rollback(self):
        self.db.session.rollback()


class FileStorageStrategy(DatabaseStorageStrategy):
    """Storage strategy persisting to a single database file."""

    def __init__(self, app: Flask, path: str):
        path = os.path.abspath(path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        if os.path.exists(path):
            logger.info('Loaded existing database %s', path)
        else:
            logger.info('Created new database %s', path)
        self.path = path
        super().__init__(app, 'sqlite:///' + path)


class InMemoryStorageStrategy(DatabaseStorageStrategy):
    """Storage strategy that keeps everything in memory (lost on exit)."""

    def __init__(self, app: Flask):
        super().__init__(app, 'sqlite://')


def get_storage_strategy(app: Flask,
                         database_path: str | None) -> StorageStrategy:
    """
    Factory function to get a storage strategy for the current environment.

    Args:
        app (Flask): the Flask app to bind the database to
        database_path (str|None): the database file (None if unit testing)

    Returns:
        The new storage strategy instance, with its schema in place.
    """

    if not database_path:
        return UnitTestingStorageStrategy(app)

    return FileStorageStrategy(app, database_path)


UnitTestingStorageStrategy = InMemoryStorageStrategy
