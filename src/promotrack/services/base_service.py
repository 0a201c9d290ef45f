#!/usr/bin/env python3
"""
Base service class with consistent transaction management patterns.
Prevents nested transactions by re-using the open connection.
"""

import sqlite3
import threading
import logging
from contextlib import contextmanager
from typing import Optional

from ..database.connection import DatabaseConnection

logger = logging.getLogger(__name__)


class BaseService:
    """
    Base class providing consistent SQLite transaction management.

    Usage:
        ```python
        class MyStore(BaseService):
            def do_work(self):
                with self.safe_transaction() as conn:
                    conn.execute("INSERT INTO table VALUES (?)", (value,))
        ```

    Nested ``safe_transaction()`` blocks share one connection and commit once,
    when the outermost block exits.
    """

    def __init__(self, db_connection: DatabaseConnection):
        """
        Initialize base service with database connection.

        Args:
            db_connection: DatabaseConnection instance for database operations
        """
        self.db = db_connection
        # Transaction state is per thread so one store can serve concurrent requests.
        self._local = threading.local()

    @property
    def _current_connection(self) -> Optional[sqlite3.Connection]:
        return getattr(self._local, "connection", None)

    @_current_connection.setter
    def _current_connection(self, conn: Optional[sqlite3.Connection]) -> None:
        self._local.connection = conn

    @property
    def _in_transaction(self) -> bool:
        return getattr(self._local, "in_transaction", False)

    @_in_transaction.setter
    def _in_transaction(self, value: bool) -> None:
        self._local.in_transaction = value

    @property
    def _transaction_depth(self) -> int:
        return getattr(self._local, "depth", 0)

    @_transaction_depth.setter
    def _transaction_depth(self, value: int) -> None:
        self._local.depth = value

    @property
    def in_transaction(self) -> bool:
        """True while inside an active transaction."""
        return self._in_transaction and self._current_connection is not None

    @contextmanager
    def safe_transaction(self):
        """
        Context manager for safe transaction handling.

        Yields:
            sqlite3.Connection: Database connection within transaction
        """
        if self._current_connection is not None and self._in_transaction:
            logger.debug("Already in transaction, reusing existing connection")
            self._transaction_depth += 1
            try:
                yield self._current_connection
            finally:
                self._transaction_depth -= 1
            return

        conn = self.db.connect()
        self._current_connection = conn
        self._transaction_depth = 1

        transaction_id = f"txn_{id(conn)}"
        logger.debug(f"Starting transaction {transaction_id}")

        try:
            conn.execute("BEGIN IMMEDIATE")
            self._in_transaction = True
            yield conn
            conn.execute("COMMIT")
            logger.debug(f"Transaction {transaction_id} committed successfully")

        except Exception as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.error(f"Transaction {transaction_id} rolled back due to error: {e}")
            raise

        finally:
            self._transaction_depth = 0
            self._current_connection = None
            self._in_transaction = False
            conn.close()

    @contextmanager
    def safe_connection(self):
        """
        Context manager for a connection without transaction overhead.

        Re-uses the transaction connection when one is open so reads see
        uncommitted writes of the same unit of work.
        """
        if self._current_connection is not None:
            yield self._current_connection
            return

        conn = self.db.connect()
        try:
            yield conn
        finally:
            conn.close()
