"""Database connection and transaction management for the local record store."""
import sqlite3
from contextlib import contextmanager
from pathlib import Path
import logging

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Manages SQLite connections with proper transaction handling and pragmas."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._is_configured = False

    def connect(self) -> sqlite3.Connection:
        """Get database connection with SQLite settings applied."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row  # Enable dict-like access

        self._apply_sqlite_settings(conn)
        return conn

    def _apply_sqlite_settings(self, conn: sqlite3.Connection):
        """Apply SQLite settings to connection."""
        try:
            # WAL only needs to be set once per database file
            if not self._is_configured:
                conn.execute("PRAGMA journal_mode=WAL")
                self._is_configured = True

            conn.execute("PRAGMA busy_timeout=30000")
            conn.execute("PRAGMA foreign_keys=ON")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA temp_store=MEMORY")

        except sqlite3.Error as e:
            logger.warning(f"Failed to apply SQLite settings: {e}")

    @contextmanager
    def connection(self):
        """Context manager for simple connection (no transaction)."""
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()
