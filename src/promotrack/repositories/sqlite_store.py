"""SQLite implementation of the record store."""

import json
import sqlite3
import uuid
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from .interfaces import COLLECTIONS, JSON_COLUMNS, Record, RecordStore
from ..database.connection import DatabaseConnection
from ..services.base_service import BaseService
from ..services.errors import CollectionUnavailableError, StoreError
from ..utils.date_range_utils import DateRangeUtils
from ..utils.query_builders import FilterQueryBuilder, check_identifier

logger = logging.getLogger(__name__)


class SQLiteRecordStore(RecordStore, BaseService):
    """Record store backed by a local SQLite database."""

    def __init__(self, db_connection: DatabaseConnection):
        BaseService.__init__(self, db_connection)

    # ------------------------------------------------------------------ reads

    def select(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        table = self._table(collection)
        where, params = self._where(filters)
        limit_sql, limit_params = FilterQueryBuilder.build_limit(limit)
        query = f"SELECT * FROM {table}{where}{FilterQueryBuilder.build_order(order)}{limit_sql}"

        with self._store_errors(collection):
            with self.safe_connection() as conn:
                cursor = conn.execute(query, params + limit_params)
                return [self._row_to_record(row) for row in cursor.fetchall()]

    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        table = self._table(collection)
        where, params = self._where(filters)

        with self._store_errors(collection):
            with self.safe_connection() as conn:
                cursor = conn.execute(f"SELECT COUNT(*) FROM {table}{where}", params)
                return cursor.fetchone()[0]

    # ----------------------------------------------------------------- writes

    def insert(self, collection: str, records: Union[Record, List[Record]]) -> List[Record]:
        table = self._table(collection)
        batch = [records] if isinstance(records, dict) else list(records)
        if not batch:
            return []

        stored: List[Record] = []
        with self._store_errors(collection):
            with self.safe_transaction() as conn:
                for record in batch:
                    row = self._prepare_record(record)
                    columns = [check_identifier(c) for c in row.keys()]
                    placeholders = ", ".join("?" for _ in columns)
                    conn.execute(
                        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
                        [self._encode(c, row[c]) for c in columns],
                    )
                    cursor = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row["id"],))
                    stored.append(self._row_to_record(cursor.fetchone()))

        logger.debug(f"Inserted {len(stored)} record(s) into {table}")
        return stored

    def update(self, collection: str, patch: Record, filters: Dict[str, Any]) -> int:
        table = self._table(collection)
        if not patch:
            return 0
        if not filters:
            raise StoreError(f"Refusing unfiltered update on {table}")

        columns = [check_identifier(c) for c in patch.keys()]
        set_clause = ", ".join(f"{c} = ?" for c in columns)
        values = [self._encode(c, patch[c]) for c in columns]
        where, params = self._where(filters)

        with self._store_errors(collection):
            with self.safe_transaction() as conn:
                cursor = conn.execute(f"UPDATE {table} SET {set_clause}{where}", values + params)
                updated = cursor.rowcount

        logger.debug(f"Updated {updated} record(s) in {table}")
        return updated

    def delete(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        table = self._table(collection)
        where, params = self._where(filters)

        with self._store_errors(collection):
            with self.safe_transaction() as conn:
                cursor = conn.execute(f"DELETE FROM {table}{where}", params)
                deleted = cursor.rowcount

        logger.debug(f"Deleted {deleted} record(s) from {table}")
        return deleted

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._store_errors("transaction"):
            with self.safe_transaction():
                yield

    def supports_transactions(self) -> bool:
        return True

    # ---------------------------------------------------------------- helpers

    @staticmethod
    def _table(collection: str) -> str:
        if collection not in COLLECTIONS:
            raise CollectionUnavailableError(collection)
        return check_identifier(collection)

    def _where(self, filters: Optional[Dict[str, Any]]):
        where, params = FilterQueryBuilder.build_where(filters)
        return where, [self._encode("", p) for p in params]

    @contextmanager
    def _store_errors(self, collection: str) -> Iterator[None]:
        """Translate sqlite3 failures into the store error taxonomy."""
        try:
            yield
        except sqlite3.OperationalError as e:
            if "no such table" in str(e):
                raise CollectionUnavailableError(collection) from e
            raise StoreError(f"{collection}: {e}") from e
        except sqlite3.Error as e:
            raise StoreError(f"{collection}: {e}") from e

    @staticmethod
    def _prepare_record(record: Record) -> Record:
        row = dict(record)
        if not row.get("id"):
            row["id"] = str(uuid.uuid4())
        if "created_at" not in row:
            row["created_at"] = DateRangeUtils.to_iso(DateRangeUtils.utc_now())
        return row

    @staticmethod
    def _encode(column: str, value: Any) -> Any:
        if column in JSON_COLUMNS and value is not None:
            return json.dumps(value, default=str)
        if isinstance(value, bool):
            return int(value)
        if hasattr(value, "isoformat"):
            return DateRangeUtils.to_iso(value)
        return value

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> Record:
        record = dict(row)
        for column in JSON_COLUMNS & record.keys():
            raw = record[column]
            if isinstance(raw, str):
                try:
                    record[column] = json.loads(raw)
                except ValueError:
                    logger.warning(f"Could not decode JSON column '{column}': {raw!r}")
        return record
