"""Abstract record store interface consumed by the core services."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from ..services.errors import RecordNotFoundError

Record = Dict[str, Any]

COLLECTIONS = (
    "accounts",
    "account_territories",
    "reps",
    "rep_territories",
    "promos",
    "account_promos",
    "transactions",
    "quarters",
    "account_notes",
    "activity_log",
    "archived_account_promos",
    "archived_transactions",
    "notification_log",
)

# Columns holding structured values; stores serialize these as JSON.
JSON_COLUMNS = frozenset({"details"})


class RecordStore(ABC):
    """
    Generic filter/insert/update/delete facade over the backing store.

    Filters use the vocabulary documented in ``utils.query_builders``.
    Every call is atomic on its own; ``transaction()`` groups calls only
    where the backend supports it.
    """

    @abstractmethod
    def select(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        """Return zero or more matching records."""
        pass

    def select_one(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Sequence[str]] = None,
    ) -> Record:
        """Return the first matching record; raise RecordNotFoundError when none match."""
        rows = self.select(collection, filters, order, limit=1)
        if not rows:
            raise RecordNotFoundError(collection, filters)
        return rows[0]

    def find_one(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Sequence[str]] = None,
    ) -> Optional[Record]:
        """Optional variant of ``select_one``: returns None when nothing matches."""
        rows = self.select(collection, filters, order, limit=1)
        return rows[0] if rows else None

    @abstractmethod
    def insert(self, collection: str, records: Union[Record, List[Record]]) -> List[Record]:
        """Insert one or many records and return them as stored."""
        pass

    @abstractmethod
    def update(self, collection: str, patch: Record, filters: Dict[str, Any]) -> int:
        """Apply ``patch`` to every matching record; return the number updated."""
        pass

    @abstractmethod
    def delete(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        """Delete matching records (all records when filters is empty); return the count."""
        pass

    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count matching records."""
        return len(self.select(collection, filters))

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group calls into one unit of work where supported; default is a no-op."""
        yield

    def supports_transactions(self) -> bool:
        return False
