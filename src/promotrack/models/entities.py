"""
Pure data models (entities) for the promo tracking tool.
No business logic - just data structures and record conversion.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, FrozenSet, Iterable, Optional

from ..utils.date_range_utils import DateRangeUtils


def parse_territories(value: Any) -> FrozenSet[str]:
    """
    Normalise a territory value into a set.

    Accepts the legacy comma-joined string form as well as any iterable of names.
    Blank entries are dropped and names are stripped.
    """
    if value is None:
        return frozenset()
    if isinstance(value, str):
        parts: Iterable[str] = value.split(",")
    else:
        parts = value
    return frozenset(p.strip() for p in parts if p and str(p).strip())


def format_territories(territories: Iterable[str]) -> str:
    """Join territories into the legacy display form (sorted, comma separated)."""
    return ", ".join(sorted(territories))


@dataclass(frozen=True)
class Actor:
    """The rep performing an operation; used for attribution only."""
    id: Optional[str]
    name: str = "Unknown"
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or "Unknown"


@dataclass
class SideEffectResult:
    """Outcome of a best-effort side effect (activity log, notification, fallback write)."""
    ok: bool
    error: Optional[str] = None
    record: Optional[Dict[str, Any]] = None


@dataclass
class Account:
    """A customer/location that can be enrolled in a promo."""
    account_name: str
    id: Optional[str] = None
    account_number: Optional[str] = None
    territories: FrozenSet[str] = field(default_factory=frozenset)
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any], territories: Optional[Iterable[str]] = None) -> "Account":
        if territories is None:
            territories = parse_territories(record.get("territory"))
        return cls(
            id=record.get("id"),
            account_name=record.get("account_name") or "",
            account_number=record.get("account_number"),
            territories=frozenset(territories),
            notes=record.get("notes"),
            created_at=DateRangeUtils.parse_datetime(record.get("created_at")),
        )


@dataclass
class Rep:
    """A sales representative."""
    name: str
    id: Optional[str] = None
    email: Optional[str] = None
    is_admin: bool = False
    territories: FrozenSet[str] = field(default_factory=frozenset)
    notify_territory_alerts: bool = False
    notify_weekly_summary: bool = False

    @classmethod
    def from_record(cls, record: Dict[str, Any], territories: Optional[Iterable[str]] = None) -> "Rep":
        return cls(
            id=record.get("id"),
            name=record.get("name") or "",
            email=record.get("email"),
            is_admin=bool(record.get("is_admin")),
            territories=frozenset(territories or ()),
            notify_territory_alerts=bool(record.get("notify_territory_alerts")),
            notify_weekly_summary=bool(record.get("notify_weekly_summary")),
        )

    def as_actor(self) -> Actor:
        return Actor(id=self.id, name=self.name, email=self.email)


@dataclass
class Promo:
    """A time-boxed sales incentive."""
    promo_name: str
    id: Optional[str] = None
    promo_code: Optional[str] = None
    discount: Optional[float] = None
    terms: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Promo":
        return cls(
            id=record.get("id"),
            promo_name=record.get("promo_name") or "",
            promo_code=record.get("promo_code"),
            discount=record.get("discount"),
            terms=record.get("terms"),
            start_date=DateRangeUtils.parse_date(record.get("start_date")),
            end_date=DateRangeUtils.parse_date(record.get("end_date")),
            is_active=bool(record.get("is_active")),
        )


@dataclass
class Assignment:
    """Binding of one account to one promo with a unit target."""
    account_id: str
    promo_id: str
    target_units: int
    assigned_date: datetime
    terms: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Assignment":
        return cls(
            id=record.get("id"),
            account_id=record["account_id"],
            promo_id=record["promo_id"],
            target_units=int(record.get("target_units") or 0),
            terms=record.get("terms"),
            assigned_date=DateRangeUtils.parse_datetime(record.get("assigned_date")),
        )

    def to_record(self) -> Dict[str, Any]:
        record = {
            "account_id": self.account_id,
            "promo_id": self.promo_id,
            "target_units": self.target_units,
            "terms": self.terms,
            "assigned_date": DateRangeUtils.to_iso(self.assigned_date),
        }
        if self.id is not None:
            record["id"] = self.id
        return record


@dataclass
class Transaction:
    """A logged sale of N units against an account's promo. Immutable once created."""
    account_id: str
    promo_id: str
    units_sold: int
    transaction_date: date
    rep_id: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Transaction":
        return cls(
            id=record.get("id"),
            account_id=record["account_id"],
            promo_id=record["promo_id"],
            rep_id=record.get("rep_id"),
            units_sold=int(record.get("units_sold") or 0),
            transaction_date=DateRangeUtils.parse_date(record.get("transaction_date")),
            notes=record.get("notes"),
            created_at=DateRangeUtils.parse_datetime(record.get("created_at")),
        )

    def to_record(self) -> Dict[str, Any]:
        record = {
            "account_id": self.account_id,
            "promo_id": self.promo_id,
            "rep_id": self.rep_id,
            "units_sold": self.units_sold,
            "transaction_date": DateRangeUtils.to_iso(self.transaction_date),
            "notes": self.notes,
        }
        if self.id is not None:
            record["id"] = self.id
        return record


@dataclass
class Quarter:
    """Fiscal period used as the pace baseline."""
    name: str
    start_date: date
    end_date: date
    is_active: bool = False
    id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Quarter":
        return cls(
            id=record.get("id"),
            name=record.get("name") or "",
            start_date=DateRangeUtils.parse_date(record.get("start_date")),
            end_date=DateRangeUtils.parse_date(record.get("end_date")),
            is_active=bool(record.get("is_active")),
        )


@dataclass
class AccountNote:
    """A free-text note on an account."""
    account_id: str
    note: str
    id: Optional[str] = None
    created_by: Optional[str] = None
    author_name: Optional[str] = None
    created_at: Optional[datetime] = None
    is_legacy: bool = False

    @classmethod
    def from_record(cls, record: Dict[str, Any], author_name: Optional[str] = None) -> "AccountNote":
        return cls(
            id=record.get("id"),
            account_id=record["account_id"],
            note=record.get("note") or "",
            created_by=record.get("created_by"),
            author_name=author_name,
            created_at=DateRangeUtils.parse_datetime(record.get("created_at")),
        )


@dataclass
class ActivityEntry:
    """An append-only activity feed entry."""
    action_type: str
    account_id: Optional[str] = None
    rep_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ActivityEntry":
        return cls(
            id=record.get("id"),
            action_type=record.get("action_type") or "",
            account_id=record.get("account_id"),
            rep_id=record.get("rep_id"),
            details=record.get("details") or {},
            created_at=DateRangeUtils.parse_datetime(record.get("created_at")),
        )
