"""Shared pytest fixtures for the test suite."""

from datetime import date, datetime, timezone

import pytest

from promotrack.config.settings import get_settings
from promotrack.database.connection import DatabaseConnection
from promotrack.database.schema import initialize_schema
from promotrack.models.entities import Actor
from promotrack.repositories.sqlite_store import SQLiteRecordStore
from promotrack.services.container import ServiceContainer
from promotrack.services.factory import initialize_services
from promotrack.services.errors import StoreError
from promotrack.services.notification_dispatcher import DispatchResult

MID_Q1 = datetime(2026, 2, 15, tzinfo=timezone.utc)


class RecordingDispatcher:
    """Dispatcher double that records every message instead of sending it."""

    def __init__(self, ok=True):
        self.ok = ok
        self.sent = []

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})
        if self.ok:
            return DispatchResult(ok=True, message_id=f"msg_{len(self.sent)}")
        return DispatchResult(ok=False, error="rejected")


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("DB_PATH", str(tmp_path / "promotrack_test.db"))
    monkeypatch.setenv("STORE_BACKEND", "sqlite")
    monkeypatch.delenv("CRON_SECRET", raising=False)
    monkeypatch.delenv("RESEND_API_KEY", raising=False)
    return get_settings("test")


@pytest.fixture
def db(settings):
    connection = DatabaseConnection(settings.database.db_path)
    initialize_schema(connection)
    return connection


@pytest.fixture
def store(db):
    return SQLiteRecordStore(db)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def container(settings, store, dispatcher):
    c = ServiceContainer()
    initialize_services(settings, container=c)
    c.register_instance("record_store", store)
    c.register_instance("dispatcher", dispatcher)
    return c


@pytest.fixture
def seed(store, container):
    """
    Two quarters (Q1 active), three promos (one inactive), three accounts and
    three reps with different territory and opt-in settings.
    """
    quarters = container.get("quarter_service")
    q1 = quarters.create_quarter("Q1 2026", date(2026, 1, 1), date(2026, 3, 31), is_active=True)
    q2 = quarters.create_quarter("Q2 2026", date(2026, 4, 1), date(2026, 6, 30))

    promos = store.insert("promos", [
        {"promo_name": "Spring Push", "terms": "Net 30", "discount": 0.1, "is_active": True},
        {"promo_name": "Summer Deal", "terms": "Net 60", "discount": 0.15, "is_active": True},
        {"promo_name": "Old Promo", "terms": "Net 10", "is_active": False},
    ])

    reps = store.insert("reps", [
        {"name": "Rita North", "email": "rita@example.com",
         "notify_territory_alerts": True, "notify_weekly_summary": True},
        {"name": "Gus Global", "email": "gus@example.com",
         "notify_territory_alerts": True, "notify_weekly_summary": True},
        {"name": "Sam South", "email": "sam@example.com",
         "notify_territory_alerts": False, "notify_weekly_summary": False},
    ])
    store.insert("rep_territories", [
        {"rep_id": reps[0]["id"], "territory": "North"},
        {"rep_id": reps[2]["id"], "territory": "South"},
    ])

    actor = Actor(id=reps[0]["id"], name="Rita North", email="rita@example.com")
    accounts = container.get("account_service")
    north = accounts.create_account("Acme Market", actor, territories=["North"])
    south = accounts.create_account("Bodega South", actor, territories=["South"])
    both = accounts.create_account("Corner Shop", actor, territories=["North", "East"])

    return {
        "q1": q1,
        "q2": q2,
        "promo": promos[0],
        "promo2": promos[1],
        "inactive_promo": promos[2],
        "reps": reps,
        "actor": actor,
        "north": north,
        "south": south,
        "both": both,
    }


@pytest.fixture
def app(settings, store, dispatcher, monkeypatch):
    """Flask app wired to the temporary database and a recording dispatcher."""
    from promotrack.services import factory
    from promotrack.web.app import create_app

    original = factory.register_core_services

    def register_with_doubles(c):
        original(c)
        c.register_instance("record_store", store)
        c.register_instance("dispatcher", dispatcher)

    monkeypatch.setattr(factory, "register_core_services", register_with_doubles)
    return create_app(settings=settings)


@pytest.fixture
def client(app):
    return app.test_client()


class FailingStore:
    """Wraps a store and raises ``error`` when ``operation`` touches ``collection``."""

    def __init__(self, inner, collection, operation, error):
        self.inner = inner
        self.collection = collection
        self.operation = operation
        self.error = error
        self.calls = 0

    def __getattr__(self, name):
        attr = getattr(self.inner, name)
        if name != self.operation:
            return attr

        def failing(collection, *args, **kwargs):
            if collection == self.collection:
                self.calls += 1
                raise self.error
            return attr(collection, *args, **kwargs)

        return failing


@pytest.fixture
def failing_store(store):
    def make(collection, operation="insert", error=None):
        return FailingStore(store, collection, operation, error or StoreError(f"{collection} is down"))
    return make


@pytest.fixture
def now():
    """A fixed instant in the middle of Q1 2026 (day 45 of 89)."""
    return MID_Q1
