"""Tests for quick unit entry."""

from datetime import date

import pytest

from promotrack.models.enums import ActivityType
from promotrack.services.errors import NotFoundError, ValidationError
from promotrack.services.transaction_service import TransactionService


@pytest.fixture
def service(container, now):
    return TransactionService(
        container.get("record_store"),
        container.get("promo_service"),
        container.get("activity_log_service"),
        clock=lambda: now,
    )


@pytest.fixture
def assigned(container, seed):
    container.get("assignment_service").assign_promo(
        seed["north"], seed["promo"]["id"], 100, seed["actor"]
    )
    return seed


class TestLogTransaction:

    def test_uses_current_assignment_promo(self, service, assigned, now):
        txn = service.log_transaction(assigned["north"], None, 40, assigned["actor"])
        assert txn.promo_id == assigned["promo"]["id"]
        assert txn.units_sold == 40
        assert txn.rep_id == assigned["actor"].id
        assert txn.transaction_date == now.date()

    def test_explicit_promo_and_date(self, service, assigned):
        txn = service.log_transaction(
            assigned["north"], assigned["promo2"]["id"], 5, assigned["actor"],
            note="  walk-in  ", transaction_date="2026-01-20",
        )
        assert txn.promo_id == assigned["promo2"]["id"]
        assert txn.transaction_date == date(2026, 1, 20)
        assert txn.notes == "walk-in"

    @pytest.mark.parametrize("units", [0, -3, "x", None])
    def test_rejects_bad_units(self, service, assigned, store, units):
        with pytest.raises(ValidationError) as exc:
            service.log_transaction(assigned["north"], None, units, assigned["actor"])
        assert exc.value.field == "units"
        assert store.count("transactions") == 0

    def test_unassigned_account_rejected(self, service, seed):
        with pytest.raises(ValidationError) as exc:
            service.log_transaction(seed["south"], None, 5, seed["actor"])
        assert exc.value.field == "promo_id"

    def test_unknown_promo(self, service, seed):
        with pytest.raises(NotFoundError):
            service.log_transaction(seed["south"], "missing", 5, seed["actor"])

    def test_bad_date(self, service, assigned):
        with pytest.raises(ValidationError) as exc:
            service.log_transaction(assigned["north"], None, 5, assigned["actor"], transaction_date="20/01/2026")
        assert exc.value.field == "transaction_date"

    def test_activity_logged(self, service, assigned, store):
        service.log_transaction(assigned["north"], None, 7, assigned["actor"])
        rows = store.select("activity_log", {"action_type": ActivityType.UNITS_LOGGED.value})
        assert rows[-1]["details"] == {"units": 7, "promo_name": "Spring Push"}

    def test_units_count_toward_progress(self, service, assigned, container):
        service.log_transaction(assigned["north"], None, 40, assigned["actor"])
        [row] = container.get("dashboard_service").account_progress_rows()
        assert row.progress.units_sold == 40
        assert row.progress.progress_pct == 40


def test_list_transactions_filters(service, assigned):
    service.log_transaction(assigned["north"], None, 1, assigned["actor"], transaction_date="2026-01-10")
    service.log_transaction(assigned["north"], None, 2, assigned["actor"], transaction_date="2026-02-10")
    service.log_transaction(assigned["north"], assigned["promo2"]["id"], 3, assigned["actor"],
                            transaction_date="2026-02-11")

    assert [t.units_sold for t in service.list_transactions(assigned["north"].id)] == [3, 2, 1]
    assert [t.units_sold for t in service.list_transactions(promo_id=assigned["promo"]["id"])] == [2, 1]
    assert [t.units_sold for t in service.list_transactions(since=date(2026, 2, 1))] == [3, 2]
