"""Tests for the quarter rollover state machine."""

import pytest

from promotrack.models.enums import RolloverState
from promotrack.services.errors import (
    PartialRolloverError,
    RolloverStateError,
    StoreError,
    ValidationError,
)
from promotrack.services.rollover_service import (
    ARCHIVE_ASSIGNMENTS,
    ARCHIVE_TRANSACTIONS,
    CONFIRMATION_PHRASE,
    UNKNOWN_QUARTER_NAME,
    QuarterRolloverService,
)


@pytest.fixture
def populated(container, seed):
    """Three assignments and ten transactions in the active quarter."""
    assignments = container.get("assignment_service")
    transactions = container.get("transaction_service")
    for account in (seed["north"], seed["south"], seed["both"]):
        assignments.assign_promo(account, seed["promo"]["id"], 100, seed["actor"])
    for i in range(10):
        account = (seed["north"], seed["south"])[i % 2]
        transactions.log_transaction(account, None, i + 1, seed["actor"])
    return seed


@pytest.fixture
def rollover(container):
    return container.get("rollover_service")


class TestStateMachine:

    def test_starts_idle(self, rollover):
        assert rollover.state is RolloverState.IDLE

    def test_execute_requires_confirmation(self, rollover, populated, store):
        with pytest.raises(RolloverStateError):
            rollover.execute(populated["actor"])
        rollover.fetch_stats()
        with pytest.raises(RolloverStateError):
            rollover.execute(populated["actor"])
        assert store.count("transactions") == 10

    def test_confirm_requires_stats(self, rollover):
        with pytest.raises(RolloverStateError):
            rollover.confirm(CONFIRMATION_PHRASE)

    @pytest.mark.parametrize("token", ["end quarter", "END QUARTER ", "", "yes"])
    def test_wrong_phrase(self, rollover, populated, token):
        rollover.fetch_stats()
        with pytest.raises(ValidationError):
            rollover.confirm(token)
        assert rollover.state is RolloverState.STATS_FETCHED

    def test_stats_mutate_nothing(self, rollover, populated, store):
        stats = rollover.fetch_stats()
        assert (stats.assignments, stats.transactions, stats.accounts) == (3, 10, 3)
        assert stats.quarter_name == "Q1 2026"
        assert store.count("archived_transactions") == 0
        assert rollover.state is RolloverState.STATS_FETCHED

    def test_factory_gives_fresh_controller(self, container):
        first = container.get("rollover_service")
        first.state = RolloverState.DONE
        assert container.get("rollover_service").state is RolloverState.IDLE


class TestExecute:

    def test_archives_resets_and_advances(self, rollover, populated, store, container):
        result = rollover.run(CONFIRMATION_PHRASE, populated["actor"])

        assert rollover.state is RolloverState.DONE
        assert result.quarter_name == "Q1 2026"
        assert (result.archived_assignments, result.archived_transactions) == (3, 10)
        assert (result.deleted_assignments, result.deleted_transactions) == (3, 10)

        assert store.count("account_promos") == 0
        assert store.count("transactions") == 0
        assert store.count("accounts") == 3
        assert store.count("archived_account_promos", {"quarter_name": "Q1 2026"}) == 3
        assert store.count("archived_transactions", {"quarter_name": "Q1 2026"}) == 10

        archived = store.select("archived_transactions", {"units_sold": 10})
        assert archived[0]["original_id"]
        assert archived[0]["account_id"] == populated["south"].id

        active = container.get("quarter_service").get_active_quarter()
        assert active.name == "Q2 2026"
        assert result.activated_quarter.name == "Q2 2026"

    def test_empty_tables(self, rollover, seed, store):
        result = rollover.run(CONFIRMATION_PHRASE)
        assert result.archived_assignments == 0
        assert result.archived_transactions == 0
        assert store.count("archived_transactions") == 0
        assert rollover.state is RolloverState.DONE

    def test_no_following_quarter(self, rollover, container, store, seed):
        quarters = container.get("quarter_service")
        quarters.set_active_quarter(seed["q2"].id)

        result = rollover.run(CONFIRMATION_PHRASE)

        assert result.deactivated_quarter.name == "Q2 2026"
        assert result.activated_quarter is None
        assert quarters.get_active_quarter() is None

    def test_no_active_quarter(self, rollover, container, seed, store):
        container.get("assignment_service").assign_promo(
            seed["north"], seed["promo"]["id"], 10, seed["actor"]
        )
        store.update("quarters", {"is_active": False}, {"id": seed["q1"].id})

        stats = rollover.fetch_stats()
        assert stats.quarter_name == UNKNOWN_QUARTER_NAME

        rollover.confirm(CONFIRMATION_PHRASE)
        rollover.execute(seed["actor"])
        [row] = store.select("archived_account_promos")
        assert row["quarter_name"] == UNKNOWN_QUARTER_NAME
        assert store.count("account_promos") == 0

    def test_partial_failure(self, container, populated, store, failing_store):
        broken = failing_store("transactions", operation="delete")
        rollover = QuarterRolloverService(broken, container.get("quarter_service"))
        rollover.fetch_stats()
        rollover.confirm(CONFIRMATION_PHRASE)

        with pytest.raises(PartialRolloverError) as exc:
            rollover.execute(populated["actor"])

        error = exc.value
        assert error.failed_step == "delete_transactions"
        assert error.completed_steps == [ARCHIVE_ASSIGNMENTS, ARCHIVE_TRANSACTIONS]
        assert isinstance(error.cause, StoreError)
        assert rollover.state is RolloverState.ERROR
        # Archives committed, live tables untouched, quarter not advanced.
        assert store.count("archived_transactions") == 10
        assert store.count("transactions") == 10
        assert container.get("quarter_service").get_active_quarter().name == "Q1 2026"

    def test_refetch_after_error_resets(self, container, populated, failing_store):
        rollover = QuarterRolloverService(
            failing_store("transactions", operation="delete"), container.get("quarter_service")
        )
        rollover.fetch_stats()
        rollover.confirm(CONFIRMATION_PHRASE)
        with pytest.raises(PartialRolloverError):
            rollover.execute()

        rollover.fetch_stats()
        assert rollover.state is RolloverState.STATS_FETCHED
        assert rollover.error is None
