"""Tests for the activity logger and the events ledger operations emit."""

import pytest

from finance_ledger.activity import ActivityLogger
from finance_ledger.models import (
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)


class TestActivityLogger:
    """Tests for listener dispatch."""

    def test_listeners_receive_events(self):
        received = []
        logger = ActivityLogger(listeners=[received.append])

        event = ActivityEventBuilder.currency_changed("USD", "EUR")
        logger.log(event)

        assert received == [event]

    def test_failing_listener_does_not_raise(self):
        received = []

        def broken(event):
            raise RuntimeError("listener bug")

        logger = ActivityLogger(listeners=[broken, received.append])
        logger.log(ActivityEventBuilder.snapshot_saved(3))

        assert len(received) == 1

    def test_remove_listener(self):
        received = []
        logger = ActivityLogger()
        logger.add_listener(received.append)
        logger.remove_listener(received.append)

        logger.log(ActivityEventBuilder.snapshot_saved(1))

        assert received == []

    def test_log_error_helper(self):
        received = []
        logger = ActivityLogger(listeners=[received.append])

        logger.log_error("reload_failed", "boom", details={"key": "x"})

        assert received[0].event_type == ActivityEventType.SYSTEM_ERROR
        assert received[0].severity == ActivitySeverity.ERROR
        assert received[0].error_message == "boom"


class TestLedgerEvents:
    """Every mutation logs one event."""

    @pytest.mark.asyncio
    async def test_mutations_emit_events(self, ledger, events):
        events.clear()

        account = await ledger.add_account({"name": "Bank"})
        tx = await ledger.add_transaction({"type": "income", "amount": 5, "account_id": account.id})
        await ledger.delete_transaction(tx.entity_id)
        budget = await ledger.add_budget({"category": "Food"})
        await ledger.delete_budget(budget.id)
        await ledger.set_currency("EUR")

        assert [e.event_type for e in events] == [
            ActivityEventType.ACCOUNT_ADDED,
            ActivityEventType.TRANSACTION_ADDED,
            ActivityEventType.TRANSACTION_DELETED,
            ActivityEventType.BUDGET_ADDED,
            ActivityEventType.BUDGET_DELETED,
            ActivityEventType.CURRENCY_CHANGED,
        ]

    @pytest.mark.asyncio
    async def test_transaction_event_records_applied_deltas(self, ledger, events):
        account = await ledger.add_account({"name": "Bank"})
        await ledger.add_transaction({"type": "expense", "amount": "9.99", "account_id": account.id})

        added = [e for e in events if e.event_type == ActivityEventType.TRANSACTION_ADDED][-1]
        assert added.details["applied"] == {account.id: "-9.99"}

    @pytest.mark.asyncio
    async def test_invalid_currency_rejected(self, ledger, events):
        events.clear()
        with pytest.raises(ValueError):
            await ledger.set_currency("dollars")
        assert ledger.currency == "USD"
        assert events == []
