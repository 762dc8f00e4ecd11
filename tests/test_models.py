"""
Tests for Finance Ledger

Test strategy:
1. Unit tests for individual components (models, engine, projections)
2. Integration tests for the facade (with an in-memory store)
3. No real API calls in tests (use mocks)
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from finance_ledger.models import (
    Account,
    AccountDraft,
    AccountType,
    AccountUpdate,
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
    BudgetDraft,
    OperationResult,
    OperationStatus,
    SavingsGoal,
    SavingsGoalUpdate,
    Transaction,
    TransactionDraft,
    TransactionType,
    coerce_amount,
)
from finance_ledger.models.ledger import coerce_balance


class TestAmountCoercion:
    """Invalid amounts become zero instead of failing."""

    @pytest.mark.parametrize(
        "raw",
        [None, "", "abc", "-5", -5, "-0.001", float("nan"), float("inf"), True, "1e1000000", "1e15"],
    )
    def test_invalid_amounts_become_zero(self, raw):
        assert coerce_amount(raw) == Decimal("0")

    def test_numeric_strings_are_parsed(self):
        assert coerce_amount(" 12.50 ") == Decimal("12.50")

    def test_decimal_passes_through(self):
        assert coerce_amount(Decimal("3.3")) == Decimal("3.3")

    def test_amounts_are_rounded_to_cents(self):
        assert coerce_amount("0.78847702084133883808776500") == Decimal("0.79")
        assert coerce_amount("0.125") == Decimal("0.13")

    def test_largest_amount_is_kept(self):
        assert coerce_amount("999999999999999.99") == Decimal("999999999999999.99")

    def test_balances_are_signed_and_bounded(self):
        assert coerce_balance("-20.555") == Decimal("-20.56")
        assert coerce_balance(Decimal("1e27")) == Decimal("0")
        assert coerce_balance("-0.001") == Decimal("0")

    def test_account_update_balance_is_bounded(self):
        update = AccountUpdate(balance="1e1000000")
        assert update.changes() == {"balance": Decimal("0")}


class TestAccountModels:
    """Tests for account models."""

    def test_account_draft_defaults(self):
        draft = AccountDraft(name="Checking")
        assert draft.type == AccountType.CHECKING
        assert draft.balance == Decimal("0")
        assert draft.currency == "USD"
        assert draft.is_excluded_from_total is False

    def test_account_name_strips_whitespace(self):
        draft = AccountDraft(name="  Main  ")
        assert draft.name == "Main"

    def test_blank_account_name_rejected(self):
        with pytest.raises(ValueError):
            AccountDraft(name="   ")

    def test_account_accepts_camel_case(self):
        account = Account.model_validate({
            "id": "a1",
            "name": "Card",
            "type": "credit",
            "balance": -250.5,
            "currency": "USD",
            "color": "red",
            "icon": "card",
            "isExcludedFromTotal": True,
        })
        assert account.is_excluded_from_total is True
        assert account.balance == Decimal("-250.5")

    def test_account_to_store_uses_camel_case(self):
        account = Account(id="a1", name="Card")
        stored = account.to_store()
        assert stored["isExcludedFromTotal"] is False
        assert stored["balance"] == "0"

    def test_account_update_only_reports_set_fields(self):
        update = AccountUpdate(name="Renamed", color=None)
        assert update.changes() == {"name": "Renamed"}


class TestTransactionModels:
    """Tests for transaction models."""

    def test_draft_coerces_negative_amount(self):
        draft = TransactionDraft(type="expense", amount=-40, account_id="a1")
        assert draft.amount == Decimal("0")

    def test_draft_drops_destination_for_non_transfers(self):
        draft = TransactionDraft(type="income", amount=10, account_id="a1", to_account_id="a2")
        assert draft.to_account_id is None

    def test_draft_keeps_destination_for_transfers(self):
        draft = TransactionDraft(
            type=TransactionType.SAVINGS,
            amount=10,
            account_id="a1",
            to_account_id="a2",
        )
        assert draft.to_account_id == "a2"

    def test_transaction_is_immutable(self):
        tx = Transaction(
            id="t1",
            type=TransactionType.EXPENSE,
            amount=Decimal("5"),
            account_id="a1",
            date=date(2024, 12, 1),
            created_at=datetime(2024, 12, 1, tzinfo=timezone.utc),
        )
        with pytest.raises(ValueError):
            tx.amount = Decimal("6")

    def test_from_draft_copies_fields(self):
        draft = TransactionDraft(
            type="savings",
            amount="30",
            account_id="a1",
            to_account_id="a2",
            category="Savings",
            date=date(2024, 12, 2),
        )
        created = datetime(2024, 12, 2, 8, tzinfo=timezone.utc)
        tx = Transaction.from_draft(draft, transaction_id="t9", created_at=created)
        assert tx.id == "t9"
        assert tx.amount == Decimal("30")
        assert tx.is_transfer is True
        assert tx.created_at == created

    def test_transaction_round_trips_through_store_format(self):
        tx = Transaction(
            id="t1",
            type=TransactionType.INCOME,
            amount=Decimal("99.95"),
            account_id="a1",
            date=date(2024, 12, 1),
            created_at=datetime(2024, 12, 1, tzinfo=timezone.utc),
        )
        stored = tx.to_store()
        assert stored["accountId"] == "a1"
        assert Transaction.model_validate(stored).model_dump() == tx.model_dump()


class TestPlanningModels:
    """Tests for budgets and savings goals."""

    def test_budget_rejects_negative_amount(self):
        with pytest.raises(ValueError):
            BudgetDraft(category="Food", amount=Decimal("-1"))

    def test_goal_progress_is_capped(self):
        goal = SavingsGoal(
            id="g1",
            name="Car",
            target_amount=Decimal("100"),
            current_amount=Decimal("250"),
        )
        assert goal.progress == Decimal("1")

    def test_goal_progress_zero_target(self):
        goal = SavingsGoal(id="g1", name="Someday")
        assert goal.progress == Decimal("0")

    def test_goal_update_can_clear_deadline(self):
        update = SavingsGoalUpdate(deadline=None)
        assert update.changes() == {"deadline": None}


class TestOperationResult:
    """Tests for the tagged operation result."""

    def test_success(self):
        result = OperationResult.success("t1")
        assert result.ok is True
        assert result.found is True

    def test_not_found(self):
        result = OperationResult.not_found("t1", "transaction")
        assert result.status == OperationStatus.NOT_FOUND
        assert result.ok is False
        assert result.found is False
        assert result.message == "Transaction not found: t1"

    def test_dangling_is_found_but_not_ok(self):
        result = OperationResult.dangling("t1", ["a9"])
        assert result.found is True
        assert result.ok is False
        assert result.missing_references == ["a9"]


class TestActivityModels:
    """Tests for activity-related models."""

    def test_activity_event_creation(self):
        event = ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_ADDED,
            description="Account added",
        )
        assert event.severity == ActivitySeverity.INFO

    def test_activity_event_to_log_dict(self):
        correlation_id = uuid4()
        event = ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_ADDED,
            description="Transaction added",
            correlation_id=correlation_id,
            details={"amount": "10"},
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "transaction_added"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["details"]["amount"] == "10"

    def test_builder_reference_not_found_is_warning(self):
        event = ActivityEventBuilder.reference_not_found("account", "a9", "delete_account")
        assert event.event_type == ActivityEventType.REFERENCE_NOT_FOUND
        assert event.severity == ActivitySeverity.WARNING
        assert event.entity_id == "a9"

    def test_builder_account_deleted_warns_about_orphans(self):
        assert ActivityEventBuilder.account_deleted("a1", 0).severity == ActivitySeverity.INFO
        assert ActivityEventBuilder.account_deleted("a1", 2).severity == ActivitySeverity.WARNING

    def test_builder_planning_changed(self):
        event = ActivityEventBuilder.planning_changed("savings_goal", "deleted", "g1")
        assert event.event_type == ActivityEventType.SAVINGS_GOAL_DELETED


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
