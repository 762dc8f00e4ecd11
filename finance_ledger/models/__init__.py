"""
Data Models Package

This package contains all Pydantic models used in the Finance Ledger.
All data flowing through the ledger must conform to these schemas.
"""

from finance_ledger.models.ledger import (
    ZERO,
    Account,
    AccountDraft,
    AccountType,
    AccountUpdate,
    Budget,
    BudgetDraft,
    BudgetPeriod,
    BudgetUpdate,
    OperationResult,
    OperationStatus,
    PartialUpdate,
    SavingsGoal,
    SavingsGoalDraft,
    SavingsGoalUpdate,
    Transaction,
    TransactionDraft,
    TransactionType,
    coerce_amount,
)
from finance_ledger.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Ledger models
    "ZERO",
    "Account",
    "AccountDraft",
    "AccountType",
    "AccountUpdate",
    "Budget",
    "BudgetDraft",
    "BudgetPeriod",
    "BudgetUpdate",
    "OperationResult",
    "OperationStatus",
    "PartialUpdate",
    "SavingsGoal",
    "SavingsGoalDraft",
    "SavingsGoalUpdate",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "coerce_amount",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
