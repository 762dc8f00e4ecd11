"""
Ledger core: in-memory state, the transaction engine, CRUD services
and read-only projections.
"""

from finance_ledger.ledger.state import (
    CollectionKey,
    DEFAULT_ACCOUNT_ID,
    LedgerDataError,
    LedgerState,
)
from finance_ledger.ledger.engine import (
    TransactionEngine,
    balance_deltas,
    effect,
    new_id,
    reversal_deltas,
    utcnow,
)
from finance_ledger.ledger.accounts import AccountService
from finance_ledger.ledger.planning import PlanningService
from finance_ledger.ledger.projection import (
    CURRENCY_SYMBOLS,
    format_currency,
    get_total_balance,
    recent_transactions,
    sum_by_type,
)

__all__ = [
    "CollectionKey",
    "DEFAULT_ACCOUNT_ID",
    "LedgerDataError",
    "LedgerState",
    "TransactionEngine",
    "balance_deltas",
    "effect",
    "new_id",
    "reversal_deltas",
    "utcnow",
    "AccountService",
    "PlanningService",
    "CURRENCY_SYMBOLS",
    "format_currency",
    "get_total_balance",
    "recent_transactions",
    "sum_by_type",
]
