"""
Ledger State

The in-memory collections of accounts, transactions, budgets and savings
goals, plus the active display currency.

DESIGN DECISION: State is an explicit object built around an injected
entity store. Nothing looks up a global ledger. The reload signal is
optional; when attached, a reload replaces every collection wholesale
and discards unpersisted in-memory changes.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError

from finance_ledger.activity import ActivityLogger
from finance_ledger.config import LedgerSettings, get_settings
from finance_ledger.models import (
    Account,
    AccountType,
    ActivityEventBuilder,
    Budget,
    SavingsGoal,
    Transaction,
    ZERO,
)
from finance_ledger.services.storage import EntityStoreInterface, StorageError

if TYPE_CHECKING:
    from finance_ledger.sync.reload_signal import ReloadEvent, ReloadSignal


ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_ACCOUNT_ID = "1"


class CollectionKey(str, Enum):
    """Fixed logical keys the ledger reads and writes."""
    ACCOUNTS = "finance_accounts_v1"
    TRANSACTIONS = "finance_transactions_v1"
    BUDGETS = "finance_budgets_v1"
    SAVINGS_GOALS = "finance_goals_v1"
    CURRENCY = "finance_currency_v1"


class LedgerDataError(Exception):
    """Stored collection exists but does not match the ledger schema."""
    pass


class LedgerState:
    """
    Holds the ledger collections and is the single point of mutation
    for the transaction engine and the CRUD services.

    Transactions are kept newest first.
    """

    def __init__(
        self,
        store: EntityStoreInterface,
        reload_signal: Optional["ReloadSignal"] = None,
        settings: Optional[LedgerSettings] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._store = store
        self._reload_signal = reload_signal
        self._settings = settings or get_settings().ledger
        self._activity = activity_logger or ActivityLogger()
        self._attached = False

        self.accounts: list[Account] = []
        self.transactions: list[Transaction] = []
        self.budgets: list[Budget] = []
        self.savings_goals: list[SavingsGoal] = []
        self.currency: str = self._settings.default_currency
        self.loaded = False

    @property
    def store(self) -> EntityStoreInterface:
        return self._store

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    @property
    def activity(self) -> ActivityLogger:
        return self._activity

    @property
    def attached(self) -> bool:
        return self._attached

    # =========================================================================
    # Loading
    # =========================================================================

    def default_account(self) -> Account:
        """The wallet seeded into a ledger that has no stored accounts."""
        return Account(
            id=DEFAULT_ACCOUNT_ID,
            name=self._settings.default_account_name,
            type=AccountType.WALLET,
            balance=ZERO,
            currency=self._settings.default_currency,
            color="green",
            icon="wallet",
            is_excluded_from_total=False,
        )

    @staticmethod
    def _parse(model: type[ModelT], raw: Any, key: CollectionKey) -> list[ModelT]:
        if not isinstance(raw, list):
            raise LedgerDataError(
                f"Stored {key.value} must be a list, got {type(raw).__name__}"
            )
        try:
            return [model.model_validate(item) for item in raw]
        except ValidationError as e:
            raise LedgerDataError(f"Invalid record in {key.value}: {e}") from e

    async def load(self, correlation_id: Optional[UUID] = None) -> None:
        """
        Load every collection from the store, replacing in-memory state.

        Absent accounts seed one default wallet; other absent collections
        are empty; an absent currency falls back to the configured default.
        Nothing is replaced unless every collection loaded cleanly.
        """
        is_reload = self.loaded

        raw_accounts = await self._store.load(CollectionKey.ACCOUNTS.value)
        raw_transactions = await self._store.load(CollectionKey.TRANSACTIONS.value)
        raw_budgets = await self._store.load(CollectionKey.BUDGETS.value)
        raw_goals = await self._store.load(CollectionKey.SAVINGS_GOALS.value)
        raw_currency = await self._store.load(CollectionKey.CURRENCY.value)

        seeded = raw_accounts is None
        if seeded:
            accounts = [self.default_account()]
        else:
            accounts = self._parse(Account, raw_accounts, CollectionKey.ACCOUNTS)

        transactions = (
            self._parse(Transaction, raw_transactions, CollectionKey.TRANSACTIONS)
            if raw_transactions is not None
            else []
        )
        budgets = (
            self._parse(Budget, raw_budgets, CollectionKey.BUDGETS)
            if raw_budgets is not None
            else []
        )
        goals = (
            self._parse(SavingsGoal, raw_goals, CollectionKey.SAVINGS_GOALS)
            if raw_goals is not None
            else []
        )
        if isinstance(raw_currency, str) and raw_currency.strip():
            currency = raw_currency.strip().upper()
        else:
            currency = self._settings.default_currency

        self.accounts = accounts
        self.transactions = transactions
        self.budgets = budgets
        self.savings_goals = goals
        self.currency = currency
        self.loaded = True

        self._activity.log(
            ActivityEventBuilder.ledger_loaded(
                counts=self.counts(),
                currency=currency,
                seeded_default_account=seeded,
                is_reload=is_reload,
                correlation_id=correlation_id,
            )
        )

    # =========================================================================
    # Reload signal
    # =========================================================================

    async def _handle_reload(self, event: "ReloadEvent") -> None:
        try:
            await self.load(correlation_id=event.correlation_id)
        except (LedgerDataError, StorageError) as e:
            self._activity.log_error(
                error_type="reload_failed",
                error_message=str(e),
                details={"reason": event.reason},
                correlation_id=event.correlation_id,
            )
            raise

    def attach(self) -> None:
        """Start reloading whenever the reload signal fires."""
        if self._reload_signal is not None and not self._attached:
            self._reload_signal.subscribe(self._handle_reload)
            self._attached = True

    def detach(self) -> None:
        if self._reload_signal is not None and self._attached:
            self._reload_signal.unsubscribe(self._handle_reload)
            self._attached = False

    # =========================================================================
    # Lookups
    # =========================================================================

    @staticmethod
    def _find(items: Iterable[ModelT], entity_id: str) -> Optional[ModelT]:
        for item in items:
            if item.id == entity_id:
                return item
        return None

    def find_account(self, account_id: str) -> Optional[Account]:
        return self._find(self.accounts, account_id)

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._find(self.transactions, transaction_id)

    def find_budget(self, budget_id: str) -> Optional[Budget]:
        return self._find(self.budgets, budget_id)

    def find_savings_goal(self, goal_id: str) -> Optional[SavingsGoal]:
        return self._find(self.savings_goals, goal_id)

    def counts(self) -> dict[str, int]:
        return {
            "accounts": len(self.accounts),
            "transactions": len(self.transactions),
            "budgets": len(self.budgets),
            "savings_goals": len(self.savings_goals),
        }

    # =========================================================================
    # Persistence
    # =========================================================================

    def serialize(self, key: CollectionKey) -> Any:
        """The JSON-compatible value stored under a key."""
        if key == CollectionKey.CURRENCY:
            return self.currency
        collection = {
            CollectionKey.ACCOUNTS: self.accounts,
            CollectionKey.TRANSACTIONS: self.transactions,
            CollectionKey.BUDGETS: self.budgets,
            CollectionKey.SAVINGS_GOALS: self.savings_goals,
        }[key]
        return [item.to_store() for item in collection]

    def snapshot(self) -> dict[str, Any]:
        """Everything the ledger would persist, keyed by logical key."""
        return {key.value: self.serialize(key) for key in CollectionKey}

    async def persist(self, *keys: CollectionKey) -> None:
        """
        Write the given collections in one store call.

        Failures are logged and re-raised; in-memory state is not rolled back.
        """
        items = {key.value: self.serialize(key) for key in keys}
        try:
            await self._store.save_many(items)
        except StorageError as e:
            self._activity.log_persistence_failed(list(items), e)
            raise
