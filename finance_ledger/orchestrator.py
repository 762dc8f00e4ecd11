"""
Main Orchestrator for Finance Ledger

This module ties the components together behind one facade that callers
(a UI, a CLI, a sync job) talk to:
1. Accounts, transactions, budgets and savings goals (CRUD + engine)
2. Read-only projections (totals, currency formatting)
3. Reload, backup and restore

DESIGN DECISION: The facade enforces the boundaries:
- Balances only move through the transaction engine (or an explicit
  account correction)
- Every mutation is written through to the entity store before it returns
- Every mutation is logged as an activity event

Nothing below the facade knows which store backend is in use.
"""

from decimal import Decimal
from typing import Any, Optional, Union
from uuid import UUID

from finance_ledger.activity import (
    ActivityLogger,
    configure_logging,
    create_correlation_id,
)
from finance_ledger.config import LedgerSettings, Settings, get_settings
from finance_ledger.ledger import (
    AccountService,
    CollectionKey,
    LedgerState,
    PlanningService,
    TransactionEngine,
    format_currency,
    get_total_balance,
)
from finance_ledger.ledger.engine import Clock, IdFactory
from finance_ledger.models import (
    Account,
    AccountDraft,
    AccountUpdate,
    ActivityEventBuilder,
    Budget,
    BudgetDraft,
    BudgetUpdate,
    OperationResult,
    SavingsGoal,
    SavingsGoalDraft,
    SavingsGoalUpdate,
    Transaction,
    TransactionDraft,
)
from finance_ledger.services.storage import (
    EntityStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsEntityStore,
    InMemoryEntityStore,
    JsonFileEntityStore,
)
from finance_ledger.sync import (
    BackupService,
    FinanceBackup,
    ReloadSignal,
)


class FinanceLedger:
    """
    The exposed ledger contract.

    Call load() once before using it. After that the collections mirror
    the store, and reload() (or the reload signal) refreshes them.
    """

    def __init__(
        self,
        store: EntityStoreInterface,
        reload_signal: Optional[ReloadSignal] = None,
        ledger_settings: Optional[LedgerSettings] = None,
        activity_logger: Optional[ActivityLogger] = None,
        id_factory: Optional[IdFactory] = None,
        clock: Optional[Clock] = None,
    ):
        self._activity = activity_logger or ActivityLogger()
        self._settings = ledger_settings or get_settings().ledger
        self._state = LedgerState(
            store,
            reload_signal=reload_signal,
            settings=self._settings,
            activity_logger=self._activity,
        )
        self._engine = TransactionEngine(self._state, id_factory=id_factory, clock=clock)
        self._accounts = AccountService(self._state, id_factory=id_factory)
        self._planning = PlanningService(self._state, id_factory=id_factory)
        self._backups = BackupService(
            store,
            reload_signal=reload_signal,
            activity_logger=self._activity,
            snapshot_limit=self._settings.auto_snapshot_limit,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def load(self) -> None:
        """Load all collections and start listening for reload signals."""
        await self._state.load()
        self._state.attach()

    async def reload(self, correlation_id: Optional[UUID] = None) -> None:
        await self._state.load(correlation_id=correlation_id)

    def close(self) -> None:
        self._state.detach()

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def activity(self) -> ActivityLogger:
        return self._activity

    # =========================================================================
    # Collections
    # =========================================================================

    @property
    def accounts(self) -> list[Account]:
        return list(self._state.accounts)

    @property
    def transactions(self) -> list[Transaction]:
        """Newest first."""
        return list(self._state.transactions)

    @property
    def budgets(self) -> list[Budget]:
        return list(self._state.budgets)

    @property
    def savings_goals(self) -> list[SavingsGoal]:
        return list(self._state.savings_goals)

    @property
    def currency(self) -> str:
        return self._state.currency

    # =========================================================================
    # Accounts
    # =========================================================================

    async def add_account(self, draft: Union[AccountDraft, dict]) -> Account:
        return await self._accounts.add_account(draft)

    async def update_account(
        self,
        account_id: str,
        update: Union[AccountUpdate, dict],
    ) -> OperationResult:
        return await self._accounts.update_account(account_id, update)

    async def delete_account(self, account_id: str) -> OperationResult:
        return await self._accounts.delete_account(account_id)

    # =========================================================================
    # Transactions
    # =========================================================================

    async def add_transaction(self, draft: Union[TransactionDraft, dict]) -> OperationResult:
        return await self._engine.add_transaction(draft)

    async def delete_transaction(self, transaction_id: str) -> OperationResult:
        return await self._engine.delete_transaction(transaction_id)

    # =========================================================================
    # Budgets and savings goals
    # =========================================================================

    async def add_budget(self, draft: Union[BudgetDraft, dict]) -> Budget:
        return await self._planning.add_budget(draft)

    async def update_budget(
        self,
        budget_id: str,
        update: Union[BudgetUpdate, dict],
    ) -> OperationResult:
        return await self._planning.update_budget(budget_id, update)

    async def delete_budget(self, budget_id: str) -> OperationResult:
        return await self._planning.delete_budget(budget_id)

    async def add_savings_goal(self, draft: Union[SavingsGoalDraft, dict]) -> SavingsGoal:
        return await self._planning.add_savings_goal(draft)

    async def update_savings_goal(
        self,
        goal_id: str,
        update: Union[SavingsGoalUpdate, dict],
    ) -> OperationResult:
        return await self._planning.update_savings_goal(goal_id, update)

    async def delete_savings_goal(self, goal_id: str) -> OperationResult:
        return await self._planning.delete_savings_goal(goal_id)

    # =========================================================================
    # Projections
    # =========================================================================

    def get_total_balance(self) -> Decimal:
        return get_total_balance(self._state.accounts)

    def format_currency(self, amount: Any, currency_code: Optional[str] = None) -> str:
        """Format with the given code, or the ledger's display currency."""
        return format_currency(amount, currency_code or self._state.currency)

    async def set_currency(self, code: str) -> None:
        """
        Change the display currency.

        Raises:
            ValueError: if code is not a 3-letter currency code
        """
        normalized = (code or "").strip().upper()
        if len(normalized) != 3 or not normalized.isalpha():
            raise ValueError(f"Invalid currency code: {code!r}")

        old = self._state.currency
        self._state.currency = normalized
        await self._state.persist(CollectionKey.CURRENCY)
        self._activity.log(ActivityEventBuilder.currency_changed(old, normalized))

    # =========================================================================
    # Backup and restore
    # =========================================================================

    def export_backup(self) -> FinanceBackup:
        return self._backups.create_backup(self._state)

    def export_backup_json(self) -> str:
        return self._backups.to_json(self.export_backup())

    async def restore_backup(self, backup: Union[FinanceBackup, str, bytes]) -> int:
        """
        Overwrite every stored collection with a backup, then reload.

        Accepts a parsed FinanceBackup or the raw JSON document. Returns
        the number of reload subscribers notified. When the ledger is not
        attached to a reload signal, it reloads itself directly.
        """
        if not isinstance(backup, FinanceBackup):
            backup = self._backups.read_backup(backup)

        correlation_id = create_correlation_id()
        notified = await self._backups.restore(backup, correlation_id=correlation_id)
        if not self._state.attached:
            await self._state.load(correlation_id=correlation_id)
        return notified

    async def save_snapshot(self) -> int:
        """Store an automatic snapshot of the current ledger."""
        return await self._backups.save_auto_snapshot(self.export_backup())

    async def get_snapshots(self) -> list[FinanceBackup]:
        return await self._backups.get_auto_snapshots()


def build_entity_store(settings: Optional[Settings] = None) -> EntityStoreInterface:
    """Instantiate the store backend selected by LEDGER_STORAGE_BACKEND."""
    settings = settings or get_settings()
    backend = settings.storage.backend

    if backend == "memory":
        return InMemoryEntityStore()
    if backend == "google_sheets":
        return GoogleSheetsEntityStore(GoogleSheetsClient(settings.google_sheets))
    return JsonFileEntityStore(settings.storage.data_path)


def create_ledger(
    settings: Optional[Settings] = None,
    store: Optional[EntityStoreInterface] = None,
    reload_signal: Optional[ReloadSignal] = None,
) -> FinanceLedger:
    """
    Factory function to create a ready-to-load ledger.

    Args:
        settings: Application settings (defaults to the cached settings)
        store: Entity store to use instead of the configured backend
        reload_signal: Signal to attach to; pass process_reload_signal to
                       share reloads across ledgers in this process

    Returns:
        FinanceLedger (call load() before use)
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    return FinanceLedger(
        store or build_entity_store(settings),
        reload_signal=reload_signal,
        ledger_settings=settings.ledger,
        activity_logger=ActivityLogger(),
    )
