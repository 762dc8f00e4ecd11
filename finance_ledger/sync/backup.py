"""
Backup and Restore

Exports the whole ledger as one JSON document and writes a document back
over every stored collection.

DESIGN DECISION: Restore never touches in-memory state directly. It
writes all collections to the store in one save_many call and then fires
the reload signal, so every attached LedgerState picks up the restored
data the same way it would pick up an external sync.
"""

import datetime
import json
from typing import Any, Optional, Union
from uuid import UUID

from pydantic import Field, ValidationError

from finance_ledger.activity import ActivityLogger
from finance_ledger.ledger.state import CollectionKey, LedgerState
from finance_ledger.models import (
    Account,
    ActivityEventBuilder,
    Budget,
    SavingsGoal,
    Transaction,
)
from finance_ledger.models.ledger import LedgerModel
from finance_ledger.services.storage import EntityStoreInterface, StorageError
from finance_ledger.sync.reload_signal import ReloadSignal


BACKUP_VERSION = "1.5.0"
AUTO_BACKUP_KEY = "finance_auto_backups_v1"


class BackupValidationError(ValueError):
    """Backup document could not be parsed or has the wrong structure."""
    pass


class FinanceBackup(LedgerModel):
    """Self-contained copy of every ledger collection."""

    version: str = BACKUP_VERSION
    export_date: datetime.datetime
    accounts: list[Account] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)
    savings_goals: list[SavingsGoal] = Field(default_factory=list)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)

    def counts(self) -> dict[str, int]:
        return {
            "accounts": len(self.accounts),
            "transactions": len(self.transactions),
            "budgets": len(self.budgets),
            "savings_goals": len(self.savings_goals),
        }

    def collections(self) -> dict[str, Any]:
        """
        Stored value per collection key, as LedgerState would write them.

        A backup without a currency leaves the stored currency alone.
        """
        items = {
            CollectionKey.ACCOUNTS.value: [a.to_store() for a in self.accounts],
            CollectionKey.TRANSACTIONS.value: [t.to_store() for t in self.transactions],
            CollectionKey.BUDGETS.value: [b.to_store() for b in self.budgets],
            CollectionKey.SAVINGS_GOALS.value: [g.to_store() for g in self.savings_goals],
        }
        if self.currency:
            items[CollectionKey.CURRENCY.value] = self.currency.upper()
        return items


class BackupService:
    """
    Creates, parses and restores finance backups, and keeps a short
    history of automatic snapshots in the entity store.
    """

    def __init__(
        self,
        store: EntityStoreInterface,
        reload_signal: Optional[ReloadSignal] = None,
        activity_logger: Optional[ActivityLogger] = None,
        snapshot_limit: int = 7,
    ):
        self._store = store
        self._reload_signal = reload_signal
        self._activity = activity_logger or ActivityLogger()
        self._snapshot_limit = snapshot_limit

    # =========================================================================
    # Export
    # =========================================================================

    def create_backup(self, state: LedgerState) -> FinanceBackup:
        backup = FinanceBackup(
            export_date=datetime.datetime.now(datetime.timezone.utc),
            accounts=list(state.accounts),
            transactions=list(state.transactions),
            budgets=list(state.budgets),
            savings_goals=list(state.savings_goals),
            currency=state.currency,
        )
        self._activity.log(ActivityEventBuilder.backup_created(backup.counts()))
        return backup

    @staticmethod
    def to_json(backup: FinanceBackup) -> str:
        return json.dumps(backup.to_store(), indent=2, ensure_ascii=False)

    # =========================================================================
    # Import
    # =========================================================================

    @staticmethod
    def parse_backup(data: Any) -> FinanceBackup:
        """
        Validate an already-decoded backup document.

        Full-application backups nest the ledger under a "finance" key;
        both shapes are accepted.
        """
        if not isinstance(data, dict):
            raise BackupValidationError("Invalid backup file structure.")
        if isinstance(data.get("finance"), dict):
            nested = dict(data["finance"])
            for field in ("version", "exportDate"):
                if field in data:
                    nested.setdefault(field, data[field])
            data = nested
        try:
            return FinanceBackup.model_validate(data)
        except ValidationError as e:
            raise BackupValidationError(f"Invalid backup file structure: {e}") from e

    @classmethod
    def read_backup(cls, text: Union[str, bytes]) -> FinanceBackup:
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BackupValidationError("Failed to parse JSON file.") from e
        return cls.parse_backup(data)

    async def restore(
        self,
        backup: FinanceBackup,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Replace every stored collection with the backup contents.

        Returns how many reload subscribers were notified.
        """
        items = backup.collections()
        try:
            await self._store.save_many(items)
        except StorageError as e:
            self._activity.log_persistence_failed(list(items), e)
            raise

        notified = 0
        if self._reload_signal is not None:
            notified = await self._reload_signal.fire(
                reason="backup_restored",
                correlation_id=correlation_id,
            )

        self._activity.log(
            ActivityEventBuilder.backup_restored(
                backup.counts(),
                notified=notified,
                correlation_id=correlation_id,
            )
        )
        return notified

    # =========================================================================
    # Automatic snapshots
    # =========================================================================

    async def get_auto_snapshots(self) -> list[FinanceBackup]:
        """Stored snapshots, newest first. Unreadable entries are skipped."""
        raw = await self._store.load(AUTO_BACKUP_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise BackupValidationError(
                f"Stored {AUTO_BACKUP_KEY} must be a list, got {type(raw).__name__}"
            )
        snapshots = []
        for position, item in enumerate(raw):
            try:
                snapshots.append(self.parse_backup(item))
            except BackupValidationError as e:
                self._activity.log_error(
                    error_type="invalid_snapshot",
                    error_message=str(e),
                    details={"position": position},
                )
        return snapshots

    async def save_auto_snapshot(self, backup: FinanceBackup) -> int:
        """
        Prepend a snapshot and drop the oldest beyond the limit.

        Invalid stored entries are dropped from the history. A stored value
        that is not a list at all is replaced.
        """
        try:
            history = await self.get_auto_snapshots()
        except BackupValidationError as e:
            self._activity.log_error(
                error_type="invalid_snapshot_history",
                error_message=str(e),
            )
            history = []
        kept = [backup, *history][: self._snapshot_limit]
        await self._store.save(AUTO_BACKUP_KEY, [item.to_store() for item in kept])
        self._activity.log(ActivityEventBuilder.snapshot_saved(len(kept)))
        return len(kept)
