"""
Synchronization between the ledger and its store: the reload signal and
backup/restore.
"""

from finance_ledger.sync.reload_signal import (
    ReloadEvent,
    ReloadHandler,
    ReloadSignal,
    process_reload_signal,
)
from finance_ledger.sync.backup import (
    AUTO_BACKUP_KEY,
    BACKUP_VERSION,
    BackupService,
    BackupValidationError,
    FinanceBackup,
)

__all__ = [
    "ReloadEvent",
    "ReloadHandler",
    "ReloadSignal",
    "process_reload_signal",
    "AUTO_BACKUP_KEY",
    "BACKUP_VERSION",
    "BackupService",
    "BackupValidationError",
    "FinanceBackup",
]
