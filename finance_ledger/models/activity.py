"""
Activity Models for Finance Ledger

Every ledger mutation produces one activity event. Events are rendered
to the structured log; they are not a balance history and are never
replayed to rebuild state.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finance_ledger.models.ledger import Account, Transaction


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityEventType(str, Enum):
    """Types of events the ledger logs."""
    # State lifecycle
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_RELOADED = "ledger_reloaded"
    CURRENCY_CHANGED = "currency_changed"

    # Accounts
    ACCOUNT_ADDED = "account_added"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    ZERO_AMOUNT_TRANSACTION = "zero_amount_transaction"
    TRANSFER_LEG_UNREVERSED = "transfer_leg_unreversed"

    # Budgets and goals
    BUDGET_ADDED = "budget_added"
    BUDGET_UPDATED = "budget_updated"
    BUDGET_DELETED = "budget_deleted"
    SAVINGS_GOAL_ADDED = "savings_goal_added"
    SAVINGS_GOAL_UPDATED = "savings_goal_updated"
    SAVINGS_GOAL_DELETED = "savings_goal_deleted"

    # Soft failures
    REFERENCE_NOT_FOUND = "reference_not_found"

    # Backups
    BACKUP_CREATED = "backup_created"
    BACKUP_RESTORED = "backup_restored"
    SNAPSHOT_SAVED = "snapshot_saved"

    # System events
    PERSISTENCE_FAILED = "persistence_failed"
    SYSTEM_ERROR = "system_error"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ActivityEvent(BaseModel):
    """A single activity event."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: ActivityEventType = Field(
        ...,
        description="Type of event"
    )
    severity: ActivitySeverity = Field(
        default=ActivitySeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'transaction', 'budget')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a restore and the reload it triggers)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


def _money(deltas: dict[str, Decimal]) -> dict[str, str]:
    return {account_id: str(delta) for account_id, delta in deltas.items()}


_PLANNING_EVENTS = {
    ("budget", "added"): ActivityEventType.BUDGET_ADDED,
    ("budget", "updated"): ActivityEventType.BUDGET_UPDATED,
    ("budget", "deleted"): ActivityEventType.BUDGET_DELETED,
    ("savings_goal", "added"): ActivityEventType.SAVINGS_GOAL_ADDED,
    ("savings_goal", "updated"): ActivityEventType.SAVINGS_GOAL_UPDATED,
    ("savings_goal", "deleted"): ActivityEventType.SAVINGS_GOAL_DELETED,
}


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.transaction_added(tx, deltas)
        event = ActivityEventBuilder.reference_not_found("account", account_id, "delete_account")
    """

    @staticmethod
    def ledger_loaded(
        counts: dict[str, int],
        currency: str,
        seeded_default_account: bool,
        is_reload: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=(
                ActivityEventType.LEDGER_RELOADED
                if is_reload
                else ActivityEventType.LEDGER_LOADED
            ),
            entity_type="ledger",
            correlation_id=correlation_id,
            description="Ledger reloaded from store" if is_reload else "Ledger loaded from store",
            details={
                **counts,
                "currency": currency,
                "seeded_default_account": seeded_default_account,
            },
        )

    @staticmethod
    def currency_changed(old: str, new: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CURRENCY_CHANGED,
            entity_type="ledger",
            description=f"Display currency changed: {old} -> {new}",
            details={"old": old, "new": new},
        )

    @staticmethod
    def account_added(account: Account) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_ADDED,
            entity_type="account",
            entity_id=account.id,
            description=f"Account added: {account.name}",
            details={
                "type": account.type.value,
                "balance": str(account.balance),
            },
        )

    @staticmethod
    def account_updated(account_id: str, fields: list[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_UPDATED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account updated: {', '.join(fields) or 'no fields'}",
            details={
                "fields": fields,
                "balance_corrected": "balance" in fields,
            },
        )

    @staticmethod
    def account_deleted(account_id: str, orphaned_transactions: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_DELETED,
            severity=(
                ActivitySeverity.WARNING
                if orphaned_transactions
                else ActivitySeverity.INFO
            ),
            entity_type="account",
            entity_id=account_id,
            description=f"Account deleted, {orphaned_transactions} transaction(s) left orphaned",
            details={"orphaned_transactions": orphaned_transactions},
        )

    @staticmethod
    def transaction_added(
        transaction: Transaction,
        deltas: dict[str, Decimal],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction.id,
            description=f"Transaction added: {transaction.type.value} {transaction.amount}",
            details={
                "type": transaction.type.value,
                "amount": str(transaction.amount),
                "account_id": transaction.account_id,
                "to_account_id": transaction.to_account_id,
                "applied": _money(deltas),
            },
        )

    @staticmethod
    def transaction_deleted(
        transaction: Transaction,
        deltas: dict[str, Decimal],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction.id,
            description=f"Transaction deleted: {transaction.type.value} {transaction.amount}",
            details={
                "type": transaction.type.value,
                "amount": str(transaction.amount),
                "reversed": _money(deltas),
            },
        )

    @staticmethod
    def zero_amount_transaction(transaction_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ZERO_AMOUNT_TRANSACTION,
            severity=ActivitySeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction recorded with a zero amount (missing or invalid input)",
        )

    @staticmethod
    def transfer_leg_unreversed(transaction: Transaction) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSFER_LEG_UNREVERSED,
            severity=ActivitySeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction.id,
            description="Transfer deleted; destination account keeps the credited amount",
            details={
                "to_account_id": transaction.to_account_id,
                "amount": str(transaction.amount),
            },
        )

    @staticmethod
    def planning_changed(
        entity_type: str,
        action: str,
        entity_id: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=_PLANNING_EVENTS[(entity_type, action)],
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} {action}",
        )

    @staticmethod
    def reference_not_found(
        entity_type: str,
        entity_id: str,
        operation: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.REFERENCE_NOT_FOUND,
            severity=ActivitySeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{operation}: {entity_type} {entity_id} does not exist",
            details={"operation": operation},
        )

    @staticmethod
    def backup_created(counts: dict[str, int]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.BACKUP_CREATED,
            entity_type="backup",
            description="Finance backup created",
            details=counts,
        )

    @staticmethod
    def backup_restored(
        counts: dict[str, int],
        notified: int,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.BACKUP_RESTORED,
            entity_type="backup",
            correlation_id=correlation_id,
            description=f"Finance backup restored, {notified} subscriber(s) reloaded",
            details={**counts, "subscribers_notified": notified},
        )

    @staticmethod
    def snapshot_saved(kept: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SNAPSHOT_SAVED,
            entity_type="backup",
            description=f"Automatic snapshot saved ({kept} kept)",
            details={"kept": kept},
        )

    @staticmethod
    def persistence_failed(keys: list[str], error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PERSISTENCE_FAILED,
            severity=ActivitySeverity.ERROR,
            description=f"Failed to persist: {', '.join(keys)}",
            error_message=error_message,
            details={"keys": keys},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SYSTEM_ERROR,
            severity=ActivitySeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
