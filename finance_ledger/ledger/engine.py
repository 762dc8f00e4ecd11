"""
Transaction Engine

Moves account balances in lockstep with transaction add/delete.

GUARANTEE: after every completed add or delete, for every account a

    a.balance == opening balance + sum(effect(tx, a.id) for tx in transactions)

where effect() is defined below. The only exceptions are the documented
soft failures: orphan references, and the destination leg of a deleted
transfer, which is not reversed unless reverse_transfer_destination is set.

DESIGN DECISION: Accounts and transactions are written with one
save_many call, so a crash can no longer leave a balance adjusted for
a transaction that was never recorded (or the reverse) on backends
with atomic multi-key writes.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional, Union
from uuid import uuid4

from finance_ledger.ledger.state import CollectionKey, LedgerState
from finance_ledger.models import (
    ActivityEventBuilder,
    OperationResult,
    Transaction,
    TransactionDraft,
    TransactionType,
    ZERO,
)


IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


def new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _accumulate(deltas: dict[str, Decimal], account_id: str, delta: Decimal) -> None:
    deltas[account_id] = deltas.get(account_id, ZERO) + delta


def balance_deltas(transaction: Transaction) -> dict[str, Decimal]:
    """
    Signed balance change the transaction applies to each account.

    income   -> +amount on account_id
    expense  -> -amount on account_id
    savings  -> -amount on account_id, +amount on to_account_id
    """
    deltas: dict[str, Decimal] = {}
    amount = transaction.amount

    if transaction.type == TransactionType.INCOME:
        _accumulate(deltas, transaction.account_id, amount)
    else:
        _accumulate(deltas, transaction.account_id, -amount)

    if transaction.type == TransactionType.SAVINGS and transaction.to_account_id:
        _accumulate(deltas, transaction.to_account_id, amount)

    return deltas


def effect(transaction: Transaction, account_id: str) -> Decimal:
    """Signed effect of one transaction on one account (zero if unrelated)."""
    return balance_deltas(transaction).get(account_id, ZERO)


def reversal_deltas(
    transaction: Transaction,
    reverse_destination: bool = False,
) -> dict[str, Decimal]:
    """
    Balance changes applied when a transaction is deleted.

    The account_id leg is always the exact inverse of what was applied.
    The to_account_id leg of a transfer is only reversed on request.
    """
    deltas: dict[str, Decimal] = {}
    amount = transaction.amount

    if transaction.type == TransactionType.INCOME:
        _accumulate(deltas, transaction.account_id, -amount)
    else:
        _accumulate(deltas, transaction.account_id, amount)

    if (
        reverse_destination
        and transaction.type == TransactionType.SAVINGS
        and transaction.to_account_id
    ):
        _accumulate(deltas, transaction.to_account_id, -amount)

    return deltas


class TransactionEngine:
    """
    Owns the add/delete protocol for transactions.

    Missing accounts never raise: that side of the effect is skipped and
    the result is tagged DANGLING_REFERENCE.
    """

    def __init__(
        self,
        state: LedgerState,
        id_factory: Optional[IdFactory] = None,
        clock: Optional[Clock] = None,
    ):
        self._state = state
        self._new_id = id_factory or new_id
        self._now = clock or utcnow

    def _apply(self, deltas: dict[str, Decimal]) -> tuple[dict[str, Decimal], list[str]]:
        """
        Apply deltas to the in-memory accounts.

        Returns (applied deltas, ids of accounts that do not exist).
        """
        positions = {account.id: idx for idx, account in enumerate(self._state.accounts)}
        accounts = list(self._state.accounts)
        applied: dict[str, Decimal] = {}
        missing: list[str] = []

        for account_id, delta in deltas.items():
            idx = positions.get(account_id)
            if idx is None:
                missing.append(account_id)
                continue
            account = accounts[idx]
            accounts[idx] = account.model_copy(update={"balance": account.balance + delta})
            applied[account_id] = delta

        self._state.accounts = accounts
        return applied, missing

    def _report_missing(self, missing: list[str], operation: str) -> None:
        for account_id in missing:
            self._state.activity.log_reference_not_found(
                entity_type="account",
                entity_id=account_id,
                operation=operation,
            )

    async def add_transaction(
        self,
        draft: Union[TransactionDraft, dict],
    ) -> OperationResult:
        """
        Record a transaction and apply its balance effect.

        Steps:
        1. Assign id and creation timestamp, compute the balance deltas
        2. Prepend (newest first) and apply the deltas
        3. Persist transactions and accounts in one write
        """
        if not isinstance(draft, TransactionDraft):
            draft = TransactionDraft.model_validate(draft)

        transaction = Transaction.from_draft(
            draft,
            transaction_id=self._new_id(),
            created_at=self._now(),
        )

        deltas = balance_deltas(transaction)
        self._state.transactions = [transaction, *self._state.transactions]
        applied, missing = self._apply(deltas)

        await self._state.persist(CollectionKey.TRANSACTIONS, CollectionKey.ACCOUNTS)

        activity = self._state.activity
        activity.log(ActivityEventBuilder.transaction_added(transaction, applied))
        if transaction.amount == ZERO:
            activity.log(ActivityEventBuilder.zero_amount_transaction(transaction.id))
        self._report_missing(missing, "add_transaction")

        if missing:
            return OperationResult.dangling(transaction.id, missing)
        return OperationResult.success(transaction.id)

    async def delete_transaction(self, transaction_id: str) -> OperationResult:
        """
        Delete a transaction and reverse its balance effect.

        An unknown id is a no-op reported as NOT_FOUND.
        """
        transaction = self._state.find_transaction(transaction_id)
        if transaction is None:
            self._state.activity.log_reference_not_found(
                entity_type="transaction",
                entity_id=transaction_id,
                operation="delete_transaction",
            )
            return OperationResult.not_found(transaction_id, "transaction")

        reverse_destination = self._state.settings.reverse_transfer_destination
        applied, missing = self._apply(
            reversal_deltas(transaction, reverse_destination=reverse_destination)
        )
        self._state.transactions = [
            tx for tx in self._state.transactions if tx.id != transaction_id
        ]

        await self._state.persist(CollectionKey.ACCOUNTS, CollectionKey.TRANSACTIONS)

        activity = self._state.activity
        activity.log(ActivityEventBuilder.transaction_deleted(transaction, applied))
        if transaction.is_transfer and transaction.to_account_id and not reverse_destination:
            activity.log(ActivityEventBuilder.transfer_leg_unreversed(transaction))
        self._report_missing(missing, "delete_transaction")

        if missing:
            return OperationResult.dangling(transaction_id, missing)
        return OperationResult.success(transaction_id)
