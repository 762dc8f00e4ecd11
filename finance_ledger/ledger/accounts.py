"""
Account CRUD

Accounts are created, corrected and removed here. Balances only change
through the transaction engine, except for explicit corrections made
with update_account.
"""

from typing import Optional, Union

from finance_ledger.ledger.engine import IdFactory, new_id
from finance_ledger.ledger.state import CollectionKey, LedgerState
from finance_ledger.models import (
    Account,
    AccountDraft,
    AccountUpdate,
    ActivityEventBuilder,
    OperationResult,
)


class AccountService:
    """Create, update and delete accounts."""

    def __init__(
        self,
        state: LedgerState,
        id_factory: Optional[IdFactory] = None,
    ):
        self._state = state
        self._new_id = id_factory or new_id

    async def add_account(self, draft: Union[AccountDraft, dict]) -> Account:
        """Append a new account with a fresh id and persist."""
        if not isinstance(draft, AccountDraft):
            draft = AccountDraft.model_validate(draft)

        account = Account(id=self._new_id(), **draft.model_dump())
        self._state.accounts = [*self._state.accounts, account]
        await self._state.persist(CollectionKey.ACCOUNTS)

        self._state.activity.log(ActivityEventBuilder.account_added(account))
        return account

    async def update_account(
        self,
        account_id: str,
        update: Union[AccountUpdate, dict],
    ) -> OperationResult:
        """
        Merge the set fields into an account and persist.

        Setting balance here is a correction: it bypasses the transaction
        engine, and the new balance becomes authoritative.
        """
        if not isinstance(update, AccountUpdate):
            update = AccountUpdate.model_validate(update)

        account = self._state.find_account(account_id)
        if account is None:
            self._state.activity.log_reference_not_found(
                entity_type="account",
                entity_id=account_id,
                operation="update_account",
            )
            return OperationResult.not_found(account_id, "account")

        changes = update.changes()
        updated = account.model_copy(update=changes)
        self._state.accounts = [
            updated if item.id == account_id else item
            for item in self._state.accounts
        ]
        await self._state.persist(CollectionKey.ACCOUNTS)

        self._state.activity.log(
            ActivityEventBuilder.account_updated(account_id, sorted(changes))
        )
        return OperationResult.success(account_id)

    async def delete_account(self, account_id: str) -> OperationResult:
        """
        Remove an account.

        Transactions that reference it are left untouched (orphans).
        """
        if self._state.find_account(account_id) is None:
            self._state.activity.log_reference_not_found(
                entity_type="account",
                entity_id=account_id,
                operation="delete_account",
            )
            return OperationResult.not_found(account_id, "account")

        self._state.accounts = [
            item for item in self._state.accounts if item.id != account_id
        ]
        await self._state.persist(CollectionKey.ACCOUNTS)

        orphaned = sum(
            1
            for tx in self._state.transactions
            if account_id in (tx.account_id, tx.to_account_id)
        )
        self._state.activity.log(
            ActivityEventBuilder.account_deleted(account_id, orphaned)
        )
        return OperationResult.success(account_id)
