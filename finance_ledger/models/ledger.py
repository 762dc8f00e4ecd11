"""
Core Data Models for Finance Ledger

These models define the schemas for every entity the ledger keeps:
accounts, transactions, budgets and savings goals, plus the drafts and
partial updates that create and modify them.

DESIGN DECISION: Python attributes are snake_case, but the persisted
form uses camelCase aliases (accountId, isExcludedFromTotal, ...).
Stored collections and backup files keep one wire format no matter
which store backend wrote them.
"""

import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


ZERO = Decimal("0")
CENT = Decimal("0.01")

# Amounts stay below 1e15 and balances below 1e25. At cent scale every
# sum the ledger computes then fits the 28 significant digits of the
# default decimal context, so balance arithmetic is exact.
MAX_AMOUNT_EXPONENT = 14
MAX_BALANCE_EXPONENT = 24


def _to_cents(value: Any, max_exponent: int) -> Decimal:
    """Parse a value into a cent-scale Decimal; anything unusable is zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not number.is_finite() or not number:
        return ZERO
    if number.adjusted() > max_exponent:
        return ZERO
    return number.quantize(CENT, rounding=ROUND_HALF_UP)


def coerce_amount(value: Any) -> Decimal:
    """
    Normalize a user-supplied amount to a non-negative Decimal in cents.

    Missing, non-numeric, non-finite, negative and out-of-range values
    become zero. Amounts are never rejected.
    """
    amount = _to_cents(value, MAX_AMOUNT_EXPONENT)
    return amount if amount > 0 else ZERO


def coerce_balance(value: Any) -> Decimal:
    """Normalize a stored balance to cents; balances are signed."""
    balance = _to_cents(value, MAX_BALANCE_EXPONENT)
    return balance if balance else ZERO


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """Kinds of money containers a user can track."""
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"
    WALLET = "wallet"


class TransactionType(str, Enum):
    """
    Transaction kinds.

    SAVINGS is a transfer: it moves money from account_id to to_account_id.
    """
    INCOME = "income"
    EXPENSE = "expense"
    SAVINGS = "savings"


class BudgetPeriod(str, Enum):
    """Period a budget limit applies to."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class OperationStatus(str, Enum):
    """Outcome of a ledger operation."""
    OK = "ok"
    NOT_FOUND = "not_found"                    # target entity does not exist
    DANGLING_REFERENCE = "dangling_reference"  # applied, but a referenced account is missing


# =============================================================================
# BASE MODELS
# =============================================================================

class LedgerModel(BaseModel):
    """Base for everything the ledger persists."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_store(self) -> dict:
        """Convert to the JSON-compatible dict written to the entity store."""
        return self.model_dump(mode="json", by_alias=True)


class PartialUpdate(LedgerModel):
    """
    Base for partial updates.

    Only fields the caller explicitly set are merged. None is ignored
    unless the field is listed in NULLABLE_FIELDS, where it clears the value.
    """

    NULLABLE_FIELDS: ClassVar[frozenset[str]] = frozenset()

    def changes(self) -> dict[str, Any]:
        return {
            name: value
            for name, value in self.model_dump(exclude_unset=True).items()
            if value is not None or name in self.NULLABLE_FIELDS
        }


# =============================================================================
# ACCOUNTS
# =============================================================================

class AccountDraft(LedgerModel):
    """Input for creating an account. The id is assigned by the ledger."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name (required, not blank)"
    )
    type: AccountType = AccountType.CHECKING
    balance: Decimal = Field(
        default=ZERO,
        description="Opening balance"
    )
    currency: str = Field(default="USD", min_length=3, max_length=3)
    color: str = "blue"
    icon: str = "wallet"
    is_excluded_from_total: bool = False

    @field_validator("balance", mode="before")
    @classmethod
    def normalize_balance(cls, v: Any) -> Decimal:
        return coerce_balance(v)


class Account(AccountDraft):
    """
    A monetary account.

    CRITICAL: balance is only moved by the transaction engine, or by an
    explicit correction through update_account.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Immutable identifier"
    )


class AccountUpdate(PartialUpdate):
    """Partial update for an account. The id can never change."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[AccountType] = None
    balance: Optional[Decimal] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    color: Optional[str] = None
    icon: Optional[str] = None
    is_excluded_from_total: Optional[bool] = None

    @field_validator("balance", mode="before")
    @classmethod
    def normalize_balance(cls, v: Any) -> Optional[Decimal]:
        return None if v is None else coerce_balance(v)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(LedgerModel):
    """
    Input for recording a transaction.

    A missing or invalid amount becomes zero instead of failing.
    """

    type: TransactionType
    amount: Decimal = ZERO
    account_id: str
    to_account_id: Optional[str] = Field(
        default=None,
        description="Destination account, only meaningful for savings transfers"
    )
    category: str = ""
    description: str = ""
    date: datetime.date = Field(default_factory=datetime.date.today)
    tags: list[str] = Field(default_factory=list)

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount(cls, v: Any) -> Decimal:
        return coerce_amount(v)

    @model_validator(mode="after")
    def drop_meaningless_destination(self) -> "TransactionDraft":
        """to_account_id only means something for savings transfers."""
        if self.type != TransactionType.SAVINGS:
            self.to_account_id = None
        return self


class Transaction(LedgerModel):
    """
    A recorded transaction.

    Immutable: transactions are only ever added or deleted as a whole.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    type: TransactionType
    amount: Decimal = Field(default=ZERO, ge=0)
    account_id: str
    to_account_id: Optional[str] = None
    category: str = ""
    description: str = ""
    date: datetime.date
    tags: list[str] = Field(default_factory=list)
    created_at: datetime.datetime

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount(cls, v: Any) -> Decimal:
        return coerce_amount(v)

    @property
    def is_transfer(self) -> bool:
        return self.type == TransactionType.SAVINGS

    @classmethod
    def from_draft(
        cls,
        draft: TransactionDraft,
        transaction_id: str,
        created_at: datetime.datetime,
    ) -> "Transaction":
        return cls(
            id=transaction_id,
            created_at=created_at,
            **draft.model_dump(),
        )


# =============================================================================
# BUDGETS AND SAVINGS GOALS
# =============================================================================

class BudgetDraft(LedgerModel):
    """Input for creating a budget."""

    category: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(default=ZERO, ge=0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    color: str = "blue"


class Budget(BudgetDraft):
    """A spending limit for one category."""

    id: str = Field(..., min_length=1)


class BudgetUpdate(PartialUpdate):
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    period: Optional[BudgetPeriod] = None
    color: Optional[str] = None


class SavingsGoalDraft(LedgerModel):
    """Input for creating a savings goal."""

    name: str = Field(..., min_length=1, max_length=100)
    target_amount: Decimal = Field(default=ZERO, ge=0)
    current_amount: Decimal = ZERO
    deadline: Optional[datetime.date] = None
    color: str = "green"
    icon: str = "piggy-bank"


class SavingsGoal(SavingsGoalDraft):
    """A savings target. Progress is tracked by hand, not by transactions."""

    id: str = Field(..., min_length=1)

    @property
    def progress(self) -> Decimal:
        """Fraction of the target reached, capped at 1."""
        if self.target_amount == 0:
            return ZERO
        ratio = self.current_amount / self.target_amount
        return min(max(ratio, ZERO), Decimal("1"))


class SavingsGoalUpdate(PartialUpdate):
    NULLABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"deadline"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    target_amount: Optional[Decimal] = Field(default=None, ge=0)
    current_amount: Optional[Decimal] = None
    deadline: Optional[datetime.date] = None
    color: Optional[str] = None
    icon: Optional[str] = None


# =============================================================================
# OPERATION RESULTS
# =============================================================================

class OperationResult(BaseModel):
    """
    Tagged outcome of a ledger operation.

    Missing references never raise. Callers check the status to tell
    "nothing needed to happen" apart from "the reference was dangling".
    """

    status: OperationStatus
    entity_id: Optional[str] = None
    missing_references: list[str] = Field(default_factory=list)
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.OK

    @property
    def found(self) -> bool:
        return self.status != OperationStatus.NOT_FOUND

    @classmethod
    def success(cls, entity_id: str, message: str = "") -> "OperationResult":
        return cls(status=OperationStatus.OK, entity_id=entity_id, message=message)

    @classmethod
    def not_found(cls, entity_id: str, entity_type: str) -> "OperationResult":
        return cls(
            status=OperationStatus.NOT_FOUND,
            entity_id=entity_id,
            missing_references=[entity_id],
            message=f"{entity_type.capitalize()} not found: {entity_id}",
        )

    @classmethod
    def dangling(cls, entity_id: str, missing: list[str]) -> "OperationResult":
        return cls(
            status=OperationStatus.DANGLING_REFERENCE,
            entity_id=entity_id,
            missing_references=missing,
            message=f"Referenced account(s) not found: {', '.join(missing)}",
        )
