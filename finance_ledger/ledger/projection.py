"""
Read-only projections over ledger state: totals and display formatting.

Everything here is a pure function of its arguments. Nothing is cached,
so a total always reflects the accounts passed in.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from finance_ledger.models import Account, Transaction, TransactionType, ZERO
from finance_ledger.models.ledger import coerce_balance


# en-US symbols; any other code renders as the code and a no-break space.
CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "CNY": "CN¥",
    "CAD": "CA$",
    "AUD": "A$",
}

# Codes rendered without minor units; everything else shows cents.
FRACTION_DIGITS = {
    "JPY": 0,
    "KRW": 0,
    "VND": 0,
    "CLP": 0,
    "ISK": 0,
}


def get_total_balance(accounts: Iterable[Account]) -> Decimal:
    """Sum of balances over accounts not excluded from the total."""
    return sum(
        (account.balance for account in accounts if not account.is_excluded_from_total),
        ZERO,
    )


def format_currency(amount: Any, currency_code: str) -> str:
    """
    Format an amount for display, en-US style.

    >>> format_currency(1234.5, "USD")
    '$1,234.50'
    >>> format_currency(-12, "CHF")
    '-CHF\\xa012.00'
    >>> format_currency(1234.5, "JPY")
    '¥1,235'
    """
    code = (currency_code or "").strip().upper()
    digits = FRACTION_DIGITS.get(code, 2)
    value = coerce_balance(amount).quantize(
        Decimal(1).scaleb(-digits),
        rounding=ROUND_HALF_UP,
    )
    symbol = CURRENCY_SYMBOLS.get(code, f"{code}\u00a0")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{digits}f}"


def sum_by_type(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType,
) -> Decimal:
    """Total amount of all transactions of one type."""
    return sum(
        (tx.amount for tx in transactions if tx.type == transaction_type),
        ZERO,
    )


def recent_transactions(
    transactions: list[Transaction],
    limit: int = 8,
) -> list[Transaction]:
    """The newest transactions; the list is already kept newest first."""
    return list(transactions[:max(limit, 0)])
