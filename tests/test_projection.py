"""Tests for totals and currency formatting."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from finance_ledger.ledger import (
    format_currency,
    get_total_balance,
    recent_transactions,
    sum_by_type,
)
from finance_ledger.models import Account, Transaction, TransactionType


def make_account(account_id, balance, excluded=False):
    return Account(
        id=account_id,
        name=f"Account {account_id}",
        balance=Decimal(str(balance)),
        is_excluded_from_total=excluded,
    )


def make_tx(tx_id, tx_type, amount):
    return Transaction(
        id=tx_id,
        type=tx_type,
        amount=Decimal(str(amount)),
        account_id="a",
        date=date(2024, 12, 1),
        created_at=datetime(2024, 12, 1, tzinfo=timezone.utc),
    )


class TestTotalBalance:
    """Tests for get_total_balance."""

    def test_sums_included_accounts(self):
        accounts = [make_account("a", 100), make_account("b", "-20.5")]
        assert get_total_balance(accounts) == Decimal("79.5")

    def test_excluded_accounts_do_not_count(self):
        accounts = [make_account("a", 100), make_account("b", 5000, excluded=True)]
        assert get_total_balance(accounts) == Decimal("100")

    def test_empty(self):
        assert get_total_balance([]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_total_follows_exclusion_flag(self, ledger):
        account = await ledger.add_account({"name": "Brokerage", "balance": 900})
        total = ledger.get_total_balance()

        await ledger.update_account(account.id, {"is_excluded_from_total": True})

        assert ledger.get_total_balance() == total - Decimal("900")


class TestFormatCurrency:
    """Tests for format_currency."""

    def test_usd(self):
        assert format_currency(1234.5, "USD") == "$1,234.50"

    def test_formatting_is_stable(self):
        assert format_currency(1234.5, "USD") == format_currency(1234.5, "USD")

    def test_negative(self):
        assert format_currency(Decimal("-1234.5"), "USD") == "-$1,234.50"

    def test_known_symbols(self):
        assert format_currency(10, "EUR") == "€10.00"
        assert format_currency(10, "GBP") == "£10.00"

    def test_unknown_code_uses_code(self):
        assert format_currency(1000000, "chf") == "CHF\u00a01,000,000.00"

    def test_rounds_half_up(self):
        assert format_currency("0.125", "USD") == "$0.13"

    def test_invalid_amount_formats_as_zero(self):
        assert format_currency(None, "USD") == "$0.00"

    def test_codes_without_symbol_render_like_en_us(self):
        assert format_currency(1234.5, "AED") == "AED\u00a01,234.50"
        assert format_currency(1234.5, "SAR") == "SAR\u00a01,234.50"

    def test_zero_fraction_currency(self):
        assert format_currency(1234.5, "JPY") == "¥1,235"
        assert format_currency(-99.4, "KRW") == "-KRW\u00a099"

    def test_largest_balance(self):
        value = Decimal("9999999999999999999999999.99")
        assert format_currency(value, "USD") == "$9" + ",999" * 8 + ".99"

    def test_out_of_range_amount_formats_as_zero(self):
        assert format_currency(Decimal("1e27"), "USD") == "$0.00"

    @pytest.mark.asyncio
    async def test_ledger_uses_display_currency(self, ledger):
        await ledger.set_currency("gbp")
        assert ledger.format_currency(5) == "£5.00"


class TestTransactionSummaries:
    """Tests for sum_by_type and recent_transactions."""

    def test_sum_by_type(self):
        txs = [
            make_tx("1", TransactionType.INCOME, 100),
            make_tx("2", TransactionType.EXPENSE, 30),
            make_tx("3", TransactionType.INCOME, "0.5"),
        ]
        assert sum_by_type(txs, TransactionType.INCOME) == Decimal("100.5")
        assert sum_by_type(txs, TransactionType.SAVINGS) == Decimal("0")

    def test_recent_transactions_limit(self):
        txs = [make_tx(str(i), TransactionType.EXPENSE, 1) for i in range(10)]
        recent = recent_transactions(txs)
        assert [tx.id for tx in recent] == [str(i) for i in range(8)]
        assert recent_transactions(txs, limit=0) == []
