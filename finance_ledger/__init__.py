"""
Finance Ledger - Source Package

A personal-finance ledger that tracks accounts, transactions, budgets
and savings goals, and keeps every account balance consistent with the
transaction history that references it.

DESIGN PRINCIPLES:
1. Balances move only in lockstep with transactions
2. Dangling references are reported, never raised
3. State is an explicit object, not a global
4. Every mutation is logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Ledger Team"
