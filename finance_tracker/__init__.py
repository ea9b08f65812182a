"""
Finance Tracker - Source Package

A personal-finance tracker: accounts, cards, transactions, savings goals
and spending limits, plus an assistant that turns free-text statements
into structured commands.

DESIGN PRINCIPLES:
1. Balances move only through the ledger
2. Fail early, fail visibly (unknown references are errors, not no-ops)
3. Derived values are computed, not trusted from storage
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
