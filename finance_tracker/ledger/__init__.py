"""
Ledger package.

Import the engine from finance_tracker.ledger.engine; this package
only re-exports the pieces with no store dependency.
"""

from finance_tracker.ledger.errors import (
    InvalidAmountError,
    InvalidTransactionError,
    LedgerError,
    UnknownCategoryError,
    UnknownReferenceError,
)
from finance_tracker.ledger.goals import GoalProjector
from finance_tracker.ledger.limits import LimitCycleManager

__all__ = [
    "GoalProjector",
    "InvalidAmountError",
    "InvalidTransactionError",
    "LedgerError",
    "LimitCycleManager",
    "UnknownCategoryError",
    "UnknownReferenceError",
]
