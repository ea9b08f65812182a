"""
Data Models Package

This package contains all Pydantic models used in Finance Tracker.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.category import (
    Category,
    CategoryType,
    SubCategory,
)
from finance_tracker.models.financial import (
    Account,
    AccountType,
    Card,
    CardType,
    FinancialRecord,
    FinancialSummary,
    Goal,
    GoalPriority,
    GoalProjection,
    GoalStatus,
    InstallmentInfo,
    Limit,
    LimitPeriod,
    LimitStartType,
    LimitStatus,
    LimitUsage,
    PaymentMethod,
    Transaction,
    TransactionStatus,
    TransactionType,
    TransferInfo,
    new_id,
    to_money,
)

__all__ = [
    # Category models
    "Category",
    "CategoryType",
    "SubCategory",
    # Financial records
    "Account",
    "AccountType",
    "Card",
    "CardType",
    "FinancialRecord",
    "Goal",
    "GoalPriority",
    "GoalStatus",
    "InstallmentInfo",
    "Limit",
    "LimitPeriod",
    "LimitStartType",
    "PaymentMethod",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "TransferInfo",
    # Read models
    "FinancialSummary",
    "GoalProjection",
    "LimitStatus",
    "LimitUsage",
    # Helpers
    "new_id",
    "to_money",
]
