"""
Core Data Models for Finance Tracker

These models define the strict schemas for every record the ledger touches.
They are designed to:
1. Enforce type safety and record-level invariants at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

Money is always a Decimal quantized to 2 places; floats never reach the ledger.
"""

import datetime as dt
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Any, Optional
from uuid import uuid4

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from finance_tracker.utils.date_utils import add_period


CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Quantize a value to 2 decimal places (half-up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def new_id() -> str:
    """Generate a unique entity id."""
    return uuid4().hex


Money = Annotated[Decimal, AfterValidator(to_money)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    INVESTMENT = "investment"


class CardType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class PaymentMethod(str, Enum):
    """
    How a transaction was paid.

    Only ACCOUNT and CARD reference a stored record; CASH and PIX never
    move a tracked balance.
    """
    ACCOUNT = "account"
    CARD = "card"
    CASH = "cash"
    PIX = "pix"


class TransactionStatus(str, Enum):
    """
    PAID and RECEIVED mean the money has moved (settled).
    PENDING transactions have no balance effect.
    """
    PAID = "paid"
    RECEIVED = "received"
    PENDING = "pending"


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class LimitPeriod(str, Enum):
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"


class LimitStartType(str, Enum):
    """How the start date of a limit cycle is anchored."""
    TODAY = "today"
    FIRST_DAY = "first_day"   # First day of the start month
    LAST_DAY = "last_day"     # Last day of the start month


class LimitStatus(str, Enum):
    OK = "ok"
    NEAR = "near"
    EXCEEDED = "exceeded"


# =============================================================================
# BASE
# =============================================================================

class FinancialRecord(BaseModel):
    """Base for every stored record: stripped strings, empty optionals become None."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_id,
        description="Unique record ID"
    )

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data: Any) -> Any:
        """UI forms send '' for untouched optional fields."""
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and not value.strip() else value)
                for key, value in data.items()
            }
        return data


# =============================================================================
# ACCOUNTS AND CARDS
# =============================================================================

class Account(FinancialRecord):
    """
    A bank account.

    The balance is given once at creation and afterwards only
    moves through the ledger.
    """

    name: str = Field(..., min_length=1, max_length=200)
    balance: Money = Field(
        default=Decimal("0.00"),
        description="Signed balance"
    )
    type: AccountType = AccountType.CHECKING
    bank: Optional[str] = Field(default=None, max_length=100)


class Card(FinancialRecord):
    """
    A credit or debit card.

    `used` tracks settled card expenses. Overspending is allowed:
    `available` simply goes negative.
    """

    name: str = Field(..., min_length=1, max_length=200)
    limit: Money = Field(default=Decimal("0.00"), ge=0)
    used: Money = Field(default=Decimal("0.00"), ge=0)
    type: CardType = CardType.CREDIT
    bank: Optional[str] = Field(default=None, max_length=100)
    due_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Day of month the invoice is due"
    )
    closing_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Day of month the invoice closes"
    )

    @property
    def available(self) -> Decimal:
        return to_money(self.limit - self.used)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class InstallmentInfo(BaseModel):
    current: int = Field(..., ge=1)
    total: int = Field(..., ge=1)

    @model_validator(mode="after")
    def validate_order(self) -> "InstallmentInfo":
        if self.current > self.total:
            raise ValueError("Installment number cannot exceed total installments")
        return self


class TransferInfo(BaseModel):
    from_account_id: str = Field(..., min_length=1)
    to_account_id: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_distinct(self) -> "TransferInfo":
        if self.from_account_id == self.to_account_id:
            raise ValueError("Transfer source and destination accounts must differ")
        return self


class Transaction(FinancialRecord):
    """
    A single income, expense or transfer.

    Invariants:
    - transfer_info is present iff type == transfer
    - payment_source is required when payment_method is account or card
      (transfers use transfer_info instead)
    """

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    user_description: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Original free text typed by the user (assistant flow)"
    )
    amount: Money = Field(..., gt=0)
    type: TransactionType
    category: str = Field(..., min_length=1)
    subcategory: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_source: Optional[str] = Field(
        default=None,
        description="Account or card id, depending on payment_method"
    )
    status: TransactionStatus
    date: dt.date = Field(default_factory=dt.date.today)
    is_recurring: bool = False
    is_installment: bool = False
    installment_info: Optional[InstallmentInfo] = None
    transfer_info: Optional[TransferInfo] = None
    limit_accruals: dict[str, dt.date] = Field(
        default_factory=dict,
        description="Limit id -> start of the cycle this transaction was counted in (ledger-owned)"
    )

    @model_validator(mode="after")
    def validate_references(self) -> "Transaction":
        if self.type == TransactionType.TRANSFER:
            if self.transfer_info is None:
                raise ValueError("Transfers require transfer_info with both account ids")
        elif self.transfer_info is not None:
            raise ValueError("transfer_info is only allowed on transfers")

        if (
            self.type != TransactionType.TRANSFER
            and self.payment_method in (PaymentMethod.ACCOUNT, PaymentMethod.CARD)
            and not self.payment_source
        ):
            raise ValueError(
                f"payment_source is required when paying by {self.payment_method.value}"
            )

        if self.is_installment and self.installment_info is None:
            raise ValueError("Installment transactions require installment_info")
        return self

    @property
    def is_settled(self) -> bool:
        return self.status in (TransactionStatus.PAID, TransactionStatus.RECEIVED)


# =============================================================================
# GOALS AND LIMITS
# =============================================================================

class Goal(FinancialRecord):
    """
    A savings goal.

    estimated_months, is_realistic and ai_suggestion are derived by the
    goal projector on every read and write; values given by callers are
    overwritten.
    """

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    image_url: Optional[str] = None
    target_amount: Money = Field(..., gt=0)
    current_amount: Money = Field(default=Decimal("0.00"), ge=0)
    monthly_contribution: Money = Field(default=Decimal("0.00"), ge=0)
    target_date: date
    category: str = Field(..., min_length=1)
    priority: GoalPriority = GoalPriority.MEDIUM
    status: GoalStatus = GoalStatus.ACTIVE
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Derived
    estimated_months: int = 0
    is_realistic: bool = True
    ai_suggestion: Optional[str] = None


class Limit(FinancialRecord):
    """
    A spending limit on a category (optionally narrowed to a subcategory).

    current_amount is not capped: going over limit_amount is the
    'exceeded' signal.
    """

    title: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1)
    subcategory: Optional[str] = None
    limit_amount: Money = Field(..., gt=0)
    current_amount: Money = Field(default=Decimal("0.00"), ge=0)
    period: LimitPeriod = LimitPeriod.MONTHLY
    alert_threshold: int = Field(default=80, ge=1, le=100)
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    start_date: date = Field(default_factory=date.today)
    reset_date: Optional[date] = Field(
        default=None,
        description="Computed from start_date + period when not given"
    )
    start_type: LimitStartType = LimitStartType.TODAY
    anchor_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Day of month every cycle starts on (clamped to short months)"
    )

    @model_validator(mode="after")
    def fill_cycle_fields(self) -> "Limit":
        if self.anchor_day is None:
            self.anchor_day = (
                31 if self.start_type == LimitStartType.LAST_DAY else self.start_date.day
            )
        if self.reset_date is None:
            self.reset_date = add_period(self.start_date, self.period.value)
        return self

    def matches(self, category: str, subcategory: Optional[str]) -> bool:
        """Does an expense with this category/subcategory count against the limit?"""
        if self.category != category:
            return False
        return self.subcategory is None or self.subcategory == subcategory


# =============================================================================
# READ MODELS
# =============================================================================

class FinancialSummary(BaseModel):
    """Headline figures for the overview screen."""

    total_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    total_received: Decimal
    total_paid: Decimal


class GoalProjection(BaseModel):
    """Derived feasibility figures for a goal."""

    estimated_months: int
    months_available: int
    is_realistic: bool
    required_monthly: int
    progress_percentage: float = Field(ge=0.0, le=100.0)
    days_remaining: int
    suggestion: Optional[str] = None


class LimitUsage(BaseModel):
    """Derived usage figures for a limit."""

    limit_id: str
    usage_percentage: float = Field(ge=0.0, le=100.0)
    remaining: Decimal
    status: LimitStatus

    @field_validator("remaining")
    @classmethod
    def quantize_remaining(cls, v: Decimal) -> Decimal:
        return to_money(v)
