"""
Reports

DESIGN DECISION: Reports are pure reads.
Every function here takes records already loaded from the store and
returns a read model. Nothing in this module writes, so the numbers
shown to the user can always be recomputed from stored data.

The headline summary counts only settled transactions. The charts
(category breakdown, cash flow, annual totals) count every income or
expense, pending included, because they show commitments as well as
money that has moved.
"""

import datetime as dt
from datetime import date
from decimal import Decimal
from typing import Iterable, Literal, Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel

from finance_tracker.catalog import CategoryCatalog
from finance_tracker.ledger.engine import balance_effects
from finance_tracker.ledger.limits import LimitCycleManager
from finance_tracker.models import (
    Account,
    Card,
    FinancialSummary,
    Goal,
    GoalStatus,
    Limit,
    LimitStatus,
    PaymentMethod,
    Transaction,
    TransactionStatus,
    TransactionType,
    to_money,
)
from finance_tracker.utils.date_utils import (
    day_in_month,
    last_n_months,
    month_key,
    parse_month_key,
    subtract_days,
)


ZERO = Decimal("0.00")

Period = Literal["all", "today", "week", "month", "year"]
InvoiceStatus = Literal["overdue", "urgent", "warning", "ok", "unknown"]


# =============================================================================
# READ MODELS
# =============================================================================

class CategoryTotal(BaseModel):
    name: str
    value: Decimal


class CashFlowPoint(BaseModel):
    month: str  # YYYY-MM
    income: Decimal
    expenses: Decimal


class BalancePoint(BaseModel):
    date: dt.date
    balance: Decimal


class GoalsOverview(BaseModel):
    active_goals: int
    completed_goals: int
    total_goal_amount: Decimal
    total_saved_amount: Decimal
    average_progress: float


class LimitsOverview(BaseModel):
    active_limits: int
    exceeded_limits: int
    near_limits: int
    total_limit_amount: Decimal
    total_used_amount: Decimal


class AnnualTotals(BaseModel):
    year: int
    income: Decimal
    expenses: Decimal


class CardInvoice(BaseModel):
    card_id: str
    month: str
    transactions: list[Transaction]
    total: Decimal
    due_date: Optional[date] = None
    closing_date: Optional[date] = None
    days_until_due: Optional[int] = None
    status: InvoiceStatus


def _sum(amounts: Iterable[Decimal]) -> Decimal:
    return to_money(sum(amounts, ZERO))


# =============================================================================
# SUMMARY
# =============================================================================

def financial_summary(
    accounts: list[Account],
    transactions: list[Transaction],
    today: Optional[date] = None,
) -> FinancialSummary:
    """
    Headline figures.

    - total_balance: sum of every account balance
    - monthly_income / monthly_expenses: settled transactions dated in
      the current calendar month
    - total_received / total_paid: every settled transaction
    """
    today = today or date.today()
    current_month = month_key(today)

    received = [
        tx for tx in transactions
        if tx.type == TransactionType.INCOME and tx.status == TransactionStatus.RECEIVED
    ]
    paid = [
        tx for tx in transactions
        if tx.type == TransactionType.EXPENSE and tx.status == TransactionStatus.PAID
    ]

    return FinancialSummary(
        total_balance=_sum(account.balance for account in accounts),
        monthly_income=_sum(
            tx.amount for tx in received if month_key(tx.date) == current_month
        ),
        monthly_expenses=_sum(
            tx.amount for tx in paid if month_key(tx.date) == current_month
        ),
        total_received=_sum(tx.amount for tx in received),
        total_paid=_sum(tx.amount for tx in paid),
    )


# =============================================================================
# CHARTS
# =============================================================================

def category_breakdown(
    transactions: list[Transaction],
    catalog: CategoryCatalog,
) -> list[CategoryTotal]:
    """Expenses per category name, largest first."""
    totals: dict[str, Decimal] = {}
    for tx in transactions:
        if tx.type != TransactionType.EXPENSE:
            continue
        name = catalog.display_name(tx.category)
        totals[name] = totals.get(name, ZERO) + tx.amount

    return sorted(
        (CategoryTotal(name=name, value=to_money(value)) for name, value in totals.items()),
        key=lambda item: item.value,
        reverse=True,
    )


def cash_flow(
    transactions: list[Transaction],
    months: int = 6,
    today: Optional[date] = None,
) -> list[CashFlowPoint]:
    """Income and expenses per month for the last `months` months, oldest first."""
    today = today or date.today()
    keys = last_n_months(today, months)
    flow = {key: {"income": ZERO, "expenses": ZERO} for key in keys}

    for tx in transactions:
        bucket = flow.get(month_key(tx.date))
        if bucket is None:
            continue
        if tx.type == TransactionType.INCOME:
            bucket["income"] += tx.amount
        elif tx.type == TransactionType.EXPENSE:
            bucket["expenses"] += tx.amount

    return [
        CashFlowPoint(
            month=key,
            income=to_money(flow[key]["income"]),
            expenses=to_money(flow[key]["expenses"]),
        )
        for key in keys
    ]


def balance_evolution(
    accounts: list[Account],
    transactions: list[Transaction],
) -> list[BalancePoint]:
    """
    Running balance series.

    Only what the ledger moved on accounts counts: card, cash and pix
    payments leave the series flat. The opening point, the day before
    the first transaction, is the current account total minus every
    such change, so the last point is the current total. Empty without
    transactions.
    """
    ordered = sorted(transactions, key=lambda tx: tx.date)
    if not ordered:
        return []

    account_ids = {account.id for account in accounts}
    deltas = [
        _sum(
            effect.delta for effect in balance_effects(tx)
            if effect.collection == "accounts" and effect.record_id in account_ids
        )
        for tx in ordered
    ]

    running = to_money(_sum(account.balance for account in accounts) - _sum(deltas))
    points = [BalancePoint(date=subtract_days(ordered[0].date, 1), balance=running)]

    for tx, delta in zip(ordered, deltas):
        running = to_money(running + delta)
        points.append(BalancePoint(date=tx.date, balance=running))

    return points


def annual_totals(
    transactions: list[Transaction],
    year: Optional[int] = None,
) -> AnnualTotals:
    year = year or date.today().year
    in_year = [tx for tx in transactions if tx.date.year == year]
    return AnnualTotals(
        year=year,
        income=_sum(tx.amount for tx in in_year if tx.type == TransactionType.INCOME),
        expenses=_sum(tx.amount for tx in in_year if tx.type == TransactionType.EXPENSE),
    )


# =============================================================================
# GOALS AND LIMITS
# =============================================================================

def goals_overview(goals: list[Goal]) -> GoalsOverview:
    active = [goal for goal in goals if goal.status == GoalStatus.ACTIVE]
    completed = [goal for goal in goals if goal.status == GoalStatus.COMPLETED]

    average = 0.0
    if active:
        average = sum(
            float(goal.current_amount / goal.target_amount * 100) for goal in active
        ) / len(active)

    return GoalsOverview(
        active_goals=len(active),
        completed_goals=len(completed),
        total_goal_amount=_sum(goal.target_amount for goal in active),
        total_saved_amount=_sum(goal.current_amount for goal in active),
        average_progress=round(average, 2),
    )


def limits_overview(limits: list[Limit]) -> LimitsOverview:
    active = [limit for limit in limits if limit.is_active]
    statuses = [LimitCycleManager().classify(limit) for limit in active]
    exceeded = [status for status in statuses if status == LimitStatus.EXCEEDED]
    near = [status for status in statuses if status == LimitStatus.NEAR]

    return LimitsOverview(
        active_limits=len(active),
        exceeded_limits=len(exceeded),
        near_limits=len(near),
        total_limit_amount=_sum(limit.limit_amount for limit in active),
        total_used_amount=_sum(limit.current_amount for limit in active),
    )


# =============================================================================
# CARDS
# =============================================================================

def invoice_status(
    days_until_due: Optional[int],
    urgent_days: int = 3,
    warning_days: int = 7,
) -> InvoiceStatus:
    if days_until_due is None:
        return "unknown"
    if days_until_due < 0:
        return "overdue"
    if days_until_due <= urgent_days:
        return "urgent"
    if days_until_due <= warning_days:
        return "warning"
    return "ok"


def card_invoice(
    card: Card,
    transactions: list[Transaction],
    month: Optional[str] = None,
    today: Optional[date] = None,
    urgent_days: int = 3,
    warning_days: int = 7,
) -> CardInvoice:
    """
    Card expenses for one month (YYYY-MM, default current), with the
    due and closing dates of that month and how close the due date is.
    """
    today = today or date.today()
    month = month or month_key(today)
    first = parse_month_key(month)

    card_txs = sorted(
        (
            tx for tx in transactions
            if tx.payment_method == PaymentMethod.CARD
            and tx.payment_source == card.id
            and tx.type == TransactionType.EXPENSE
            and month_key(tx.date) == month
        ),
        key=lambda tx: tx.date,
        reverse=True,
    )

    due_date = day_in_month(first.year, first.month, card.due_day) if card.due_day else None
    closing_date = (
        day_in_month(first.year, first.month, card.closing_day) if card.closing_day else None
    )
    days_until_due = (due_date - today).days if due_date else None

    return CardInvoice(
        card_id=card.id,
        month=month,
        transactions=card_txs,
        total=_sum(tx.amount for tx in card_txs),
        due_date=due_date,
        closing_date=closing_date,
        days_until_due=days_until_due,
        status=invoice_status(days_until_due, urgent_days, warning_days),
    )


# =============================================================================
# HISTORY
# =============================================================================

def payment_source_name(
    tx: Transaction,
    accounts: list[Account],
    cards: list[Card],
) -> str:
    if tx.type == TransactionType.TRANSFER and tx.transfer_info:
        names = {account.id: account.name for account in accounts}
        info = tx.transfer_info
        return (
            f"{names.get(info.from_account_id, 'Account')} -> "
            f"{names.get(info.to_account_id, 'Account')}"
        )
    if tx.payment_method == PaymentMethod.CASH:
        return "Cash"
    if tx.payment_method == PaymentMethod.PIX:
        return "PIX"
    if tx.payment_method == PaymentMethod.ACCOUNT:
        account = next((a for a in accounts if a.id == tx.payment_source), None)
        return account.name if account else "Account"
    card = next((c for c in cards if c.id == tx.payment_source), None)
    return card.name if card else "Card"


def _period_start(period: Period, today: date) -> Optional[date]:
    if period == "today":
        return today
    if period == "week":
        return subtract_days(today, 7)
    if period == "month":
        return today - relativedelta(months=1)
    if period == "year":
        return today - relativedelta(years=1)
    return None


def filter_transactions(
    transactions: list[Transaction],
    catalog: CategoryCatalog,
    accounts: list[Account],
    cards: list[Card],
    period: Period = "all",
    type: Optional[TransactionType] = None,
    search: str = "",
    today: Optional[date] = None,
) -> list[Transaction]:
    """
    Transaction history filtered by period, type and free-text search,
    newest first.

    Search matches title, description, category display name and
    payment source name, case-insensitively.
    """
    today = today or date.today()
    start = _period_start(period, today)
    needle = search.strip().lower()

    def matches(tx: Transaction) -> bool:
        if period == "today" and tx.date != today:
            return False
        if start is not None and tx.date < start:
            return False
        if type is not None and tx.type != type:
            return False
        if not needle:
            return True
        haystack = [
            tx.title,
            tx.description or "",
            catalog.display_name(tx.category, tx.subcategory),
            payment_source_name(tx, accounts, cards),
        ]
        return any(needle in text.lower() for text in haystack)

    return sorted(
        (tx for tx in transactions if matches(tx)),
        key=lambda tx: tx.date,
        reverse=True,
    )

