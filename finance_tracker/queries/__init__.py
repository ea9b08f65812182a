"""Read-only report queries over stored records."""

from finance_tracker.queries.reports import (
    AnnualTotals,
    BalancePoint,
    CardInvoice,
    CashFlowPoint,
    CategoryTotal,
    GoalsOverview,
    LimitsOverview,
    annual_totals,
    balance_evolution,
    card_invoice,
    cash_flow,
    category_breakdown,
    filter_transactions,
    financial_summary,
    goals_overview,
    invoice_status,
    limits_overview,
    payment_source_name,
)

__all__ = [
    "AnnualTotals",
    "BalancePoint",
    "CardInvoice",
    "CashFlowPoint",
    "CategoryTotal",
    "GoalsOverview",
    "LimitsOverview",
    "annual_totals",
    "balance_evolution",
    "card_invoice",
    "cash_flow",
    "category_breakdown",
    "filter_transactions",
    "financial_summary",
    "goals_overview",
    "invoice_status",
    "limits_overview",
    "payment_source_name",
]
