"""Display formatting for user-facing messages"""

from datetime import date
from decimal import Decimal
from typing import Optional


def format_money(amount, symbol: str = "R$") -> str:
    """'R$ 1,234.50' style amount (negative sign before the symbol)"""
    value = Decimal(str(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol} {abs(value):,.2f}"


def format_date(d: Optional[date], fmt: str = "%d/%m/%Y") -> str:
    return d.strftime(fmt) if d else "-"
