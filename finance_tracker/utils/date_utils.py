"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta
from typing import List

from dateutil.relativedelta import relativedelta


# Calendar offset applied by each limit period
PERIOD_OFFSETS = {
    "biweekly": relativedelta(days=14),
    "monthly": relativedelta(months=1),
    "bimonthly": relativedelta(months=2),
    "quarterly": relativedelta(months=3),
    "semiannual": relativedelta(months=6),
    "annual": relativedelta(years=1),
}


def add_period(start: date, period: str) -> date:
    """Add one limit period to a date (month arithmetic clamps to month end)"""
    try:
        return start + PERIOD_OFFSETS[period]
    except KeyError:
        raise ValueError(f"Unknown period: {period}")


def first_day_of_month(d: date) -> date:
    return d.replace(day=1)


def last_day_of_month(d: date) -> date:
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def day_in_month(year: int, month: int, day: int) -> date:
    """Build a date, clamping the day to the month length (e.g. day 31 in February)"""
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def month_key(d: date) -> str:
    """YYYY-MM key for grouping"""
    return d.strftime("%Y-%m")


def last_n_months(today: date, n: int) -> List[str]:
    """Month keys for the last n months, oldest first, ending with today's month"""
    return [month_key(today - relativedelta(months=i)) for i in range(n - 1, -1, -1)]


def parse_month_key(key: str) -> date:
    """First day of the month for a YYYY-MM key"""
    year, month = key.split("-")
    return date(int(year), int(month), 1)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def subtract_days(d: date, days: int) -> date:
    return d - timedelta(days=days)
