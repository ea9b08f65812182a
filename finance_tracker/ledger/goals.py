"""
Goal Projector

Answers "will I get there in time?" for a savings goal from its target,
what is already saved and the planned monthly contribution. Months are
counted as 30-day blocks and always rounded up.
"""

import math
from datetime import date
from decimal import Decimal
from typing import Optional

from finance_tracker.config import get_settings
from finance_tracker.models import Goal, GoalProjection
from finance_tracker.utils.date_utils import days_between
from finance_tracker.utils.formatting import format_money


DAYS_PER_MONTH = 30


class GoalProjector:
    """Derives feasibility figures for goals."""

    def __init__(
        self,
        currency_symbol: Optional[str] = None,
        date_format: Optional[str] = None,
    ):
        settings = get_settings().app
        self.currency_symbol = currency_symbol or settings.currency_symbol
        self.date_format = date_format or settings.date_format

    def estimate_months(
        self,
        target: Decimal,
        current: Decimal,
        monthly: Decimal,
    ) -> int:
        """Months of contributions still needed; 0 without a contribution."""
        if monthly <= 0:
            return 0
        return max(math.ceil((target - current) / monthly), 0)

    def months_available(self, target_date: date, today: date) -> int:
        return math.ceil(days_between(today, target_date) / DAYS_PER_MONTH)

    def required_monthly(
        self,
        target: Decimal,
        current: Decimal,
        months_available: int,
    ) -> int:
        if months_available <= 0:
            return 0
        return max(math.ceil((target - current) / months_available), 0)

    def progress_percentage(self, goal: Goal) -> float:
        pct = float(goal.current_amount / goal.target_amount * 100)
        return round(min(max(pct, 0.0), 100.0), 2)

    def _money(self, value) -> str:
        return format_money(value, self.currency_symbol)

    def suggestion(
        self,
        goal: Goal,
        months_available: int,
        required_monthly: int,
    ) -> str:
        target_date = goal.target_date.strftime(self.date_format)
        if months_available <= 0:
            missing = max(goal.target_amount - goal.current_amount, Decimal("0"))
            return (
                f"The target date {target_date} has already passed and "
                f"{self._money(missing)} is still missing. "
                f"Consider setting a new target date."
            )
        return (
            f"To reach your goal by {target_date}, you would need to save "
            f"{self._money(required_monthly)} per month instead of "
            f"{self._money(goal.monthly_contribution)}."
        )

    def project(self, goal: Goal, today: Optional[date] = None) -> GoalProjection:
        today = today or date.today()

        estimated = self.estimate_months(
            goal.target_amount, goal.current_amount, goal.monthly_contribution
        )
        available = self.months_available(goal.target_date, today)
        realistic = estimated <= available
        required = self.required_monthly(
            goal.target_amount, goal.current_amount, available
        )

        return GoalProjection(
            estimated_months=estimated,
            months_available=available,
            is_realistic=realistic,
            required_monthly=required,
            progress_percentage=self.progress_percentage(goal),
            days_remaining=max(days_between(today, goal.target_date), 0),
            suggestion=None if realistic else self.suggestion(goal, available, required),
        )

    def refresh(self, goal: Goal, today: Optional[date] = None) -> Goal:
        """Write the derived fields onto the goal and return it."""
        projection = self.project(goal, today)
        goal.estimated_months = projection.estimated_months
        goal.is_realistic = projection.is_realistic
        goal.ai_suggestion = projection.suggestion
        return goal
