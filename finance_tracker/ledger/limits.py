"""
Limit Cycle Manager

Pure date and percentage logic for spending limits:
- Where a cycle starts (today, first or last day of the month)
- When it resets (start + period, pinned to the anchor day of the month)
- How much of the limit is used and which status that means
- Rolling a limit into its next cycle once the reset date has passed
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from finance_tracker.log import get_logger
from finance_tracker.models import (
    Limit,
    LimitPeriod,
    LimitStartType,
    LimitStatus,
    LimitUsage,
    to_money,
)
from finance_tracker.utils.date_utils import (
    add_period,
    day_in_month,
    first_day_of_month,
    last_day_of_month,
)


STATUS_LABELS = {
    LimitStatus.OK: "Within limit",
    LimitStatus.NEAR: "Close to limit",
    LimitStatus.EXCEEDED: "Limit exceeded",
}

PERIOD_LABELS = {
    LimitPeriod.BIWEEKLY: "Biweekly",
    LimitPeriod.MONTHLY: "Monthly",
    LimitPeriod.BIMONTHLY: "Bimonthly",
    LimitPeriod.QUARTERLY: "Quarterly",
    LimitPeriod.SEMIANNUAL: "Semiannual",
    LimitPeriod.ANNUAL: "Annual",
}

logger = get_logger(__name__)


class LimitCycleManager:
    """Cycle and usage computations for limits."""

    def resolve_start_date(self, start: date, start_type: LimitStartType) -> date:
        if start_type == LimitStartType.FIRST_DAY:
            return first_day_of_month(start)
        if start_type == LimitStartType.LAST_DAY:
            return last_day_of_month(start)
        return start

    def compute_reset_date(
        self,
        start: date,
        period: LimitPeriod,
        anchor_day: Optional[int] = None,
    ) -> date:
        """
        Start of the next cycle. Month-based periods land on anchor_day
        (clamped to the month length), so a cycle pinned to the 31st goes
        Jan 31, Feb 28, Mar 31 instead of settling on the 28th.
        """
        period = LimitPeriod(period)
        next_start = add_period(start, period.value)
        if anchor_day is None or period == LimitPeriod.BIWEEKLY:
            return next_start
        return day_in_month(next_start.year, next_start.month, anchor_day)

    def usage_percentage(self, limit: Limit) -> float:
        """Share of the limit used, capped at 100."""
        if limit.limit_amount <= 0:
            return 100.0
        pct = float(limit.current_amount / limit.limit_amount * 100)
        return min(pct, 100.0)

    def classify(self, limit: Limit) -> LimitStatus:
        if limit.current_amount >= limit.limit_amount:
            return LimitStatus.EXCEEDED
        if self.usage_percentage(limit) >= limit.alert_threshold:
            return LimitStatus.NEAR
        return LimitStatus.OK

    def usage(self, limit: Limit) -> LimitUsage:
        return LimitUsage(
            limit_id=limit.id,
            usage_percentage=round(self.usage_percentage(limit), 2),
            remaining=to_money(limit.limit_amount - limit.current_amount),
            status=self.classify(limit),
        )

    def status_label(self, limit: Limit) -> str:
        return STATUS_LABELS[self.classify(limit)]

    def prepare(self, limit: Limit, today: Optional[date] = None) -> Limit:
        """
        Anchor a new or edited limit: resolve its start date from the
        start type, recompute the reset date, then catch up on any
        cycles that have already ended.
        """
        limit.start_date = self.resolve_start_date(limit.start_date, limit.start_type)
        limit.anchor_day = (
            31 if limit.start_type == LimitStartType.LAST_DAY else limit.start_date.day
        )
        limit.reset_date = self.compute_reset_date(
            limit.start_date, limit.period, limit.anchor_day
        )
        self.roll_over(limit, today or date.today())
        return limit

    def roll_over(self, limit: Limit, today: date) -> bool:
        """
        Advance a limit whose cycle has ended.

        Every elapsed cycle moves start_date to the old reset_date,
        computes the next reset_date and zeroes current_amount.

        Returns:
            True if the limit changed
        """
        if limit.reset_date is None:
            limit.reset_date = self.compute_reset_date(
                limit.start_date, limit.period, limit.anchor_day
            )

        cycles = 0
        while today >= limit.reset_date:
            limit.start_date = limit.reset_date
            limit.reset_date = self.compute_reset_date(
                limit.start_date, limit.period, limit.anchor_day
            )
            cycles += 1

        if cycles == 0:
            return False

        limit.current_amount = Decimal("0.00")
        logger.info(
            "limit_rolled_over",
            limit_id=limit.id,
            cycles=cycles,
            start_date=limit.start_date.isoformat(),
            reset_date=limit.reset_date.isoformat(),
        )
        return True
