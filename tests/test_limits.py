"""Tests for limit cycles, usage and rollover."""

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.ledger import LimitCycleManager
from finance_tracker.models import Limit, LimitPeriod, LimitStartType, LimitStatus


@pytest.fixture
def cycles():
    return LimitCycleManager()


def make_limit(**overrides):
    data = {
        "title": "Food",
        "category": "alimentacao",
        "limit_amount": "400",
        "start_date": date(2025, 1, 10),
    }
    data.update(overrides)
    return Limit.model_validate(data)


class TestResetDates:
    """Tests for cycle boundaries."""

    @pytest.mark.parametrize("period,expected", [
        (LimitPeriod.BIWEEKLY, date(2025, 1, 24)),
        (LimitPeriod.MONTHLY, date(2025, 2, 10)),
        (LimitPeriod.BIMONTHLY, date(2025, 3, 10)),
        (LimitPeriod.QUARTERLY, date(2025, 4, 10)),
        (LimitPeriod.SEMIANNUAL, date(2025, 7, 10)),
        (LimitPeriod.ANNUAL, date(2026, 1, 10)),
    ])
    def test_reset_date_per_period(self, cycles, period, expected):
        assert cycles.compute_reset_date(date(2025, 1, 10), period) == expected

    def test_month_end_is_clamped(self, cycles):
        assert cycles.compute_reset_date(date(2025, 1, 31), LimitPeriod.MONTHLY) == date(2025, 2, 28)

    def test_start_types(self, cycles):
        start = date(2025, 2, 15)
        assert cycles.resolve_start_date(start, LimitStartType.TODAY) == start
        assert cycles.resolve_start_date(start, LimitStartType.FIRST_DAY) == date(2025, 2, 1)
        assert cycles.resolve_start_date(start, LimitStartType.LAST_DAY) == date(2025, 2, 28)

    def test_prepare_anchors_the_cycle(self, cycles):
        limit = make_limit(start_date=date(2025, 1, 15), start_type="first_day")
        cycles.prepare(limit, date(2025, 1, 15))
        assert limit.start_date == date(2025, 1, 1)
        assert limit.reset_date == date(2025, 2, 1)


class TestUsage:
    """Tests for usage percentage and status."""

    @pytest.mark.parametrize("current,status", [
        ("100", LimitStatus.OK),
        ("319.99", LimitStatus.OK),
        ("320", LimitStatus.NEAR),
        ("399.99", LimitStatus.NEAR),
        ("400", LimitStatus.EXCEEDED),
        ("550", LimitStatus.EXCEEDED),
    ])
    def test_classify(self, cycles, current, status):
        assert cycles.classify(make_limit(current_amount=current)) == status

    def test_usage_is_capped(self, cycles):
        usage = cycles.usage(make_limit(current_amount="550"))
        assert usage.usage_percentage == 100.0
        assert usage.remaining == Decimal("-150.00")

    def test_usage_rounding(self, cycles):
        usage = cycles.usage(make_limit(limit_amount="300", current_amount="100"))
        assert usage.usage_percentage == 33.33

    def test_status_label(self, cycles):
        assert cycles.status_label(make_limit(current_amount="330")) == "Close to limit"


class TestRollover:
    """Tests for advancing expired cycles."""

    def test_nothing_to_do_inside_cycle(self, cycles):
        limit = make_limit(current_amount="50")
        assert cycles.roll_over(limit, date(2025, 2, 9)) is False
        assert limit.current_amount == Decimal("50.00")

    def test_rolls_on_reset_date(self, cycles):
        limit = make_limit(current_amount="50")
        assert cycles.roll_over(limit, date(2025, 2, 10)) is True
        assert limit.current_amount == Decimal("0.00")
        assert limit.start_date == date(2025, 2, 10)
        assert limit.reset_date == date(2025, 3, 10)

    def test_skips_several_cycles(self, cycles):
        limit = make_limit(current_amount="50")
        cycles.roll_over(limit, date(2025, 4, 15))
        assert limit.start_date == date(2025, 4, 10)
        assert limit.reset_date == date(2025, 5, 10)
        assert limit.current_amount == Decimal("0.00")

    def test_month_end_anchor_holds(self, cycles):
        limit = make_limit(start_date=date(2025, 1, 31))
        cycles.roll_over(limit, date(2025, 3, 1))
        assert limit.start_date == date(2025, 2, 28)
        assert limit.reset_date == date(2025, 3, 31)

        cycles.roll_over(limit, date(2025, 4, 1))
        assert limit.start_date == date(2025, 3, 31)
        assert limit.reset_date == date(2025, 4, 30)

    def test_last_day_limit_stays_on_last_day(self, cycles):
        limit = make_limit(start_date=date(2025, 1, 20), start_type="last_day")
        cycles.prepare(limit, date(2025, 1, 31))
        assert limit.start_date == date(2025, 1, 31)

        cycles.roll_over(limit, date(2025, 3, 1))
        assert limit.start_date == date(2025, 2, 28)
        assert limit.reset_date == date(2025, 3, 31)

    def test_day_anchor_after_clamped_february(self, cycles):
        limit = make_limit(start_date=date(2025, 1, 30))
        assert limit.reset_date == date(2025, 2, 28)

        cycles.roll_over(limit, date(2025, 4, 1))
        assert limit.start_date == date(2025, 3, 30)
        assert limit.reset_date == date(2025, 4, 30)


class TestLimitFlows:
    """Tests for limits through the manager."""

    def test_create_limit_defaults(self, manager):
        limit = manager.create_limit(
            {"title": "Food", "category": "alimentacao", "limit_amount": "400",
             "start_date": date(2025, 1, 15)}
        )
        assert limit.alert_threshold == 80
        assert limit.reset_date == date(2025, 2, 15)
        assert limit.current_amount == Decimal("0.00")

    def test_listing_persists_rollover(self, manager, clock, expense):
        limit = manager.create_limit(
            {"title": "Food", "category": "alimentacao", "limit_amount": "400",
             "start_date": date(2025, 1, 10)}
        )
        manager.create_transaction(expense(amount="100"))

        clock.set(date(2025, 2, 11))
        (listed,) = manager.list_limits()

        stored = manager.store.limits.get(limit.id)
        assert listed.current_amount == Decimal("0.00")
        assert stored.current_amount == Decimal("0.00")
        assert stored.start_date == date(2025, 2, 10)

    def test_changing_period_recomputes_reset(self, manager):
        limit = manager.create_limit(
            {"title": "Food", "category": "alimentacao", "limit_amount": "400",
             "start_date": date(2025, 1, 10)}
        )
        updated = manager.update_limit(limit.id, {"period": "quarterly"})
        assert updated.reset_date == date(2025, 4, 10)

    def test_limits_overview(self, manager, expense):
        for title, amount in (("Food", "400"), ("Transport", "100")):
            manager.create_limit({
                "title": title,
                "category": "alimentacao" if title == "Food" else "transporte",
                "limit_amount": amount,
                "start_date": date(2025, 1, 10),
            })
        manager.create_transaction(expense(amount="330"))
        manager.create_transaction(
            expense(amount="120", category="transporte", subcategory=None)
        )

        overview = manager.limits_overview()
        assert overview.active_limits == 2
        assert overview.near_limits == 1
        assert overview.exceeded_limits == 1
