"""Tests for summary and report queries."""

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.models import GoalStatus, LimitStatus, TransactionType
from finance_tracker.queries import invoice_status

from tests.conftest import TODAY


@pytest.fixture
def salary(manager, checking):
    return manager.create_transaction({
        "title": "Salary",
        "amount": "1000",
        "type": "income",
        "category": "renda",
        "subcategory": "salarios",
        "payment_method": "account",
        "payment_source": checking.id,
        "status": "received",
        "date": date(2025, 1, 5),
    })


class TestFinancialSummary:
    """Tests for the headline figures."""

    def test_summary(self, manager, checking, savings, salary, expense):
        manager.create_transaction(
            expense(amount="200", payment_method="account", payment_source=checking.id)
        )
        manager.create_transaction(expense(amount="50", status="pending"))
        manager.create_transaction(expense(amount="30", date=date(2024, 12, 20)))

        summary = manager.get_summary()
        assert summary.total_balance == Decimal("1400.00")
        assert summary.monthly_income == Decimal("1000.00")
        assert summary.monthly_expenses == Decimal("200.00")
        assert summary.total_received == Decimal("1000.00")
        assert summary.total_paid == Decimal("230.00")

    def test_empty_summary(self, manager):
        summary = manager.get_summary()
        assert summary.total_balance == Decimal("0.00")
        assert summary.monthly_expenses == Decimal("0.00")


class TestCharts:
    """Tests for breakdown, cash flow, balance evolution and annual totals."""

    def test_category_breakdown(self, manager, expense):
        manager.create_transaction(expense(amount="20"))
        manager.create_transaction(expense(amount="30", status="pending"))
        manager.create_transaction(expense(amount="100", category="transporte", subcategory=None))

        breakdown = manager.category_breakdown()
        assert [(item.name, item.value) for item in breakdown] == [
            ("Transporte", Decimal("100.00")),
            ("Alimentação", Decimal("50.00")),
        ]

    def test_cash_flow(self, manager, salary, expense):
        manager.create_transaction(expense(amount="40", date=date(2024, 12, 3)))
        manager.create_transaction(expense(amount="99", date=date(2024, 6, 1)))

        flow = manager.cash_flow(months=3)
        assert [point.month for point in flow] == ["2024-11", "2024-12", "2025-01"]
        assert flow[0].expenses == Decimal("0.00")
        assert flow[1].expenses == Decimal("40.00")
        assert flow[2].income == Decimal("1000.00")

    def test_balance_evolution(self, manager, checking, salary, expense):
        manager.create_transaction(
            expense(amount="200", payment_method="account", payment_source=checking.id)
        )

        points = manager.balance_evolution()
        assert [(p.date, p.balance) for p in points] == [
            (date(2025, 1, 4), Decimal("500.00")),
            (date(2025, 1, 5), Decimal("1500.00")),
            (TODAY, Decimal("1300.00")),
        ]
        assert points[-1].balance == manager.get_summary().total_balance

    def test_balance_evolution_follows_accounts_only(
        self, manager, checking, savings, credit_card, expense
    ):
        manager.create_transaction(
            expense(amount="25", payment_method="account", payment_source=checking.id,
                    date=date(2025, 1, 2))
        )
        manager.create_transaction(
            expense(amount="60", payment_method="card", payment_source=credit_card.id,
                    date=date(2025, 1, 3))
        )
        manager.create_transaction(expense(amount="15", date=date(2025, 1, 4)))
        manager.create_transaction({
            "title": "Save",
            "amount": "200",
            "type": "transfer",
            "category": "transferencias-pagamentos",
            "status": "paid",
            "transfer_info": {"from_account_id": checking.id, "to_account_id": savings.id},
            "date": date(2025, 1, 6),
        })

        balances = [p.balance for p in manager.balance_evolution()]
        assert balances == [Decimal("600.00"), Decimal("575.00"), Decimal("575.00"),
                            Decimal("575.00"), Decimal("575.00")]
        assert balances[-1] == manager.get_summary().total_balance

    def test_balance_evolution_empty(self, manager, checking):
        assert manager.balance_evolution() == []

    def test_annual_totals(self, manager, salary, expense):
        manager.create_transaction(expense(amount="40"))
        manager.create_transaction(expense(amount="99", date=date(2024, 6, 1)))

        totals = manager.annual_totals()
        assert totals.year == 2025
        assert totals.income == Decimal("1000.00")
        assert totals.expenses == Decimal("40.00")
        assert manager.annual_totals(2024).expenses == Decimal("99.00")


class TestOverviews:
    """Tests for goal and limit overview figures."""

    def test_goals_overview(self, manager):
        for title, saved in (("Trip", "250"), ("Car", "750")):
            manager.create_goal({
                "title": title,
                "target_amount": "1000",
                "current_amount": saved,
                "target_date": date(2026, 1, 1),
                "category": "viagem",
            })
        done = manager.create_goal({
            "title": "Phone",
            "target_amount": "500",
            "current_amount": "500",
            "target_date": date(2025, 6, 1),
            "category": "compras-lazer",
        })
        manager.update_goal(done.id, {"status": GoalStatus.COMPLETED})

        overview = manager.goals_overview()
        assert overview.active_goals == 2
        assert overview.completed_goals == 1
        assert overview.total_goal_amount == Decimal("2000.00")
        assert overview.total_saved_amount == Decimal("1000.00")
        assert overview.average_progress == 50.0

    @pytest.mark.parametrize("spent,near,exceeded", [
        ("79.99", 0, 0),
        ("80", 1, 0),
        ("99.99", 1, 0),
        ("100", 0, 1),
        ("120", 0, 1),
    ])
    def test_limits_overview_matches_limit_status(self, manager, expense, spent, near, exceeded):
        limit = manager.create_limit({
            "title": "Food",
            "category": "alimentacao",
            "limit_amount": "100",
            "start_date": date(2025, 1, 10),
        })
        manager.create_transaction(expense(amount=spent))

        overview = manager.limits_overview()
        assert overview.near_limits == near
        assert overview.exceeded_limits == exceeded
        if exceeded:
            assert manager.limit_usage(limit.id).status == LimitStatus.EXCEEDED


class TestCardInvoice:
    """Tests for card invoices."""

    @pytest.mark.parametrize("days,status", [
        (None, "unknown"),
        (-1, "overdue"),
        (0, "urgent"),
        (3, "urgent"),
        (7, "warning"),
        (8, "ok"),
    ])
    def test_invoice_status(self, days, status):
        assert invoice_status(days) == status

    def test_invoice_for_current_month(self, manager, credit_card, expense):
        manager.create_transaction(
            expense(amount="120", payment_method="card", payment_source=credit_card.id)
        )
        manager.create_transaction(
            expense(amount="80", payment_method="card", payment_source=credit_card.id,
                    status="pending")
        )
        manager.create_transaction(
            expense(amount="60", payment_method="card", payment_source=credit_card.id,
                    date=date(2024, 12, 28))
        )

        invoice = manager.card_invoice(credit_card.id)
        assert invoice.month == "2025-01"
        assert invoice.total == Decimal("200.00")
        assert len(invoice.transactions) == 2
        assert invoice.due_date == date(2025, 1, 20)
        assert invoice.closing_date == date(2025, 1, 10)
        assert invoice.days_until_due == 5
        assert invoice.status == "warning"

    def test_due_day_clamped_to_month_end(self, manager):
        card = manager.create_card({"name": "Visa", "limit": "1000", "due_day": 31})
        invoice = manager.card_invoice(card.id, "2025-02")
        assert invoice.due_date == date(2025, 2, 28)


class TestHistory:
    """Tests for the filtered transaction history."""

    @pytest.fixture
    def history(self, manager, checking, credit_card, expense):
        manager.create_transaction(
            expense(title="Market", payment_method="account", payment_source=checking.id)
        )
        manager.create_transaction(
            expense(title="Dinner", subcategory="restaurante-delivery",
                    payment_method="card", payment_source=credit_card.id,
                    date=date(2025, 1, 10))
        )
        manager.create_transaction(expense(title="Bus", category="transporte",
                                           subcategory=None, date=date(2024, 11, 2)))

    def test_all_newest_first(self, manager, history):
        titles = [tx.title for tx in manager.transaction_history()]
        assert titles == ["Market", "Dinner", "Bus"]

    def test_period_filters(self, manager, history):
        assert [tx.title for tx in manager.transaction_history("today")] == ["Market"]
        assert [tx.title for tx in manager.transaction_history("week")] == ["Market", "Dinner"]
        assert len(manager.transaction_history("year")) == 3

    def test_type_filter(self, manager, history):
        assert manager.transaction_history(type=TransactionType.INCOME) == []

    def test_search_matches_source_and_category(self, manager, history):
        assert [tx.title for tx in manager.transaction_history(search="nubank")] == ["Dinner"]
        assert [tx.title for tx in manager.transaction_history(search="TRANSPORTE")] == ["Bus"]

