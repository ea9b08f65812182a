"""
Shared fixtures.

Everything runs on in-memory storage with a controllable clock;
no test talks to Google Sheets or Gemini.
"""

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.orchestrator import FinanceManager
from finance_tracker.store import EntityStore


TODAY = date(2025, 1, 15)


class Clock:
    """Callable 'today' provider tests can move forward."""

    def __init__(self, today: date = TODAY):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def set(self, today: date) -> None:
        self.today = today


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def store():
    return EntityStore(backend="memory")


@pytest.fixture
def manager(store, clock):
    return FinanceManager(store=store, today=clock)


@pytest.fixture
def checking(manager):
    return manager.create_account({"name": "Checking", "balance": "500.00", "type": "checking"})


@pytest.fixture
def savings(manager):
    return manager.create_account({"name": "Savings", "balance": "100.00", "type": "savings"})


@pytest.fixture
def credit_card(manager):
    return manager.create_card(
        {"name": "Nubank", "limit": "2000.00", "type": "credit", "due_day": 20, "closing_day": 10}
    )


@pytest.fixture
def expense():
    """Factory for expense transaction dicts (cash, paid, alimentacao)."""

    def make(**overrides):
        data = {
            "title": "Groceries",
            "amount": Decimal("25.00"),
            "type": "expense",
            "category": "alimentacao",
            "subcategory": "supermercado",
            "payment_method": "cash",
            "status": "paid",
            "date": TODAY,
        }
        data.update(overrides)
        return data

    return make
