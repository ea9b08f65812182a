"""
Tests for the ledger engine.

Balances and card usage must always equal what the recorded
transactions imply, through creates, edits and failed operations.
"""

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.ledger import UnknownCategoryError, UnknownReferenceError
from finance_tracker.ledger.engine import (
    LedgerEngine,
    LimitAccrualPolicy,
    balance_effects,
)
from finance_tracker.models import LimitStatus, Transaction
from finance_tracker.orchestrator import FinanceManager


def balance_of(manager, account):
    return manager.store.accounts.get(account.id).balance


def used_of(manager, card):
    return manager.store.cards.get(card.id).used


class TestBalanceEffects:
    """Tests for the pure effect table."""

    def make(self, **fields):
        data = {
            "title": "X",
            "amount": "10",
            "type": "expense",
            "category": "outros",
            "payment_method": "account",
            "payment_source": "acc",
            "status": "paid",
        }
        data.update(fields)
        return Transaction.model_validate(data)

    def test_paid_account_expense_debits(self):
        (effect,) = balance_effects(self.make())
        assert (effect.collection, effect.field, effect.delta) == ("accounts", "balance", Decimal("-10.00"))

    def test_paid_card_expense_increases_used(self):
        (effect,) = balance_effects(self.make(payment_method="card", payment_source="card"))
        assert (effect.collection, effect.field, effect.delta) == ("cards", "used", Decimal("10.00"))

    def test_received_income_credits(self):
        (effect,) = balance_effects(self.make(type="income", status="received"))
        assert effect.delta == Decimal("10.00")

    def test_pending_has_no_effect(self):
        assert balance_effects(self.make(status="pending")) == []

    @pytest.mark.parametrize("method", ["cash", "pix"])
    def test_cash_and_pix_have_no_effect(self, method):
        assert balance_effects(self.make(payment_method=method, payment_source=None)) == []

    def test_income_on_card_has_no_effect(self):
        tx = self.make(type="income", status="received", payment_method="card", payment_source="c")
        assert balance_effects(tx) == []

    def test_transfer_moves_between_accounts(self):
        tx = self.make(
            type="transfer",
            status="pending",
            payment_source=None,
            transfer_info={"from_account_id": "a", "to_account_id": "b"},
        )
        effects = balance_effects(tx)
        assert [(e.record_id, e.delta) for e in effects] == [
            ("a", Decimal("-10.00")),
            ("b", Decimal("10.00")),
        ]
        assert sum(e.delta for e in effects) == 0


class TestTransactionCreate:
    """Tests for applying new transactions."""

    def test_account_expense_scenario(self, manager, checking, expense):
        manager.create_transaction(
            expense(amount="25", payment_method="account", payment_source=checking.id)
        )
        assert balance_of(manager, checking) == Decimal("475.00")

    def test_card_expense_scenario(self, manager, credit_card, expense):
        manager.create_transaction(
            expense(amount="300", payment_method="card", payment_source=credit_card.id)
        )
        card = manager.store.cards.get(credit_card.id)
        assert card.used == Decimal("300.00")
        assert card.available == Decimal("1700.00")

    def test_received_income_credits_account(self, manager, checking):
        manager.create_transaction({
            "title": "Salary",
            "amount": "1000",
            "type": "income",
            "category": "renda",
            "subcategory": "salarios",
            "payment_method": "account",
            "payment_source": checking.id,
            "status": "received",
        })
        assert balance_of(manager, checking) == Decimal("1500.00")

    def test_pending_expense_leaves_balance(self, manager, checking, expense):
        manager.create_transaction(
            expense(payment_method="account", payment_source=checking.id, status="pending")
        )
        assert balance_of(manager, checking) == Decimal("500.00")

    def test_transfer_conserves_total(self, manager, checking, savings):
        manager.create_transaction({
            "title": "Save",
            "amount": "200",
            "type": "transfer",
            "category": "transferencias-pagamentos",
            "status": "paid",
            "transfer_info": {"from_account_id": checking.id, "to_account_id": savings.id},
        })
        assert balance_of(manager, checking) == Decimal("300.00")
        assert balance_of(manager, savings) == Decimal("300.00")

    def test_rounding_to_cents(self, manager, checking, expense):
        manager.create_transaction(
            expense(amount="0.1", payment_method="account", payment_source=checking.id)
        )
        manager.create_transaction(
            expense(amount="0.2", payment_method="account", payment_source=checking.id)
        )
        assert balance_of(manager, checking) == Decimal("499.70")

    def test_signed_effect_sum(self, manager, checking, expense):
        amounts = [
            ("expense", "paid", "12.50"),
            ("income", "received", "100.00"),
            ("expense", "pending", "40.00"),
            ("income", "pending", "5.00"),
            ("expense", "paid", "7.25"),
        ]
        for tx_type, status, amount in amounts:
            manager.create_transaction(
                expense(
                    type=tx_type,
                    status=status,
                    amount=amount,
                    category="outros",
                    subcategory=None,
                    payment_method="account",
                    payment_source=checking.id,
                )
            )
        expected = Decimal("500.00") + Decimal("100.00") - Decimal("12.50") - Decimal("7.25")
        assert balance_of(manager, checking) == expected

    def test_unknown_account_is_rejected_atomically(self, manager, checking, expense):
        with pytest.raises(UnknownReferenceError, match="Account not found"):
            manager.create_transaction(
                expense(payment_method="account", payment_source="missing")
            )
        assert manager.store.transactions.list_all() == []
        assert balance_of(manager, checking) == Decimal("500.00")

    def test_unknown_card_is_rejected(self, manager, expense):
        with pytest.raises(UnknownReferenceError, match="Card not found"):
            manager.create_transaction(expense(payment_method="card", payment_source="missing"))

    def test_transfer_to_unknown_account_changes_nothing(self, manager, checking):
        with pytest.raises(UnknownReferenceError):
            manager.create_transaction({
                "title": "Move",
                "amount": "50",
                "type": "transfer",
                "category": "transferencias-pagamentos",
                "status": "paid",
                "transfer_info": {"from_account_id": checking.id, "to_account_id": "missing"},
            })
        assert balance_of(manager, checking) == Decimal("500.00")
        assert manager.store.transactions.list_all() == []

    def test_unknown_category_is_rejected(self, manager, checking, expense):
        with pytest.raises(UnknownCategoryError):
            manager.create_transaction(
                expense(category="nope", payment_method="account", payment_source=checking.id)
            )
        assert balance_of(manager, checking) == Decimal("500.00")

    def test_unknown_subcategory_is_rejected(self, manager, expense):
        with pytest.raises(UnknownCategoryError, match="subcategory"):
            manager.create_transaction(expense(subcategory="nope"))


class TestTransactionUpdate:
    """Tests for editing transactions (reverse old effect, apply new)."""

    def test_amount_change(self, manager, checking, expense):
        tx = manager.create_transaction(
            expense(amount="25", payment_method="account", payment_source=checking.id)
        )
        manager.update_transaction(tx.id, {"amount": "40"})
        assert balance_of(manager, checking) == Decimal("460.00")
        assert manager.get_transaction(tx.id).amount == Decimal("40.00")

    def test_noop_update_is_idempotent(self, manager, checking, expense):
        tx = manager.create_transaction(
            expense(amount="25", payment_method="account", payment_source=checking.id)
        )
        manager.update_transaction(tx.id, {})
        manager.update_transaction(tx.id, {"amount": "25.00"})
        assert balance_of(manager, checking) == Decimal("475.00")

    def test_update_then_revert_restores_balances(self, manager, checking, credit_card, expense):
        tx = manager.create_transaction(
            expense(amount="25", payment_method="account", payment_source=checking.id)
        )
        manager.update_transaction(
            tx.id, {"amount": "80", "payment_method": "card", "payment_source": credit_card.id}
        )
        assert balance_of(manager, checking) == Decimal("500.00")
        assert used_of(manager, credit_card) == Decimal("80.00")

        manager.update_transaction(
            tx.id, {"amount": "25", "payment_method": "account", "payment_source": checking.id}
        )
        assert balance_of(manager, checking) == Decimal("475.00")
        assert used_of(manager, credit_card) == Decimal("0.00")

    def test_settling_a_pending_expense(self, manager, checking, expense):
        tx = manager.create_transaction(
            expense(payment_method="account", payment_source=checking.id, status="pending")
        )
        manager.update_transaction(tx.id, {"status": "paid"})
        assert balance_of(manager, checking) == Decimal("475.00")

    def test_id_cannot_be_overwritten(self, manager, expense):
        tx = manager.create_transaction(expense())
        updated = manager.update_transaction(tx.id, {"id": "other", "title": "Market"})
        assert updated.id == tx.id
        assert updated.title == "Market"

    def test_update_to_unknown_source_changes_nothing(self, manager, checking, expense):
        tx = manager.create_transaction(
            expense(payment_method="account", payment_source=checking.id)
        )
        with pytest.raises(UnknownReferenceError):
            manager.update_transaction(tx.id, {"payment_source": "missing"})
        assert balance_of(manager, checking) == Decimal("475.00")
        assert manager.get_transaction(tx.id).payment_source == checking.id

    def test_update_unknown_transaction(self, manager):
        with pytest.raises(UnknownReferenceError, match="Transaction not found"):
            manager.update_transaction("missing", {"amount": "1"})


class TestLimitAccrual:
    """Tests for limit accrual through the ledger."""

    @pytest.fixture
    def food_limit(self, manager):
        return manager.create_limit({
            "title": "Food",
            "category": "alimentacao",
            "limit_amount": "400",
            "alert_threshold": 80,
            "start_date": date(2025, 1, 10),
        })

    def test_near_limit_scenario(self, manager, food_limit, expense):
        manager.create_transaction(expense(amount="150"))
        manager.create_transaction(expense(amount="180", subcategory="restaurante-delivery"))

        limit = manager.get_limit(food_limit.id)
        usage = manager.limit_usage(food_limit.id)
        assert limit.current_amount == Decimal("330.00")
        assert usage.usage_percentage == 82.5
        assert usage.status == LimitStatus.NEAR

    def test_pending_does_not_accrue_by_default(self, manager, food_limit, expense):
        manager.create_transaction(expense(amount="150", status="pending"))
        assert manager.get_limit(food_limit.id).current_amount == Decimal("0.00")

    def test_pending_accrues_under_always_policy(self, store, clock, expense):
        engine = LedgerEngine(store, accrual_policy=LimitAccrualPolicy.ALWAYS, today=clock)
        manager = FinanceManager(store=store, engine=engine, today=clock)
        limit = manager.create_limit({
            "title": "Food",
            "category": "alimentacao",
            "limit_amount": "400",
            "start_date": date(2025, 1, 10),
        })
        manager.create_transaction(expense(amount="150", status="pending"))
        assert manager.get_limit(limit.id).current_amount == Decimal("150.00")

    def test_income_never_accrues(self, manager, food_limit, expense):
        manager.create_transaction(expense(type="income", status="received", category="outros",
                                           subcategory=None))
        assert manager.get_limit(food_limit.id).current_amount == Decimal("0.00")

    def test_other_category_does_not_accrue(self, manager, food_limit, expense):
        manager.create_transaction(expense(category="transporte", subcategory=None))
        assert manager.get_limit(food_limit.id).current_amount == Decimal("0.00")

    def test_subcategory_filter(self, manager, expense):
        limit = manager.create_limit({
            "title": "Market",
            "category": "alimentacao",
            "subcategory": "supermercado",
            "limit_amount": "300",
        })
        manager.create_transaction(expense(amount="50", subcategory="supermercado"))
        manager.create_transaction(expense(amount="70", subcategory="cafeterias"))
        assert manager.get_limit(limit.id).current_amount == Decimal("50.00")

    def test_inactive_limit_does_not_accrue(self, manager, food_limit, expense):
        manager.update_limit(food_limit.id, {"is_active": False})
        manager.create_transaction(expense(amount="50"))
        assert manager.get_limit(food_limit.id).current_amount == Decimal("0.00")

    def test_update_reverses_old_accrual(self, manager, food_limit, expense):
        tx = manager.create_transaction(expense(amount="150"))
        manager.update_transaction(tx.id, {"amount": "100"})
        assert manager.get_limit(food_limit.id).current_amount == Decimal("100.00")

        manager.update_transaction(tx.id, {"category": "transporte", "subcategory": None})
        assert manager.get_limit(food_limit.id).current_amount == Decimal("0.00")

    def test_transaction_records_limit_cycle(self, manager, food_limit, expense):
        tx = manager.create_transaction(expense(amount="150"))
        stored = manager.get_transaction(tx.id)
        assert stored.limit_accruals == {food_limit.id: date(2025, 1, 10)}

    def test_unchanged_update_keeps_limit(self, manager, food_limit, expense):
        tx = manager.create_transaction(expense(amount="150"))
        manager.update_transaction(tx.id, {})
        manager.update_transaction(tx.id, {"title": "Market", "description": "weekly"})
        assert manager.get_limit(food_limit.id).current_amount == Decimal("150.00")

    def test_limit_accruals_cannot_be_overwritten(self, manager, food_limit, expense):
        tx = manager.create_transaction(expense(amount="150"))
        manager.update_transaction(tx.id, {"limit_accruals": {}})
        assert manager.get_transaction(tx.id).limit_accruals == {food_limit.id: date(2025, 1, 10)}

        manager.update_transaction(tx.id, {"amount": "40"})
        assert manager.get_limit(food_limit.id).current_amount == Decimal("40.00")

    def test_update_of_transaction_older_than_limit(self, manager, expense):
        tx = manager.create_transaction(expense(amount="100"))
        limit = manager.create_limit({
            "title": "Food",
            "category": "alimentacao",
            "limit_amount": "400",
            "start_date": date(2025, 1, 10),
        })
        manager.create_transaction(expense(amount="50"))

        manager.update_transaction(tx.id, {})
        manager.update_transaction(tx.id, {"title": "Renamed"})
        assert manager.get_limit(limit.id).current_amount == Decimal("50.00")

    def test_update_of_transaction_made_while_limit_inactive(self, manager, food_limit, expense):
        manager.update_limit(food_limit.id, {"is_active": False})
        tx = manager.create_transaction(expense(amount="100"))
        manager.update_limit(food_limit.id, {"is_active": True})

        manager.update_transaction(tx.id, {"title": "Renamed"})
        assert manager.get_limit(food_limit.id).current_amount == Decimal("0.00")

    def test_title_edit_after_rollover(self, manager, clock, food_limit, expense):
        tx = manager.create_transaction(expense(amount="100"))
        clock.set(date(2025, 2, 20))

        manager.update_transaction(tx.id, {"title": "Renamed"})

        limit = manager.get_limit(food_limit.id)
        assert limit.start_date == date(2025, 2, 10)
        assert limit.current_amount == Decimal("0.00")

    def test_category_edit_after_rollover(self, manager, clock, food_limit, expense):
        tx = manager.create_transaction(expense(amount="100"))
        clock.set(date(2025, 2, 20))
        manager.create_transaction(expense(amount="30", date=date(2025, 2, 20)))

        manager.update_transaction(tx.id, {"category": "transporte", "subcategory": None})
        assert manager.get_limit(food_limit.id).current_amount == Decimal("30.00")

    def test_expired_cycle_rolls_over_before_accrual(self, manager, clock, food_limit, expense):
        manager.create_transaction(expense(amount="150"))
        clock.set(date(2025, 2, 12))

        manager.create_transaction(expense(amount="50", date=date(2025, 2, 12)))

        limit = manager.get_limit(food_limit.id)
        assert limit.current_amount == Decimal("50.00")
        assert limit.start_date == date(2025, 2, 10)
        assert limit.reset_date == date(2025, 3, 10)
