"""
Main Orchestrator for Finance Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Record management (UI form -> validate -> ledger -> store)
2. Assistant (message -> LLM -> command -> same record operations)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every transaction create/update goes through the ledger engine exactly once
- Category ids are checked against the catalog before anything is written
- The assistant has no private path into the store; its commands run
  through FinanceManager like a UI action
- Goal projections and limit cycles are brought up to date on every read

Mutations are serialized with a re-entrant lock. Streamlit runs each
session on its own thread against the shared manager.
"""

import threading
from datetime import date
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from finance_tracker.agents import (
    AssistantAction,
    AssistantCommand,
    AssistantError,
    FinanceAssistantAgent,
)
from finance_tracker.catalog import CategoryCatalog
from finance_tracker.config import get_settings
from finance_tracker.ledger import (
    GoalProjector,
    LedgerError,
    LimitCycleManager,
)
from finance_tracker.ledger.engine import LedgerEngine
from finance_tracker.ledger.limits import PERIOD_LABELS
from finance_tracker.log import get_logger
from finance_tracker.models import (
    Account,
    AccountType,
    Card,
    CardType,
    Category,
    CategoryType,
    FinancialSummary,
    Goal,
    GoalProjection,
    Limit,
    LimitUsage,
    SubCategory,
    Transaction,
    TransactionType,
)
from finance_tracker.queries import reports
from finance_tracker.services.storage import DuplicateError, StorageError
from finance_tracker.store import EntityStore, merge
from finance_tracker.utils.formatting import format_money


logger = get_logger(__name__)

# Fields that only the ledger may change once a record exists
LEDGER_OWNED_FIELDS = {
    "accounts": "balance",
    "cards": "used",
}

# Limit fields that move the cycle anchor when edited
LIMIT_CYCLE_FIELDS = {"start_date", "start_type", "period"}


class FinanceManager:
    """
    The inbound API of the tracker.

    Every create_*/update_* call validates, runs the ledger where
    balances are involved, and persists. Read accessors return copies,
    with derived fields recomputed.
    """

    def __init__(
        self,
        store: Optional[EntityStore] = None,
        catalog: Optional[CategoryCatalog] = None,
        engine: Optional[LedgerEngine] = None,
        projector: Optional[GoalProjector] = None,
        limit_manager: Optional[LimitCycleManager] = None,
        today: Callable[[], date] = date.today,
    ):
        self._lock = threading.RLock()
        self._today = today
        self._settings = get_settings().app

        self.store = store or EntityStore()
        self.catalog = catalog or CategoryCatalog(self.store.categories)
        self.limit_manager = limit_manager or LimitCycleManager()
        self.engine = engine or LedgerEngine(
            self.store, self.limit_manager, today=today
        )
        self.projector = projector or GoalProjector()

    def today(self) -> date:
        return self._today()

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def create_transaction(self, data: Union[Transaction, dict]) -> Transaction:
        """
        Record a transaction and apply its balance and limit effects.

        Raises:
            pydantic.ValidationError: If the record is malformed
            UnknownCategoryError: If the category is not in the catalog
            UnknownReferenceError: If an account or card does not exist
        """
        with self._lock:
            tx = data if isinstance(data, Transaction) else Transaction.model_validate(data)
            self.catalog.require(tx.category, tx.subcategory)
            if self.store.transactions.exists(tx.id):
                raise DuplicateError(f"transactions: record {tx.id} already exists")

            self.engine.apply_transaction_create(tx)
            self.store.transactions.save(tx)
            logger.info("transaction_created", transaction_id=tx.id, type=tx.type.value)
            return tx

    def update_transaction(self, transaction_id: str, updates: dict[str, Any]) -> Transaction:
        """
        Edit a transaction; the ledger moves from the old effects to the new.

        Raises:
            UnknownReferenceError: If the transaction, or a new account
                or card, does not exist
        """
        with self._lock:
            old_tx = self.store.require("transactions", transaction_id)
            candidate = merge(old_tx, updates)
            self.catalog.require(candidate.category, candidate.subcategory)

            new_tx = self.engine.apply_transaction_update(old_tx, updates)
            self.store.transactions.update(new_tx)
            logger.info("transaction_updated", transaction_id=new_tx.id)
            return new_tx

    def get_transaction(self, transaction_id: str) -> Transaction:
        return self.store.require("transactions", transaction_id)

    def list_transactions(self) -> list[Transaction]:
        """All transactions, newest first."""
        return sorted(self.store.transactions.list_all(), key=lambda tx: tx.date, reverse=True)

    # =========================================================================
    # ACCOUNTS AND CARDS
    # =========================================================================

    def create_account(self, data: Union[Account, dict]) -> Account:
        with self._lock:
            account = data if isinstance(data, Account) else Account.model_validate(data)
            self.store.accounts.save(account)
            logger.info("account_created", account_id=account.id)
            return account

    def update_account(self, account_id: str, updates: dict[str, Any]) -> Account:
        with self._lock:
            return self._update_ledger_owned("accounts", account_id, updates)

    def list_accounts(self) -> list[Account]:
        return self.store.accounts.list_all()

    def create_card(self, data: Union[Card, dict]) -> Card:
        with self._lock:
            card = data if isinstance(data, Card) else Card.model_validate(data)
            self.store.cards.save(card)
            logger.info("card_created", card_id=card.id)
            return card

    def update_card(self, card_id: str, updates: dict[str, Any]) -> Card:
        with self._lock:
            return self._update_ledger_owned("cards", card_id, updates)

    def list_cards(self) -> list[Card]:
        return self.store.cards.list_all()

    def _update_ledger_owned(self, collection: str, record_id: str, updates: dict[str, Any]):
        record = self.store.require(collection, record_id)
        updated = merge(record, updates)

        owned = LEDGER_OWNED_FIELDS[collection]
        if getattr(updated, owned) != getattr(record, owned):
            raise LedgerError(
                f"{owned} of {collection[:-1]} {record_id} only changes through transactions"
            )

        self.store.repository(collection).update(updated)
        logger.info("record_updated", collection=collection, record_id=record_id)
        return updated

    # =========================================================================
    # GOALS
    # =========================================================================

    def create_goal(self, data: Union[Goal, dict]) -> Goal:
        with self._lock:
            goal = data if isinstance(data, Goal) else Goal.model_validate(data)
            self.catalog.require(goal.category)
            self.projector.refresh(goal, self.today())
            self.store.goals.save(goal)
            logger.info("goal_created", goal_id=goal.id, is_realistic=goal.is_realistic)
            return goal

    def update_goal(self, goal_id: str, updates: dict[str, Any]) -> Goal:
        with self._lock:
            goal = merge(self.store.require("goals", goal_id), updates)
            self.catalog.require(goal.category)
            self.projector.refresh(goal, self.today())
            self.store.goals.update(goal)
            logger.info("goal_updated", goal_id=goal.id, is_realistic=goal.is_realistic)
            return goal

    def get_goal(self, goal_id: str) -> Goal:
        return self.projector.refresh(self.store.require("goals", goal_id), self.today())

    def list_goals(self) -> list[Goal]:
        today = self.today()
        return [self.projector.refresh(goal, today) for goal in self.store.goals.list_all()]

    def goal_projection(self, goal_id: str) -> GoalProjection:
        return self.projector.project(self.store.require("goals", goal_id), self.today())

    # =========================================================================
    # LIMITS
    # =========================================================================

    def create_limit(self, data: Union[Limit, dict]) -> Limit:
        with self._lock:
            if isinstance(data, Limit):
                limit = data
            else:
                data = dict(data)
                if data.get("alert_threshold") is None:
                    data["alert_threshold"] = self._settings.default_alert_threshold
                limit = Limit.model_validate(data)

            self.catalog.require(limit.category, limit.subcategory)
            self.limit_manager.prepare(limit, self.today())
            self.store.limits.save(limit)
            logger.info(
                "limit_created",
                limit_id=limit.id,
                start_date=limit.start_date.isoformat(),
                reset_date=limit.reset_date.isoformat(),
            )
            return limit

    def update_limit(self, limit_id: str, updates: dict[str, Any]) -> Limit:
        with self._lock:
            limit = merge(self.store.require("limits", limit_id), updates)
            self.catalog.require(limit.category, limit.subcategory)

            if LIMIT_CYCLE_FIELDS & set(updates):
                self.limit_manager.prepare(limit, self.today())
            else:
                self.limit_manager.roll_over(limit, self.today())

            self.store.limits.update(limit)
            logger.info("limit_updated", limit_id=limit.id)
            return limit

    def get_limit(self, limit_id: str) -> Limit:
        with self._lock:
            return self._current_cycle(self.store.require("limits", limit_id))

    def list_limits(self) -> list[Limit]:
        with self._lock:
            return [self._current_cycle(limit) for limit in self.store.limits.list_all()]

    def limit_usage(self, limit_id: str) -> LimitUsage:
        return self.limit_manager.usage(self.get_limit(limit_id))

    def _current_cycle(self, limit: Limit) -> Limit:
        if self.limit_manager.roll_over(limit, self.today()):
            self.store.limits.update(limit)
        return limit

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def add_custom_category(
        self,
        name: str,
        icon: str = "DollarSign",
        type: Union[CategoryType, str] = CategoryType.EXPENSE,
    ) -> Category:
        with self._lock:
            return self.catalog.add_custom_category(name, icon, CategoryType(type))

    def add_custom_subcategory(
        self,
        category_id: str,
        name: str,
        icon: str = "DollarSign",
    ) -> SubCategory:
        with self._lock:
            return self.catalog.add_custom_subcategory(category_id, name, icon)

    def list_categories(self) -> list[Category]:
        return self.catalog.all_categories()

    # =========================================================================
    # RESET AND REPORTS
    # =========================================================================

    def reset_all_data(self) -> None:
        """Clear all six collections."""
        with self._lock:
            self.store.clear_all()
            logger.warning("all_data_reset")

    def get_summary(self) -> FinancialSummary:
        return reports.financial_summary(
            self.list_accounts(),
            self.store.transactions.list_all(),
            self.today(),
        )

    def category_breakdown(self) -> list[reports.CategoryTotal]:
        return reports.category_breakdown(self.store.transactions.list_all(), self.catalog)

    def cash_flow(self, months: Optional[int] = None) -> list[reports.CashFlowPoint]:
        return reports.cash_flow(
            self.store.transactions.list_all(),
            months or self._settings.cash_flow_months,
            self.today(),
        )

    def balance_evolution(self) -> list[reports.BalancePoint]:
        return reports.balance_evolution(self.list_accounts(), self.store.transactions.list_all())

    def goals_overview(self) -> reports.GoalsOverview:
        return reports.goals_overview(self.list_goals())

    def limits_overview(self) -> reports.LimitsOverview:
        return reports.limits_overview(self.list_limits())

    def annual_totals(self, year: Optional[int] = None) -> reports.AnnualTotals:
        return reports.annual_totals(
            self.store.transactions.list_all(), year or self.today().year
        )

    def card_invoice(self, card_id: str, month: Optional[str] = None) -> reports.CardInvoice:
        return reports.card_invoice(
            self.store.require("cards", card_id),
            self.store.transactions.list_all(),
            month,
            self.today(),
            self._settings.invoice_urgent_days,
            self._settings.invoice_warning_days,
        )

    def transaction_history(
        self,
        period: reports.Period = "all",
        type: Optional[TransactionType] = None,
        search: str = "",
    ) -> list[Transaction]:
        return reports.filter_transactions(
            self.store.transactions.list_all(),
            self.catalog,
            self.list_accounts(),
            self.list_cards(),
            period=period,
            type=type,
            search=search,
            today=self.today(),
        )


def describe_validation_error(error: ValidationError) -> str:
    """One line per failing field, e.g. 'amount: Input should be greater than 0'."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "record"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


class AssistantFlow:
    """
    Orchestrates the assistant flow.

    FLOW:
    1. User message -> agent -> AssistantCommand
    2. Command data -> record dict (deterministic mapping)
    3. Record dict -> FinanceManager, exactly like a UI action
    4. Outcome -> reply text

    Failures never escape as exceptions: they become an "Error: ..."
    reply and nothing is written.
    """

    def __init__(
        self,
        manager: FinanceManager,
        agent: Optional[FinanceAssistantAgent] = None,
    ):
        self._manager = manager
        self._agent = agent or FinanceAssistantAgent()
        self._symbol = get_settings().app.currency_symbol

    async def handle_message(self, text: str) -> str:
        if not text or not text.strip():
            return "Please type a message."

        manager = self._manager
        try:
            command = await self._agent.interpret(
                text,
                manager.catalog.prompt_listing(),
                manager.list_accounts(),
                manager.list_cards(),
                manager.today(),
            )
        except AssistantError as e:
            return f"❌ **Error:** {e}"

        return self.execute_command(command, user_text=text)

    def execute_command(self, command: AssistantCommand, user_text: Optional[str] = None) -> str:
        handlers = {
            AssistantAction.CREATE_TRANSACTION: self._create_transaction,
            AssistantAction.CREATE_ACCOUNT: self._create_account,
            AssistantAction.CREATE_CARD: self._create_card,
            AssistantAction.CREATE_GOAL: self._create_goal,
            AssistantAction.CREATE_LIMIT: self._create_limit,
            AssistantAction.QUERY: self._query,
            AssistantAction.RESET_DATA: self._reset,
        }

        if command.action == AssistantAction.ERROR:
            return f"❌ **Error:** {command.message}"

        try:
            reply = handlers[command.action](command, user_text)
        except ValidationError as e:
            logger.warning("assistant_command_invalid", action=command.action.value)
            return f"❌ **Error:** {describe_validation_error(e)}"
        except (LedgerError, StorageError) as e:
            logger.warning(
                "assistant_command_failed",
                action=command.action.value,
                error=str(e),
            )
            return f"❌ **Error:** {e}"

        logger.info("assistant_command_executed", action=command.action.value)
        return reply

    def _money(self, value) -> str:
        return format_money(value, self._symbol)

    # =========================================================================
    # COMMAND HANDLERS
    # =========================================================================

    def _create_transaction(self, command: AssistantCommand, user_text: Optional[str]) -> str:
        data = command.data
        tx_type = data.get("type") or "expense"
        record = {
            "title": data.get("title"),
            "description": data.get("description"),
            "user_description": user_text,
            "amount": data.get("amount"),
            "type": tx_type,
            "category": data.get("category") or command.category,
            "subcategory": data.get("subcategory") or command.subcategory,
            "payment_method": data.get("payment_method") or "cash",
            "payment_source": data.get("payment_source"),
            "status": data.get("status") or ("received" if tx_type == "income" else "paid"),
            "date": data.get("date") or self._manager.today(),
        }
        if tx_type == TransactionType.TRANSFER.value:
            record["transfer_info"] = {
                "from_account_id": data.get("from_account_id"),
                "to_account_id": data.get("to_account_id"),
            }

        tx = self._manager.create_transaction(record)
        kind = {"income": "Income", "expense": "Expense", "transfer": "Transfer"}[tx.type.value]
        category = self._manager.catalog.display_name(tx.category, tx.subcategory)
        return (
            f"✅ **Transaction recorded!**\n\n"
            f"{kind} of {self._money(tx.amount)} - {tx.title}\n"
            f"Category: {category}"
        )

    def _create_account(self, command: AssistantCommand, user_text: Optional[str]) -> str:
        data = command.data
        account = self._manager.create_account({
            "name": data.get("name"),
            "balance": data.get("initial_balance") or 0,
            "type": data.get("account_type") or AccountType.CHECKING.value,
            "bank": data.get("bank_name"),
        })
        return (
            f"✅ **Account created!**\n\n"
            f"{account.name}\n"
            f"Initial balance: {self._money(account.balance)}\n"
            f"Type: {account.type.value.capitalize()}"
        )

    def _create_card(self, command: AssistantCommand, user_text: Optional[str]) -> str:
        data = command.data
        card = self._manager.create_card({
            "name": data.get("name"),
            "limit": data.get("credit_limit") or data.get("limit") or 0,
            "used": data.get("used_amount") or 0,
            "type": data.get("card_type") or CardType.CREDIT.value,
            "bank": data.get("bank_name"),
            "due_day": data.get("due_day"),
            "closing_day": data.get("closing_day"),
        })
        lines = [
            "✅ **Card added!**",
            "",
            card.name,
            f"Limit: {self._money(card.limit)}",
            f"Type: {card.type.value.capitalize()} card",
        ]
        if card.due_day:
            lines.append(f"Due day: {card.due_day}")
        if card.closing_day:
            lines.append(f"Closing day: {card.closing_day}")
        return "\n".join(lines)

    def _create_goal(self, command: AssistantCommand, user_text: Optional[str]) -> str:
        data = command.data
        goal = self._manager.create_goal({
            "title": data.get("title"),
            "description": data.get("description"),
            "target_amount": data.get("target_amount"),
            "current_amount": data.get("current_amount") or 0,
            "monthly_contribution": data.get("monthly_contribution") or 0,
            "target_date": data.get("target_date"),
            "category": data.get("category") or command.category,
            "priority": data.get("priority") or "medium",
        })
        reply = (
            f"✅ **Goal created!**\n\n"
            f"{goal.title}\n"
            f"Target: {self._money(goal.target_amount)}\n"
            f"Monthly contribution: {self._money(goal.monthly_contribution)}"
        )
        if goal.ai_suggestion:
            reply += f"\n\n💡 {goal.ai_suggestion}"
        return reply

    def _create_limit(self, command: AssistantCommand, user_text: Optional[str]) -> str:
        data = command.data
        limit = self._manager.create_limit({
            "title": data.get("title"),
            "category": data.get("category") or command.category,
            "subcategory": data.get("subcategory") or command.subcategory,
            "limit_amount": data.get("limit_amount"),
            "period": data.get("period") or "monthly",
            "alert_threshold": data.get("alert_threshold"),
            "start_date": data.get("start_date") or self._manager.today(),
            "start_type": data.get("start_type") or "today",
        })
        return (
            f"✅ **Limit created!**\n\n"
            f"{limit.title}\n"
            f"Amount: {self._money(limit.limit_amount)}\n"
            f"Period: {PERIOD_LABELS[limit.period]}"
        )

    def _reset(self, command: AssistantCommand, user_text: Optional[str]) -> str:
        self._manager.reset_all_data()
        return "✅ **Data reset!**\n\nAll your financial data has been cleared."

    def _query(self, command: AssistantCommand, user_text: Optional[str]) -> str:
        """Answer from stored data only; the model's own text is never used as an answer."""
        topic = (command.data.get("topic") or "summary").lower()
        manager = self._manager

        if topic == "goals":
            goals = manager.list_goals()
            if not goals:
                return "You have no goals yet."
            lines = ["🎯 **Your goals**", ""]
            for goal in goals:
                progress = manager.projector.progress_percentage(goal)
                lines.append(
                    f"- {goal.title}: {self._money(goal.current_amount)} of "
                    f"{self._money(goal.target_amount)} ({progress:.0f}%)"
                )
            return "\n".join(lines)

        if topic == "limits":
            limits = manager.list_limits()
            if not limits:
                return "You have no spending limits yet."
            lines = ["🚦 **Your limits**", ""]
            for limit in limits:
                usage = manager.limit_manager.usage(limit)
                lines.append(
                    f"- {limit.title}: {self._money(limit.current_amount)} of "
                    f"{self._money(limit.limit_amount)} ({usage.usage_percentage:.1f}%, "
                    f"{manager.limit_manager.status_label(limit)})"
                )
            return "\n".join(lines)

        summary = manager.get_summary()
        if topic == "balance":
            return f"💰 Your total balance is {self._money(summary.total_balance)}."

        return (
            f"📊 **Financial summary**\n\n"
            f"Total balance: {self._money(summary.total_balance)}\n"
            f"Income this month: {self._money(summary.monthly_income)}\n"
            f"Expenses this month: {self._money(summary.monthly_expenses)}"
        )


def create_app_components(
    storage_backend: Optional[str] = None,
    with_assistant: bool = True,
) -> tuple[FinanceManager, Optional[AssistantFlow]]:
    """
    Factory function to create all application components.

    Args:
        storage_backend: "memory" or "google_sheets"; defaults to settings.
        with_assistant: Whether to set up the Gemini assistant. Left out
                        (None) when Gemini is not configured.

    Returns:
        (finance_manager, assistant_flow)
    """
    manager = FinanceManager(store=EntityStore(backend=storage_backend))

    assistant_flow = None
    if with_assistant:
        try:
            assistant_flow = AssistantFlow(manager)
        except ValidationError as e:
            # Gemini settings missing - run without the assistant
            logger.warning("assistant_not_configured", error=str(e))

    return manager, assistant_flow
