"""
Finance Assistant Agent

DESIGN DECISION: The LLM is a TRANSLATOR, not an ORACLE.

It turns a sentence like "spent 50 at the supermarket" into a structured
AssistantCommand. It never touches the store: the orchestrator validates
the command and runs it through the same operations the UI uses.

BOUNDARIES:
- CAN: Pick an action, fill the data fields, choose category ids
  from the catalog listing it is given
- CANNOT: Persist anything itself
- CANNOT: Answer questions about the user's money from its own
  knowledge. QUERY commands are answered from stored data.

A reply that is not valid command JSON never raises: it becomes an
ERROR command carrying the raw text, so the user sees what the model said.
"""

import json
from datetime import date
from enum import Enum
from typing import Any, Optional

import google.generativeai as genai
from pydantic import BaseModel, Field, ValidationError

from finance_tracker.config import get_settings
from finance_tracker.log import get_logger
from finance_tracker.models import Account, Card


logger = get_logger(__name__)


class AssistantError(Exception):
    """The language model could not be reached or returned nothing."""
    pass


class AssistantAction(str, Enum):
    CREATE_TRANSACTION = "CREATE_TRANSACTION"
    CREATE_ACCOUNT = "CREATE_ACCOUNT"
    CREATE_CARD = "CREATE_CARD"
    CREATE_GOAL = "CREATE_GOAL"
    CREATE_LIMIT = "CREATE_LIMIT"
    QUERY = "QUERY"
    RESET_DATA = "RESET_DATA"
    ERROR = "ERROR"


class AssistantCommand(BaseModel):
    """
    Structured action produced from a user's message.

    `data` keeps the model's field names (snake_case, e.g. initial_balance,
    payment_source); the orchestrator maps them onto records.
    """

    action: AssistantAction
    data: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    category: Optional[str] = None
    subcategory: Optional[str] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


def _extract_json(text: str) -> Optional[str]:
    """The outermost {...} block of a reply, ignoring code fences and chatter."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        return text[start:end]
    return None


def parse_response_text(text: str) -> AssistantCommand:
    """
    Parse a model reply into a command.

    Anything that is not a valid command becomes an ERROR command whose
    message is the raw reply.
    """
    raw = (text or "").strip()
    payload = _extract_json(raw)

    if payload is not None:
        try:
            data = json.loads(payload)
            if isinstance(data, dict):
                if isinstance(data.get("action"), str):
                    data["action"] = data["action"].strip().upper()
                if data.get("data") is None:
                    data["data"] = {}
                return AssistantCommand.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("assistant_response_unparseable", error=str(e))
    else:
        logger.warning("assistant_response_not_json", length=len(raw))

    return AssistantCommand(action=AssistantAction.ERROR, message=raw)


PROMPT_TEMPLATE = """You are a personal finance assistant. You turn the user's message into ONE command for a finance tracker app and ALWAYS reply with a single valid JSON object, nothing else.

Today is {today}.

JSON shape:
{{"action": "...", "data": {{...}}, "message": "short confirmation for the user", "category": "category id or null", "subcategory": "subcategory id or null", "confidence": 0.0-1.0}}

Actions and their data fields:
- CREATE_TRANSACTION: title, description, amount, type (income|expense|transfer), category, subcategory, payment_method (account|card|cash|pix), payment_source (account or card id), status (paid|received|pending), date (YYYY-MM-DD). Transfers also need from_account_id and to_account_id.
- CREATE_ACCOUNT: name, initial_balance, account_type (checking|savings|investment), bank_name
- CREATE_CARD: name, limit, used_amount, card_type (credit|debit), bank_name, due_day, closing_day
- CREATE_GOAL: title, description, target_amount, current_amount, monthly_contribution, target_date (YYYY-MM-DD), category, priority (low|medium|high)
- CREATE_LIMIT: title, category, subcategory, limit_amount, period (biweekly|monthly|bimonthly|quarterly|semiannual|annual), alert_threshold (1-100), start_date (YYYY-MM-DD), start_type (today|first_day|last_day)
- QUERY: topic (summary|balance|goals|limits) when the user asks about their finances. Never make up numbers.
- RESET_DATA: only when the user explicitly asks to erase all data
- ERROR: message explaining what is missing or unclear

Rules:
- Use ONLY category and subcategory ids from the list below.
- Expenses are "paid" and income is "received" unless the user says it is pending.
- Use payment_method "account" or "card" only with an id from the lists below; otherwise use "cash".

Categories (id: name (type) [subcategories]):
{categories}

Accounts (id: name):
{accounts}

Cards (id: name):
{cards}

Examples:
"create nubank checking account balance 1000" ->
{{"action": "CREATE_ACCOUNT", "data": {{"name": "Nubank - Checking", "bank_name": "nubank", "account_type": "checking", "initial_balance": 1000.00}}, "message": "Nubank account created with balance 1000", "confidence": 0.95}}

"add nubank card limit 2000 due day 5 closes day 1" ->
{{"action": "CREATE_CARD", "data": {{"name": "Nubank - Credit Card", "bank_name": "nubank", "card_type": "credit", "limit": 2000.00, "used_amount": 0, "due_day": 5, "closing_day": 1}}, "message": "Nubank card added with limit 2000", "confidence": 0.95}}

"spent 50 at the supermarket" ->
{{"action": "CREATE_TRANSACTION", "data": {{"type": "expense", "amount": 50.00, "title": "Supermarket", "description": "Supermarket shopping", "category": "alimentacao", "subcategory": "supermercado", "payment_method": "cash", "status": "paid", "date": "{today}"}}, "message": "Expense of 50 at the supermarket recorded", "category": "alimentacao", "subcategory": "supermercado", "confidence": 0.95}}

User message: "{message}"
"""


def build_prompt(
    message: str,
    categories: str,
    accounts: list[Account],
    cards: list[Card],
    today: Optional[date] = None,
) -> str:
    today = today or date.today()
    return PROMPT_TEMPLATE.format(
        today=today.isoformat(),
        categories=categories,
        accounts="\n".join(f"- {a.id}: {a.name}" for a in accounts) or "(none)",
        cards="\n".join(f"- {c.id}: {c.name}" for c in cards) or "(none)",
        message=message.replace('"', "'"),
    )


class FinanceAssistantAgent:
    """
    Gemini-backed translator from free text to AssistantCommand.

    Pass `model` to inject any object with an async
    generate_content_async(prompt) whose result has `.text`.
    """

    def __init__(self, model: Any = None):
        self._settings = None
        if model is None:
            self._settings = get_settings().gemini
            model = self._configure_genai()
        self._model = model

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            },
        )

    async def interpret(
        self,
        message: str,
        categories: str,
        accounts: list[Account],
        cards: list[Card],
        today: Optional[date] = None,
    ) -> AssistantCommand:
        """
        Ask the model for a command.

        Raises:
            AssistantError: If the model call fails or returns no text
        """
        prompt = build_prompt(message, categories, accounts, cards, today)

        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            logger.error("assistant_model_failed", error=str(e))
            raise AssistantError(f"The assistant is unavailable: {e}") from e

        if not text or not text.strip():
            raise AssistantError("The assistant returned an empty response")

        command = parse_response_text(text)
        logger.info(
            "assistant_command_parsed",
            action=command.action.value,
            confidence=command.confidence,
        )
        return command
