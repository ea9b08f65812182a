"""
Entity Store

Owns the six record collections and the storage backend behind them.
Everything else reaches records through here: the ledger to move
balances, the orchestrator to create and update, the reports to read.
"""

from typing import Any, Optional, Type

from pydantic import BaseModel

from finance_tracker.config import get_settings
from finance_tracker.ledger.errors import UnknownReferenceError
from finance_tracker.log import get_logger
from finance_tracker.models import Account, Card, Category, Goal, Limit, Transaction
from finance_tracker.services.storage import EntityStorageInterface, InMemoryEntityStorage


# Fields an update can never overwrite
PROTECTED_FIELDS = frozenset({"id", "created_at"})

# collection key -> (model, entity name used in errors)
COLLECTIONS: dict[str, tuple[Type[BaseModel], str]] = {
    "accounts": (Account, "account"),
    "cards": (Card, "card"),
    "transactions": (Transaction, "transaction"),
    "goals": (Goal, "goal"),
    "limits": (Limit, "limit"),
    "categories": (Category, "category"),
}

logger = get_logger(__name__)


def merge(record: BaseModel, updates: dict[str, Any]) -> BaseModel:
    """
    Apply a partial update and re-validate the result.

    Unknown keys are ignored by the model; protected fields keep their
    stored values.

    Raises:
        pydantic.ValidationError: If the merged record is invalid
    """
    data = record.model_dump()
    data.update(
        {key: value for key, value in updates.items() if key not in PROTECTED_FIELDS}
    )
    return type(record).model_validate(data)


class EntityStore:
    """
    Repositories for accounts, cards, transactions, goals, limits and
    custom categories.

    Usage:
        store = EntityStore()                      # backend from settings
        store = EntityStore(backend="memory")      # explicit
        account = store.require("accounts", account_id)
    """

    def __init__(
        self,
        backend: Optional[str] = None,
        repositories: Optional[dict[str, EntityStorageInterface]] = None,
    ):
        self.backend = backend or get_settings().app.storage_backend
        repositories = dict(repositories or {})

        sheets_client = None
        for collection, (model, _) in COLLECTIONS.items():
            if collection in repositories:
                continue
            if self.backend == "google_sheets":
                from finance_tracker.services.storage.google_sheets import (
                    GoogleSheetsClient,
                    GoogleSheetsEntityStorage,
                )

                sheets_client = sheets_client or GoogleSheetsClient()
                repositories[collection] = GoogleSheetsEntityStorage(
                    collection, model, client=sheets_client
                )
            else:
                repositories[collection] = InMemoryEntityStorage(collection)

        self._repositories = repositories
        logger.info("entity_store_ready", backend=self.backend)

    @property
    def accounts(self) -> EntityStorageInterface[Account]:
        return self._repositories["accounts"]

    @property
    def cards(self) -> EntityStorageInterface[Card]:
        return self._repositories["cards"]

    @property
    def transactions(self) -> EntityStorageInterface[Transaction]:
        return self._repositories["transactions"]

    @property
    def goals(self) -> EntityStorageInterface[Goal]:
        return self._repositories["goals"]

    @property
    def limits(self) -> EntityStorageInterface[Limit]:
        return self._repositories["limits"]

    @property
    def categories(self) -> EntityStorageInterface[Category]:
        return self._repositories["categories"]

    def repository(self, collection: str) -> EntityStorageInterface:
        return self._repositories[collection]

    def require(self, collection: str, record_id: Optional[str]):
        """
        Fetch a record or fail.

        Raises:
            UnknownReferenceError: If no record has that id
        """
        record = self._repositories[collection].get(record_id) if record_id else None
        if record is None:
            raise UnknownReferenceError(COLLECTIONS[collection][1], str(record_id))
        return record

    def clear_all(self) -> None:
        """Empty every collection."""
        for repository in self._repositories.values():
            repository.clear()
        logger.warning("entity_store_cleared", backend=self.backend)
