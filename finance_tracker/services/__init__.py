"""Services package."""

from finance_tracker.services.storage import (
    ConnectionError,
    DuplicateError,
    EntityStorageInterface,
    InMemoryEntityStorage,
    NotFoundError,
    StorageError,
)

__all__ = [
    "ConnectionError",
    "DuplicateError",
    "EntityStorageInterface",
    "InMemoryEntityStorage",
    "NotFoundError",
    "StorageError",
]
