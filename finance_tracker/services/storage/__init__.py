"""
Storage Services Package

Provides the abstract repository interface and its implementations.
In-memory storage is the default; Google Sheets is the persistent option.
"""

from finance_tracker.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    EntityStorageInterface,
    NotFoundError,
    StorageError,
)
from finance_tracker.services.storage.memory import InMemoryEntityStorage

__all__ = [
    # Interface
    "EntityStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryEntityStorage",
]
