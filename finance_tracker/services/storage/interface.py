"""
Abstract Storage Interface

We define an abstract interface for entity storage so that:
1. In-memory storage serves the app and the tests
2. Google Sheets (or a real database later) can be swapped in
3. The ledger never depends on a storage implementation

The interface is intentionally small - one repository per entity
collection, with the handful of operations the ledger needs.
There is no delete: records are never removed, only the whole store
can be reset.
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel


T = TypeVar("T", bound=BaseModel)


class EntityStorageInterface(ABC, Generic[T]):
    """
    Abstract repository for one collection of records keyed by `id`.

    Any storage implementation (in-memory, Google Sheets, SQL, etc.)
    must implement these methods.
    """

    #: Collection key, e.g. "accounts"
    collection: str

    @abstractmethod
    def save(self, record: T) -> T:
        """
        Insert a new record.

        Raises:
            DuplicateError: If a record with the same id exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def get(self, record_id: str) -> Optional[T]:
        """Retrieve a record by id, or None if it does not exist."""
        pass

    @abstractmethod
    def update(self, record: T) -> T:
        """
        Replace an existing record.

        Raises:
            NotFoundError: If the record doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def list_all(self) -> list[T]:
        """All records in insertion order."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every record in the collection."""
        pass

    def exists(self, record_id: str) -> bool:
        return self.get(record_id) is not None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
