"""
In-Memory Storage Implementation

The default backend: every collection is a dict from id to record,
living only as long as the process. Records are copied on the way in
and out so callers can never mutate stored state behind the ledger's back.
"""

from typing import Optional

from finance_tracker.services.storage.interface import (
    DuplicateError,
    EntityStorageInterface,
    NotFoundError,
    T,
)


class InMemoryEntityStorage(EntityStorageInterface[T]):
    """Dict-backed repository for one collection."""

    def __init__(self, collection: str):
        self.collection = collection
        self._records: dict[str, T] = {}

    def save(self, record: T) -> T:
        if record.id in self._records:
            raise DuplicateError(
                f"{self.collection}: record {record.id} already exists"
            )
        self._records[record.id] = record.model_copy(deep=True)
        return record

    def get(self, record_id: str) -> Optional[T]:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record is not None else None

    def update(self, record: T) -> T:
        if record.id not in self._records:
            raise NotFoundError(f"{self.collection}: record {record.id} not found")
        self._records[record.id] = record.model_copy(deep=True)
        return record

    def list_all(self) -> list[T]:
        return [record.model_copy(deep=True) for record in self._records.values()]

    def clear(self) -> None:
        self._records.clear()
