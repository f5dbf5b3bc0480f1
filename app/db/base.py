"""
Document store interface shared by the DynamoDB and in-memory backends.

Stores own id and timestamp assignment: every inserted document gets an
``id`` plus ``created_at``/``updated_at`` ISO-8601 UTC strings, and every
update refreshes ``updated_at``.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

Document = Dict[str, Any]


class StoreError(Exception):
    """Raised when the backing store rejects or fails an operation."""


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_document(data: Document) -> Document:
    now = utc_now()
    doc = dict(data)
    doc["id"] = uuid4().hex
    doc["created_at"] = now
    doc["updated_at"] = now
    return doc


def matches(doc: Document, filters: Optional[Document]) -> bool:
    if not filters:
        return True
    return all(doc.get(key) == value for key, value in filters.items())


def sort_key(value: Any):
    """Total order over mixed values: numbers, then strings, then objects, then arrays."""
    if isinstance(value, (int, float)):
        return (0, value, "")
    if isinstance(value, str):
        return (1, 0, value)
    rank = 3 if isinstance(value, (list, tuple)) else 2
    return (rank, 0, json.dumps(value, sort_keys=True, default=str))


def sort_and_page(
    docs: List[Document],
    sort_by: Optional[str] = None,
    order: str = "desc",
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Document]:
    """Order ``docs`` by ``sort_by`` then apply skip/limit.

    Documents missing the sort field sort after the ones that have it,
    whatever the direction.
    """
    if sort_by:
        present = [d for d in docs if d.get(sort_by) is not None]
        missing = [d for d in docs if d.get(sort_by) is None]
        present.sort(key=lambda d: sort_key(d[sort_by]), reverse=(order == "desc"))
        docs = present + missing
    skip = max(skip or 0, 0)
    if limit is not None and limit > 0:
        return docs[skip:skip + limit]
    return docs[skip:]


class DocumentStore(ABC):
    """One collection of documents of a single resource type."""

    name: str = "documents"

    @abstractmethod
    def find(
        self,
        filters: Optional[Document] = None,
        sort_by: Optional[str] = None,
        order: str = "desc",
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Document]:
        ...

    @abstractmethod
    def count(self, filters: Optional[Document] = None) -> int:
        ...

    @abstractmethod
    def insert_one(self, data: Document) -> Document:
        ...

    @abstractmethod
    def insert_many(self, items: List[Document]) -> List[Document]:
        ...

    @abstractmethod
    def find_by_id(self, record_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    def find_by_id_and_update(self, record_id: str, changes: Document) -> Optional[Document]:
        """Apply ``changes`` and return the updated document, or None if absent."""

    @abstractmethod
    def find_by_id_and_delete(self, record_id: str) -> Optional[Document]:
        """Delete and return the removed document, or None if absent."""

    def ping(self) -> bool:
        return True


class IdentityService(ABC):
    """Role lookup for authenticated principals."""

    @abstractmethod
    def is_admin(self, user_id: str) -> bool:
        ...

    def ping(self) -> bool:
        return True
