"""
In-process backends used for local development and tests.
"""

from __future__ import annotations

import copy
import threading
from typing import Dict, Iterable, List, Optional

from app.db.base import (
    Document,
    DocumentStore,
    IdentityService,
    matches,
    new_document,
    sort_and_page,
    utc_now,
)


class InMemoryDocumentStore(DocumentStore):
    def __init__(self, name: str = "documents") -> None:
        self.name = name
        self._docs: Dict[str, Document] = {}
        self._lock = threading.Lock()
        # Number of find() calls, handy for asserting cache hits in tests.
        self.find_calls = 0

    def reset(self) -> None:
        with self._lock:
            self._docs.clear()
            self.find_calls = 0

    def find(self, filters=None, sort_by=None, order="desc", skip=0, limit=None) -> List[Document]:
        with self._lock:
            self.find_calls += 1
            docs = [copy.deepcopy(d) for d in self._docs.values() if matches(d, filters)]
        return sort_and_page(docs, sort_by, order, skip, limit)

    def count(self, filters=None) -> int:
        with self._lock:
            return sum(1 for d in self._docs.values() if matches(d, filters))

    def insert_one(self, data: Document) -> Document:
        doc = new_document(data)
        with self._lock:
            self._docs[doc["id"]] = doc
        return copy.deepcopy(doc)

    def insert_many(self, items: List[Document]) -> List[Document]:
        docs = [new_document(item) for item in items]
        with self._lock:
            for doc in docs:
                self._docs[doc["id"]] = doc
        return copy.deepcopy(docs)

    def find_by_id(self, record_id: str) -> Optional[Document]:
        with self._lock:
            doc = self._docs.get(record_id)
            return copy.deepcopy(doc) if doc else None

    def find_by_id_and_update(self, record_id: str, changes: Document) -> Optional[Document]:
        with self._lock:
            doc = self._docs.get(record_id)
            if doc is None:
                return None
            doc.update(copy.deepcopy(changes))
            doc["updated_at"] = utc_now()
            return copy.deepcopy(doc)

    def find_by_id_and_delete(self, record_id: str) -> Optional[Document]:
        with self._lock:
            return self._docs.pop(record_id, None)


class InMemoryIdentityService(IdentityService):
    def __init__(self, admins: Optional[Iterable[str]] = None) -> None:
        self.admins = set(admins or [])

    def is_admin(self, user_id: str) -> bool:
        return user_id in self.admins
