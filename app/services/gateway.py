"""
Cached Query Gateway.

Serves paginated, sorted list queries for a user's own records from the
list cache, and invalidates that user's cache entry after every write
before the write returns, including writes that fail part way through.
One instance per resource type.

Invalidation is coarse: any write for a user drops that user's whole list
entry, whatever page or sort it was built from. A read that misses the
cache and repopulates it can race a concurrent write's invalidation; the
TTL bounds how long such a stale entry can live.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Union

from app.db.base import Document, DocumentStore
from app.services.cache import ListCache, cache_key

logger = logging.getLogger(__name__)

Changes = Union[Document, Callable[[Document], Document]]
Authorizer = Callable[[Document], None]


class GatewayError(Exception):
    """Base class for conditions the transport maps to a client response."""


class AuthenticationError(GatewayError):
    pass


class NotFoundError(GatewayError):
    pass


class ForbiddenError(GatewayError):
    pass


class NoRecordsError(GatewayError):
    """The list query matched nothing. Not fatal."""


@dataclass
class ListResult:
    records: List[Document]
    cached: bool = False


@dataclass
class PageResult:
    records: List[Document]
    total: int
    total_pages: int
    current_page: int


def compute_skip(limit: Optional[int], page: Optional[int]) -> int:
    """Skip for a 1-based page. Missing or out-of-range input means no skip."""
    if not limit or limit <= 0 or not page:
        return 0
    return max((page - 1) * limit, 0)


class CachedQueryGateway:
    def __init__(
        self,
        resource_type: str,
        store: DocumentStore,
        cache: ListCache,
        default_sort: str = "created_at",
        hidden_fields: Iterable[str] = (),
        label: Optional[str] = None,
    ) -> None:
        self.resource_type = resource_type
        self.label = label or resource_type
        self.store = store
        self.cache = cache
        self.default_sort = default_sort
        self.hidden_fields = tuple(hidden_fields)

    def key(self, user_id: str) -> str:
        return cache_key(self.resource_type, user_id)

    def _require_user(self, user_id: Optional[str]) -> str:
        if not user_id:
            raise AuthenticationError("User not authenticated")
        return user_id

    def _strip(self, doc: Document) -> Document:
        return {k: v for k, v in doc.items() if k not in self.hidden_fields}

    def invalidate(self, *user_ids: Optional[str]) -> None:
        for user_id in {u for u in user_ids if u}:
            self.cache.delete(self.key(user_id))

    # Read path

    def list(
        self,
        user_id: Optional[str],
        limit: Optional[int] = None,
        page: Optional[int] = None,
        sort_by: Optional[str] = None,
        order: str = "desc",
    ) -> ListResult:
        user_id = self._require_user(user_id)
        key = self.key(user_id)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Serving {self.resource_type} data from cache for {user_id}")
            return ListResult(records=cached, cached=True)

        records = self.store.find(
            {"user_id": user_id},
            sort_by=sort_by or self.default_sort,
            order=order,
            skip=compute_skip(limit, page),
            limit=limit if limit and limit > 0 else None,
        )
        if not records:
            logger.info(f"No {self.resource_type} records found for user {user_id}")
            raise NoRecordsError(f"No {self.resource_type} found for this user")

        records = [self._strip(doc) for doc in records]
        self.cache.set(key, records)
        return ListResult(records=records)

    def list_page(
        self,
        filters: Document,
        limit: int = 10,
        page: int = 1,
        sort_by: Optional[str] = None,
        order: str = "desc",
    ) -> PageResult:
        """Uncached paginated query with totals, used for shared listings."""
        limit = limit if limit and limit > 0 else 10
        page = page if page and page > 0 else 1
        total = self.store.count(filters)
        records = self.store.find(
            filters,
            sort_by=sort_by or self.default_sort,
            order=order,
            skip=compute_skip(limit, page),
            limit=limit,
        )
        return PageResult(
            records=records,
            total=total,
            total_pages=math.ceil(total / limit),
            current_page=page,
        )

    # Write path

    def create(self, user_id: Optional[str], data: Document) -> Document:
        user_id = self._require_user(user_id)
        try:
            return self.store.insert_one({**data, "user_id": user_id})
        finally:
            self.invalidate(user_id)

    def create_many(self, user_id: Optional[str], items: List[Document]) -> List[Document]:
        user_id = self._require_user(user_id)
        # A batch can fail part way through, so invalidate on every exit
        try:
            return self.store.insert_many([{**item, "user_id": user_id} for item in items])
        finally:
            self.invalidate(user_id)

    def _load_authorized(self, user_id: str, record_id: str, authorize: Optional[Authorizer]) -> Document:
        current = self.store.find_by_id(record_id)
        if current is None:
            raise NotFoundError(f"{self.label} not found")
        if authorize is not None:
            authorize(current)
        elif current.get("user_id") != user_id:
            # Someone else's record looks the same as a missing one
            raise NotFoundError(f"{self.label} not found")
        return current

    def update(
        self,
        user_id: Optional[str],
        record_id: str,
        changes: Changes,
        authorize: Optional[Authorizer] = None,
    ) -> Document:
        """
        Apply ``changes`` to a record. ``changes`` may be a callable that
        builds the update from the current record. Without ``authorize`` the
        caller must own the record.
        """
        user_id = self._require_user(user_id)
        current = self._load_authorized(user_id, record_id, authorize)
        if callable(changes):
            changes = changes(current)

        try:
            updated = self.store.find_by_id_and_update(record_id, changes)
        finally:
            self.invalidate(user_id, current.get("user_id"))
        if updated is None:
            raise NotFoundError(f"{self.label} not found")
        return updated

    def delete(
        self,
        user_id: Optional[str],
        record_id: str,
        authorize: Optional[Authorizer] = None,
    ) -> Document:
        user_id = self._require_user(user_id)
        current = self._load_authorized(user_id, record_id, authorize)

        try:
            deleted = self.store.find_by_id_and_delete(record_id)
        finally:
            self.invalidate(user_id, current.get("user_id"))
        if deleted is None:
            raise NotFoundError(f"{self.label} not found")
        return deleted
