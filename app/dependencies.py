"""
Dependency wiring for the FastAPI app.

Backends are built lazily and shared for the process lifetime, so the list
cache is one object for every request.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from fastapi import Depends, Header, HTTPException, status

from app.core.config import settings
from app.core.security import decode_access_token
from app.db.base import DocumentStore, IdentityService
from app.services.cache import ListCache
from app.services.gateway import CachedQueryGateway

logger = logging.getLogger(__name__)

EXPENSES = "expenses"
TRAINING = "training"
TODOS = "todos"

_stores: Dict[str, DocumentStore] = {}
_identity_service: Optional[IdentityService] = None
_list_cache: Optional[ListCache] = None
_gateways: Dict[str, CachedQueryGateway] = {}

# Sync endpoints run in a threadpool; first requests may race to build backends
_lock = threading.RLock()


def _build_store(resource_type: str) -> DocumentStore:
    if settings.USE_IN_MEMORY_BACKENDS:
        from app.db.memory import InMemoryDocumentStore

        return InMemoryDocumentStore(resource_type)

    from app.db.dynamo import DynamoDocumentStore, get_resource

    table_names = {
        EXPENSES: settings.DYNAMO_EXPENSES_TABLE,
        TRAINING: settings.DYNAMO_TRAINING_TABLE,
        TODOS: settings.DYNAMO_TODOS_TABLE,
    }
    return DynamoDocumentStore(
        table_names[resource_type],
        dynamodb=get_resource(settings.DYNAMO_REGION),
        user_index=settings.DYNAMO_USER_INDEX,
    )


def get_store(resource_type: str) -> DocumentStore:
    with _lock:
        if resource_type not in _stores:
            _stores[resource_type] = _build_store(resource_type)
        return _stores[resource_type]


def get_identity_service() -> IdentityService:
    global _identity_service
    with _lock:
        if _identity_service:
            return _identity_service

        if settings.USE_IN_MEMORY_BACKENDS:
            from app.db.memory import InMemoryIdentityService

            _identity_service = InMemoryIdentityService()
        else:
            from app.db.dynamo import DynamoIdentityService, get_resource

            _identity_service = DynamoIdentityService(
                settings.DYNAMO_USERS_TABLE, dynamodb=get_resource(settings.DYNAMO_REGION)
            )
        return _identity_service


def get_list_cache() -> ListCache:
    global _list_cache
    with _lock:
        if _list_cache is None:
            _list_cache = ListCache(ttl=settings.CACHE_TTL_SECONDS, maxsize=settings.CACHE_MAX_ENTRIES)
        return _list_cache


def _gateway(resource_type: str, **options) -> CachedQueryGateway:
    with _lock:
        if resource_type not in _gateways:
            _gateways[resource_type] = CachedQueryGateway(
                resource_type, get_store(resource_type), get_list_cache(), **options
            )
        return _gateways[resource_type]


def get_expense_gateway() -> CachedQueryGateway:
    return _gateway(
        EXPENSES,
        label="Expense",
        default_sort="date",
        hidden_fields=("user_id", "created_at", "updated_at"),
    )


def get_training_gateway() -> CachedQueryGateway:
    return _gateway(TRAINING, label="Training", default_sort="created_at")


def get_todo_gateway() -> CachedQueryGateway:
    return _gateway(TODOS, label="Todo", default_sort="created_at")


def configure_backends(
    stores: Optional[Dict[str, DocumentStore]] = None,
    identity_service: Optional[IdentityService] = None,
    list_cache: Optional[ListCache] = None,
) -> None:
    """Replace the shared backends (tests and scripts)."""
    global _identity_service, _list_cache
    with _lock:
        _stores.clear()
        _stores.update(stores or {})
        _identity_service = identity_service
        _list_cache = list_cache
        _gateways.clear()


def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """Extract user_id from JWT token"""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not authenticated")

    token = authorization.replace("Bearer ", "")
    payload = decode_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user_id


def get_is_admin(
    user_id: str = Depends(get_current_user_id),
    identity: IdentityService = Depends(get_identity_service),
) -> bool:
    """Look up the principal's role; a failed lookup rejects the request."""
    try:
        return identity.is_admin(user_id)
    except Exception as e:
        logger.error(f"Identity lookup failed for {user_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unable to verify user")
