import pytest
from fastapi.testclient import TestClient

from app.core.security import create_access_token
from app.db.memory import InMemoryDocumentStore, InMemoryIdentityService
from app.dependencies import EXPENSES, TODOS, TRAINING, configure_backends
from app.main import app
from app.services.cache import ListCache

ADMIN_ID = "user_admin"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ListCache(ttl=600, maxsize=100, timer=clock)


@pytest.fixture
def stores():
    return {name: InMemoryDocumentStore(name) for name in (EXPENSES, TRAINING, TODOS)}


@pytest.fixture
def client(stores, cache):
    configure_backends(
        stores=stores,
        identity_service=InMemoryIdentityService(admins=[ADMIN_ID]),
        list_cache=cache,
    )
    yield TestClient(app)
    configure_backends()


@pytest.fixture
def admin_id():
    return ADMIN_ID


@pytest.fixture
def auth():
    """Build bearer headers for a user id."""

    def headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}

    return headers
