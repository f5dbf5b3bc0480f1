from concurrent.futures import ThreadPoolExecutor

import pytest

from app import dependencies
from app.core.config import settings


@pytest.fixture
def in_memory(monkeypatch):
    monkeypatch.setattr(settings, "USE_IN_MEMORY_BACKENDS", True)
    dependencies.configure_backends()
    yield
    dependencies.configure_backends()


def test_concurrent_first_use_builds_one_store(in_memory):
    with ThreadPoolExecutor(max_workers=8) as pool:
        stores = list(pool.map(lambda _: dependencies.get_store(dependencies.EXPENSES), range(32)))
    assert len({id(store) for store in stores}) == 1


def test_gateways_share_the_list_cache(in_memory):
    cache = dependencies.get_list_cache()
    assert dependencies.get_expense_gateway().cache is cache
    assert dependencies.get_training_gateway().cache is cache
    assert dependencies.get_todo_gateway().cache is cache
    assert dependencies.get_expense_gateway() is dependencies.get_expense_gateway()


def test_configure_backends_replaces_cache(in_memory):
    first = dependencies.get_list_cache()
    dependencies.configure_backends()
    assert dependencies.get_list_cache() is not first
