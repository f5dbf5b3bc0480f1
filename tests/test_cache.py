from app.services import cache as cache_module
from app.services.cache import ListCache, _purge_job, cache_key, start_purge_scheduler, stop_purge_scheduler


def test_cache_key_format():
    assert cache_key("expenses", "user_1") == "expenses:user_1"


def test_entry_expires_after_ttl(cache, clock):
    cache.set("expenses:u1", [{"id": "a"}])
    clock.advance(599)
    assert cache.get("expenses:u1") == [{"id": "a"}]
    clock.advance(2)
    assert cache.get("expenses:u1") is None


def test_delete_removes_entry(cache):
    cache.set("training:u1", [{"id": "a"}])
    assert cache.delete("training:u1") is True
    assert "training:u1" not in cache
    assert cache.delete("training:u1") is False


def test_set_overwrites_and_restarts_ttl(cache, clock):
    cache.set("todos:u1", [1])
    clock.advance(500)
    cache.set("todos:u1", [2])
    clock.advance(500)
    assert cache.get("todos:u1") == [2]


def test_purge_expired_counts_removed_entries(cache, clock):
    cache.set("expenses:u1", [1])
    cache.set("expenses:u2", [2])
    clock.advance(300)
    cache.set("expenses:u3", [3])
    clock.advance(301)
    assert cache.purge_expired() == 2
    assert len(cache) == 1


def test_stats_track_hits_and_misses(clock):
    cache = ListCache(ttl=60, maxsize=5, timer=clock)
    cache.get("expenses:u1")
    cache.set("expenses:u1", [1])
    cache.get("expenses:u1")
    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["entries"] == 1
    assert stats["max_entries"] == 5
    assert stats["ttl_seconds"] == 60


def test_purge_scheduler_registers_and_stops(cache):
    start_purge_scheduler(lambda: cache, 3600)
    try:
        assert cache_module.scheduler is not None
        assert cache_module.scheduler.running
        assert cache_module.scheduler.get_job("list_cache_purge") is not None
    finally:
        stop_purge_scheduler()
    assert cache_module.scheduler is None


def test_purge_scheduler_disabled_for_zero_period(cache):
    start_purge_scheduler(lambda: cache, 0)
    assert cache_module.scheduler is None


def test_purge_job_uses_current_cache(clock):
    old = ListCache(ttl=10, timer=clock)
    new = ListCache(ttl=10, timer=clock)
    new.set("expenses:u1", [1])
    current = {"cache": old}

    clock.advance(11)
    current["cache"] = new
    _purge_job(lambda: current["cache"])
    assert len(new) == 0


def test_app_lifespan_runs_purge_scheduler(client):
    with client:
        assert cache_module.scheduler is not None
        assert cache_module.scheduler.get_job("list_cache_purge") is not None
    assert cache_module.scheduler is None
