# tests/test_cache_service.py
from showreel.services.cache_service import (
    CacheInvalidationPolicy,
    CacheKeys,
    CacheOp,
    CacheTTL,
    TTLCache,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", [1, 2], ttl=10)

    clock.now += 9
    assert cache.get("k") == [1, 2]

    clock.now += 2
    assert cache.get("k") is None
    assert "k" not in cache


def test_get_or_load_hits_loader_once_until_deleted():
    cache = TTLCache()
    calls = []

    def loader():
        calls.append(1)
        return {"n": len(calls)}

    assert cache.get_or_load("k", 60, loader) == {"n": 1}
    assert cache.get_or_load("k", 60, loader) == {"n": 1}
    cache.delete("k")
    assert cache.get_or_load("k", 60, loader) == {"n": 2}


def test_get_or_load_does_not_cache_none():
    cache = TTLCache()
    assert cache.get_or_load("missing", 60, lambda: None) is None
    assert "missing" not in cache


def test_empty_list_is_cached():
    cache = TTLCache()
    cache.get_or_load("k", 60, lambda: [])
    assert "k" in cache


def test_delete_prefix_and_clear():
    cache = TTLCache()
    cache.set("project:1", 1)
    cache.set("project:2", 2)
    cache.set("projects:published", [])
    assert cache.delete_prefix("project:") == 2
    assert "projects:published" in cache
    cache.clear()
    assert "projects:published" not in cache


def _warm(cache):
    for key in (
        CacheKeys.PUBLISHED_PROJECTS,
        CacheKeys.FEATURED_PROJECTS,
        CacheKeys.PORTFOLIO_STATS,
        CacheKeys.project(1),
        CacheKeys.project(2),
    ):
        cache.set(key, "x", CacheTTL.PROJECT)


def test_update_drops_lists_and_only_that_project():
    cache = TTLCache()
    _warm(cache)
    CacheInvalidationPolicy(cache).invalidate(CacheOp.UPDATE, project_id=1)

    assert CacheKeys.PUBLISHED_PROJECTS not in cache
    assert CacheKeys.FEATURED_PROJECTS not in cache
    assert CacheKeys.PORTFOLIO_STATS not in cache
    assert CacheKeys.project(1) not in cache
    assert CacheKeys.project(2) in cache


def test_rank_shifting_ops_drop_every_project_entry():
    for op in (CacheOp.CREATE, CacheOp.DELETE, CacheOp.REORDER):
        cache = TTLCache()
        _warm(cache)
        CacheInvalidationPolicy(cache).invalidate(op, project_id=1)
        assert CacheKeys.project(1) not in cache
        assert CacheKeys.project(2) not in cache
        assert CacheKeys.PUBLISHED_PROJECTS not in cache


def test_every_op_has_a_key_list():
    policy = CacheInvalidationPolicy(TTLCache())
    for op in CacheOp:
        keys, prefixes = policy.keys_for(op, project_id=5)
        assert CacheKeys.PUBLISHED_PROJECTS in keys
        assert keys or prefixes


def test_load_overlapping_invalidation_is_not_stored():
    cache = TTLCache()
    policy = CacheInvalidationPolicy(cache)

    def stale_loader():
        # 读完旧数据后，另一个请求提交并失效
        policy.invalidate(CacheOp.UPDATE, project_id=1)
        return ["old"]

    assert cache.get_or_load(CacheKeys.PUBLISHED_PROJECTS, CacheTTL.LIST, stale_loader) == ["old"]
    assert cache.get_or_load(CacheKeys.PUBLISHED_PROJECTS, CacheTTL.LIST, lambda: ["new"]) == ["new"]
    assert cache.get(CacheKeys.PUBLISHED_PROJECTS) == ["new"]


def test_prefix_invalidation_during_load_blocks_project_entry():
    cache = TTLCache()
    policy = CacheInvalidationPolicy(cache)

    def stale_loader():
        policy.invalidate(CacheOp.REORDER)
        return {"displayOrder": 3}

    cache.get_or_load(CacheKeys.project(7), CacheTTL.PROJECT, stale_loader)
    assert CacheKeys.project(7) not in cache


def test_unrelated_invalidation_during_load_still_stores():
    cache = TTLCache()

    def loader():
        cache.delete(CacheKeys.project(2))
        return {"id": 1}

    cache.get_or_load(CacheKeys.project(1), CacheTTL.PROJECT, loader)
    assert CacheKeys.project(1) in cache
