"""Tests for the listing result cache backends and key signature."""

from __future__ import annotations

from decimal import Decimal

import fakeredis
import pytest

from app.domains.catalog.services.result_cache import (
    CATALOG_KEY_PREFIX,
    MemoryResultCache,
    NullResultCache,
    RedisResultCache,
    build_result_cache,
    build_signature,
    in_category_scope,
    parse_scope,
    scope_prefix,
)
from app.schemas.products import ProductFilterIn


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock():
    return FakeClock()


def test_memory_cache_expires_after_ttl(clock):
    cache = MemoryResultCache(clock=clock)
    cache.put("k", {"a": 1}, ttl=10)

    clock.now += 9
    assert cache.get("k") == {"a": 1}

    clock.now += 2
    assert cache.get("k") is None
    assert len(cache) == 0


def test_memory_cache_evicts_least_recently_used(clock):
    cache = MemoryResultCache(max_entries=2, clock=clock)
    cache.put("a", {"v": 1}, ttl=60)
    cache.put("b", {"v": 2}, ttl=60)
    cache.get("a")
    cache.put("c", {"v": 3}, ttl=60)

    assert cache.get("b") is None
    assert cache.get("a") == {"v": 1}
    assert cache.get("c") == {"v": 3}


def test_memory_cache_invalidates_by_prefix(clock):
    cache = MemoryResultCache(clock=clock)
    cache.put(CATALOG_KEY_PREFIX + "1", {}, ttl=60)
    cache.put(CATALOG_KEY_PREFIX + "2", {}, ttl=60)
    cache.put("other:1", {}, ttl=60)

    assert cache.invalidate(CATALOG_KEY_PREFIX) == 2
    assert len(cache) == 1
    assert cache.invalidate() == 1


def test_signature_is_stable_for_equivalent_filters():
    a = ProductFilterIn(brands=["Acme", "Globex"], specs={"Color": ["Red", "Black"]})
    b = ProductFilterIn(brands=["globex", "ACME"], specs={"color": ["black", "red"]})

    assert build_signature(a, None, "newest") == build_signature(b, None, "newest")


def test_signature_uses_resolved_categories():
    by_name = ProductFilterIn(categories=["Phones"])
    by_id = ProductFilterIn(category_ids=[2])

    assert build_signature(by_name, {3, 2}, "newest") == build_signature(by_id, {2, 3}, "newest")


def test_signature_differs_by_page_sort_and_bounds():
    base = ProductFilterIn(min_price=Decimal("10"))

    keys = {
        build_signature(base, None, "newest"),
        build_signature(base, None, "price-asc"),
        build_signature(ProductFilterIn(min_price=Decimal("10"), page=2), None, "newest"),
        build_signature(ProductFilterIn(min_price=Decimal("11")), None, "newest"),
    }

    assert len(keys) == 4
    assert all(k.startswith(CATALOG_KEY_PREFIX) for k in keys)


def test_signature_normalizes_decimal_spelling():
    a = ProductFilterIn(min_price=Decimal("10"))
    b = ProductFilterIn(min_price=Decimal("10.00"))

    assert build_signature(a, None, "newest") == build_signature(b, None, "newest")


def test_redis_cache_round_trip_and_prefix_invalidation():
    client = fakeredis.FakeRedis(decode_responses=True)
    cache = RedisResultCache(client, namespace="test")

    cache.put(CATALOG_KEY_PREFIX + "a", {"items": [], "total_items": 0}, ttl=60)
    cache.put(CATALOG_KEY_PREFIX + "b", {"items": []}, ttl=60)
    cache.put("other:a", {"x": 1}, ttl=60)

    assert cache.get(CATALOG_KEY_PREFIX + "a") == {"items": [], "total_items": 0}
    assert 0 < client.ttl("test:" + CATALOG_KEY_PREFIX + "a") <= 60
    assert cache.invalidate(CATALOG_KEY_PREFIX) == 2
    assert cache.get(CATALOG_KEY_PREFIX + "a") is None
    assert cache.get("other:a") == {"x": 1}


def test_null_cache_never_hits():
    cache = NullResultCache()
    cache.put("k", {"a": 1}, ttl=60)

    assert cache.get("k") is None
    assert cache.invalidate() == 0


def test_build_result_cache_backends():
    assert isinstance(build_result_cache("memory"), MemoryResultCache)
    assert isinstance(build_result_cache("none"), NullResultCache)


def test_signature_carries_readable_scope_before_hash():
    wide = build_signature(ProductFilterIn(), None, "newest")
    scoped = build_signature(
        ProductFilterIn(category_ids=[2], brands=["Acme", "a:b*"], brand_ids=[4]), {3, 2}, "newest"
    )
    empty = build_signature(ProductFilterIn(categories=["Garden"]), set(), "newest")

    assert wide.startswith(CATALOG_KEY_PREFIX + "cat=all:brand=all:")
    assert scoped.startswith(scope_prefix({2, 3}))
    assert parse_scope(scoped) == {"cat": "2,3", "brand": "4,a%3Ab%2A,acme"}
    assert parse_scope(empty)["cat"] == "none"


def test_memory_cache_invalidates_one_category_scope(clock):
    cache = MemoryResultCache(clock=clock)
    wide = build_signature(ProductFilterIn(), None, "newest")
    phones = build_signature(ProductFilterIn(category_ids=[2]), {2, 3}, "newest")
    laptops = build_signature(ProductFilterIn(category_ids=[4]), {4}, "newest")
    for key in (wide, phones, laptops):
        cache.put(key, {"k": key}, ttl=60)

    assert cache.invalidate(CATALOG_KEY_PREFIX, predicate=in_category_scope(3)) == 1
    assert cache.get(phones) is None
    assert cache.get(wide) == {"k": wide}
    assert cache.get(laptops) == {"k": laptops}

    assert cache.invalidate(scope_prefix({4})) == 1
    assert cache.get(wide) == {"k": wide}


def test_redis_cache_invalidates_one_category_scope():
    client = fakeredis.FakeRedis(decode_responses=True)
    cache = RedisResultCache(client, namespace="test")
    wide = build_signature(ProductFilterIn(), None, "newest")
    phones = build_signature(ProductFilterIn(category_ids=[2]), {2, 3}, "newest")
    cache.put(wide, {"v": 1}, ttl=60)
    cache.put(phones, {"v": 2}, ttl=60)

    assert cache.invalidate(CATALOG_KEY_PREFIX, predicate=in_category_scope(2)) == 1
    assert cache.get(phones) is None
    assert cache.get(wide) == {"v": 1}


def test_category_scope_predicate_ignores_unscoped_keys():
    match = in_category_scope(3)

    assert match(CATALOG_KEY_PREFIX + "cat=2,3:brand=all:abc")
    assert not match(CATALOG_KEY_PREFIX + "cat=13:brand=all:abc")
    assert not match(CATALOG_KEY_PREFIX + "cat=all:brand=all:abc")
    assert not match("other:cat=3:x")
