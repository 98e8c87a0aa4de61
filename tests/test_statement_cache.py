"""Identity lookups and the per-shape statement cache."""

import threading

import pytest

from multitenant_sql.core.context import with_tenant
from multitenant_sql.services.statement_cache import IdentityLookup, StatementCache


@pytest.fixture
def lookups(registry):
    return IdentityLookup(registry=registry, cache=StatementCache(maxsize=8))


def _bound_values(stmt):
    return set(stmt.compile().params.values())


def test_unscoped_lookup_reuses_statement(lookups):
    first = lookups.find_by("countries", "code")
    second = lookups.find_by("countries", "code")

    assert first is second
    assert ("countries", "code") in lookups.cache


def test_column_order_does_not_matter(lookups):
    assert lookups.find_by("countries", "a", "b") is lookups.find_by("countries", "b", "a")


def test_scoped_lookup_is_rebuilt_per_call(lookups):
    with with_tenant("t1"):
        first = lookups.find("orders")
    with with_tenant("t2"):
        second = lookups.find("orders")

    assert first is not second
    assert "t1" in _bound_values(first)
    assert "t2" in _bound_values(second)
    assert "t1" not in _bound_values(second)


def test_find_uses_registered_primary_key(lookups):
    stmt = lookups.find("orders")

    assert "orders.id = :id" in str(stmt)


def test_find_by_requires_columns(lookups):
    with pytest.raises(ValueError):
        lookups.find_by("orders")


def test_cache_evicts_least_recently_used():
    cache = StatementCache(maxsize=2)
    cache.get_or_build(("a",), lambda: 1)
    cache.get_or_build(("b",), lambda: 2)
    cache.get_or_build(("a",), lambda: 99)  # touch a
    cache.get_or_build(("c",), lambda: 3)

    assert ("a",) in cache
    assert ("b",) not in cache
    assert cache.get(("a",)) == 1


def test_cache_builds_once_under_contention():
    cache = StatementCache(maxsize=4)
    calls = []

    def build():
        calls.append(1)
        return object()

    threads = [
        threading.Thread(target=cache.get_or_build, args=(("k",), build)) for _ in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calls) == 1


def test_scoped_lookup_is_never_stored(lookups):
    with with_tenant("t1"):
        lookups.find("orders")
        lookups.find_by("orders", "status")

    assert ("orders", "id") not in lookups.cache
    assert lookups.cache.get(("orders", "status")) is None
    assert len(lookups.cache) == 0
