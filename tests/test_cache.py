"""Tests for the TTL cache."""

from __future__ import annotations

import pytest

from matching.cache import TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_value_served_until_ttl_then_evicted() -> None:
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("employee_1", {"summary": "x"})

    clock.now += 59.9
    assert cache.get("employee_1") == {"summary": "x"}

    clock.now += 0.1
    assert cache.get("employee_1") is None
    assert "employee_1" not in cache


def test_set_refreshes_timestamp() -> None:
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("k", 1)
    clock.now += 8
    cache.set("k", 2)
    clock.now += 8
    assert cache.get("k") == 2


def test_invalidate_and_clear() -> None:
    cache = TTLCache(10)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.invalidate("a")
    assert cache.get("a") is None
    assert "b" in cache
    cache.clear()
    assert cache.get("b") is None


def test_external_storage_is_used() -> None:
    store: dict = {}
    cache = TTLCache(10, storage=store)
    cache.set("k", "v")
    assert "k" in store


def test_non_positive_ttl_rejected() -> None:
    with pytest.raises(ValueError):
        TTLCache(0)
