from __future__ import annotations

import pytest

from valoris.services.cache import BoundedStore


def test_evicts_oldest_inserted_key():
    store: BoundedStore[str, int] = BoundedStore(capacity=2)
    store.set("a", 1)
    store.set("b", 2)
    store.set("c", 3)
    assert "a" not in store
    assert list(store) == ["b", "c"]
    assert len(store) == 2


def test_reads_do_not_refresh_position():
    store: BoundedStore[str, int] = BoundedStore(capacity=2)
    store.set("a", 1)
    store.set("b", 2)
    assert store.get("a") == 1
    store.set("c", 3)
    assert store.get("a") is None
    assert store.get("b") == 2


def test_overwrite_keeps_insertion_slot():
    store: BoundedStore[str, int] = BoundedStore(capacity=2)
    store.set("a", 1)
    store.set("b", 2)
    store.set("a", 10)
    store.set("c", 3)
    assert "a" not in store
    assert store.get("c") == 3


def test_pop_and_clear():
    store: BoundedStore[str, int] = BoundedStore()
    assert store.capacity == 10
    store.set("a", 1)
    assert store.pop("a") == 1
    assert store.pop("a") is None
    store.set("b", 2)
    store.clear()
    assert len(store) == 0


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        BoundedStore(capacity=0)
