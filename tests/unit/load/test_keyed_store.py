from __future__ import annotations

import pytest

from etl_pipeline.extract.memory import MemorySource
from etl_pipeline.load.keyed import KeyedStore
from etl_pipeline.pipeline.errors import ConfigurationError


def _write(store: KeyedStore, number: int, **fields: object) -> int:
    for name, value in fields.items():
        store.set(name, value)
    return store.write_record(number)


def test_keep_collects_records_in_arrival_order() -> None:
    target: dict = {}
    store = KeyedStore(store=target, key="id")
    store.setup(MemorySource([]))

    assert _write(store, 1, id="K", v="R1") == 1
    assert _write(store, 2, id="K", v="R2") == 1
    assert _write(store, 3, id="J", v="R3") == 1

    assert target["K"] == [{"id": "K", "v": "R1"}, {"id": "K", "v": "R2"}]
    assert target["J"] == [{"id": "J", "v": "R3"}]
    assert store.written == 3


def test_keep_turns_a_single_record_into_a_list() -> None:
    """A value left by an earlier `overwrite` run becomes the first list element."""
    target: dict = {"K": {"id": "K", "v": "old"}}
    store = KeyedStore(store=target, key="id", clear=False)
    store.setup(MemorySource([]))

    _write(store, 1, id="K", v="new")
    assert target["K"] == [{"id": "K", "v": "old"}, {"id": "K", "v": "new"}]


def test_skip_keeps_the_first_record_and_reports_zero() -> None:
    target: dict = {}
    store = KeyedStore(store=target, key="id", duplicates="skip")
    store.setup(MemorySource([]))

    assert _write(store, 1, id="K", v="R1") == 1
    assert _write(store, 2, id="K", v="R2") == 0

    assert target == {"K": {"id": "K", "v": "R1"}}
    assert store.written == 1
    assert [f.record_number for f in store.failures] == [2]
    assert "duplicate" in store.failures[0].reason


def test_overwrite_keeps_the_latest_record() -> None:
    target: dict = {}
    store = KeyedStore(store=target, key="id", duplicates="overwrite")
    store.setup(MemorySource([]))

    assert _write(store, 1, id="K", v="R1") == 1
    assert _write(store, 2, id="K", v="R2") == 1
    assert target == {"K": {"id": "K", "v": "R2"}}


def test_buffer_is_reset_after_each_write() -> None:
    store = KeyedStore(key="id")
    store.setup(MemorySource([]))
    _write(store, 1, id="K", extra="only here")
    _write(store, 2, id="J")
    assert store.store["J"] == [{"id": "J"}]
    assert store.record == {}


def test_records_without_a_key_go_to_the_side_list() -> None:
    store = KeyedStore(key="id")
    store.setup(MemorySource([]))

    assert _write(store, 1, v="no key") == 0
    assert _write(store, 2, id="  ", v="blank key") == 0
    assert store.store == {}
    assert store.unkeyed == [{"v": "no key"}, {"id": "  ", "v": "blank key"}]
    assert [f.record_number for f in store.failures] == [1, 2]


def test_clear_empties_the_store_at_setup() -> None:
    target: dict = {"old": ["x"]}
    KeyedStore(store=target, key="id").setup(MemorySource([]))
    assert target == {}


def test_clear_off_accumulates_across_runs() -> None:
    target: dict = {"old": ["x"]}
    KeyedStore(store=target, key="id", clear=False).setup(MemorySource([]))
    assert target == {"old": ["x"]}


def test_unknown_policy_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="duplicates"):
        KeyedStore(key="id", duplicates="merge")
