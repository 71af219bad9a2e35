from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from etl_pipeline.extract.base import Extractor
from etl_pipeline.extract.memory import MemorySource
from etl_pipeline.load.keyed import KeyedStore
from etl_pipeline.load.memory import ListStore
from etl_pipeline.parsing.types import Record
from etl_pipeline.pipeline.engine import Pipeline, run_pipeline
from etl_pipeline.pipeline.errors import ConfigurationError, FileOpenError


def test_end_to_end_csv_into_keyed_store(write_csv) -> None:
    """3 rows, 2 columns, a constant: 3 keys, each record has Name, Age and Source."""
    path = write_csv("Ada,36\nGrace,45\nKatherine,101\n")
    people: dict = {}

    p = Pipeline()
    p.extract_using("csv", path=path)
    p.transform(Name=0, Age=1)
    p.constants(Source="import")
    p.load_into("hash", store=people, key="Name")
    summary = p.run()

    assert sorted(people) == ["Ada", "Grace", "Katherine"]
    for name, records in people.items():
        assert len(records) == 1
        assert records[0]["Name"] == name
        assert records[0]["Source"] == "import"
    assert people["Grace"][0]["Age"] == "45"

    assert (summary.total, summary.loaded, summary.rejected) == (3, 3, 0)
    assert summary.render_one_line().endswith("total=3 loaded=3 rejected=0")


def test_mapped_value_overrides_constant_for_same_field() -> None:
    out = ListStore()
    run_pipeline(
        MemorySource([["from input"], [""]]),
        out,
        mapping={"Source": 0},
        constants={"Source": "default", "Batch": 7},
    )
    assert out.records == [
        {"Source": "from input", "Batch": 7},
        {"Source": "", "Batch": 7},
    ]


def test_deferred_values_receive_the_extractor_or_loader() -> None:
    out = ListStore()
    seen: list[Any] = []

    def upper_name(extract: Extractor) -> str:
        seen.append(extract)
        return str(extract.get(0)).upper()

    source = MemorySource([["ada"], ["grace"]])
    p = Pipeline(extract=source, load=out)
    p.transform({"Name": upper_name, "Row": lambda e: e.record_number})
    p.constants({"Written": lambda load: load.written})
    p.run()

    assert out.records == [
        {"Name": "ADA", "Row": 1, "Written": 0},
        {"Name": "GRACE", "Row": 2, "Written": 1},
    ]
    assert seen == [source, source]


def test_transform_fills_record_fields() -> None:
    source = MemorySource([["Ada"]])
    out = ListStore()
    p = Pipeline(extract=source, load=out, mapping={"Name": 0}, constants={"Source": "x"})
    source.next_record()
    record = source.record
    assert isinstance(record, Record)

    assert p.apply_transform(record) == {"Source": "x", "Name": "Ada"}
    assert record.fields == {"Source": "x", "Name": "Ada"}
    assert out.record == {"Source": "x", "Name": "Ada"}
    assert record.raw == {0: "Ada"}


def test_constants_see_fields_already_in_the_loader_buffer() -> None:
    """Each value reaches the loader as it is computed: `B` reads `A`, `C` reads `B`."""
    out = ListStore()
    run_pipeline(
        MemorySource([["x"], ["y"]]),
        out,
        mapping={"M": 0},
        constants={
            "A": 1,
            "B": lambda load: load.record.get("A"),
            "C": lambda load: (load.record.get("B"), "M" in load.record),
        },
    )
    assert out.records == [
        {"A": 1, "B": 1, "C": (1, False), "M": "x"},
        {"A": 1, "B": 1, "C": (1, False), "M": "y"},
    ]


def test_missing_source_fields_load_as_none() -> None:
    out = ListStore()
    run_pipeline(MemorySource([["Ada"]]), out, mapping={"Name": 0, "Age": 1})
    assert out.records == [{"Name": "Ada", "Age": None}]


@pytest.mark.parametrize(
    ("configure", "message"),
    [
        (lambda p: p.load_into("list").transform(a=0), "extract_using"),
        (lambda p: p.extract_using("memory", rows=[]).transform(a=0), "load_into"),
        (lambda p: p.extract_using("memory", rows=[]).load_into("list"), "transform"),
        (lambda p: p.extract_using("memory", rows=[]).load_into("list").constants(a=1), "transform"),
    ],
)
def test_run_fails_fast_naming_what_is_missing(configure, message: str) -> None:
    p = Pipeline()
    configure(p)
    with pytest.raises(ConfigurationError, match=message):
        p.run()


def test_wrong_stage_types_are_configuration_errors() -> None:
    p = Pipeline(extract=ListStore(), load=ListStore(), mapping={"a": 0})  # type: ignore[arg-type]
    with pytest.raises(ConfigurationError, match="not an Extractor"):
        p.run()


def test_options_with_an_instance_are_rejected() -> None:
    with pytest.raises(ConfigurationError):
        Pipeline().extract_using(MemorySource([]), path="x.csv")
    with pytest.raises(ConfigurationError):
        Pipeline().load_into(ListStore(), key="id")


def test_configuration_is_cleared_after_a_run() -> None:
    """A second run on the same object does not see the first run's mapping or constants."""
    p = Pipeline()
    p.extract_using("memory", rows=[["Ada", "36"]])
    p.transform(Name=0, Age=1)
    p.constants(Source="first")
    first = ListStore()
    p.load_into(first)
    p.run()

    assert (p.extract, p.load, p.field_map, p.constant_values) == (None, None, {}, {})
    with pytest.raises(ConfigurationError):
        p.run()

    second = ListStore()
    p.extract_using("memory", rows=[["Grace", "45"]])
    p.transform(Who=0)
    p.load_into(second)
    p.run()

    assert first.records == [{"Source": "first", "Name": "Ada", "Age": "36"}]
    assert second.records == [{"Who": "Grace"}]


class _Exploding(MemorySource):
    def __init__(self) -> None:
        super().__init__([["Ada"], ["Grace"]])
        self.finished_calls = 0

    def get(self, field: Any) -> Any:
        if self.record_number == 2:
            raise RuntimeError("bad row")
        return super().get(field)

    def finished(self) -> None:
        self.finished_calls += 1


class _TrackedStore(ListStore):
    def __init__(self) -> None:
        super().__init__()
        self.finished_calls = 0

    def finished(self) -> None:
        self.finished_calls += 1


def test_stages_are_finished_and_config_reset_when_the_loop_raises() -> None:
    source, out = _Exploding(), _TrackedStore()
    p = Pipeline(extract=source, load=out, mapping={"Name": 0})

    with pytest.raises(RuntimeError, match="bad row"):
        p.run()

    assert source.finished_calls == 1
    assert out.finished_calls == 1
    assert out.records == [{"Name": "Ada"}]
    assert p.extract is None and p.field_map == {}


def test_open_failure_aborts_the_run(tmp_path: Path) -> None:
    out = _TrackedStore()
    p = Pipeline()
    p.extract_using("csv", path=tmp_path / "missing.csv")
    p.transform(Name=0)
    p.load_into(out)

    with pytest.raises(FileOpenError):
        p.run()
    assert out.records == []
    assert p.load is None


def test_rejected_records_are_summarized_not_raised() -> None:
    store = KeyedStore(key="id", duplicates="skip")
    summary = run_pipeline(MemorySource([["K", "1"], ["K", "2"], ["", "3"]]), store, mapping={"id": 0, "v": 1})

    assert (summary.total, summary.loaded, summary.rejected) == (3, 1, 2)
    assert [f.record_number for f in summary.failures] == [2, 3]
    assert store.store == {"K": {"id": "K", "v": "1"}}


def test_summary_failures_are_per_run() -> None:
    target: dict = {}
    store = KeyedStore(store=target, key="id", duplicates="skip", clear=False)
    run_pipeline(MemorySource([["K"], ["K"]]), store, mapping={"id": 0})
    summary = run_pipeline(MemorySource([["J"], ["K"]]), store, mapping={"id": 0})

    assert len(store.failures) == 2
    assert [f.record_number for f in summary.failures] == [2]
    assert sorted(target) == ["J", "K"]
