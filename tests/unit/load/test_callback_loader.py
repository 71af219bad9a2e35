from __future__ import annotations

import pytest

from etl_pipeline.extract.memory import MemorySource
from etl_pipeline.load.callback import CallbackLoader
from etl_pipeline.pipeline.engine import Pipeline, run_pipeline
from etl_pipeline.pipeline.errors import ConfigurationError


def test_callback_runs_once_per_record_and_counts_truthy_results() -> None:
    seen: list[dict] = []

    def adults(record: dict) -> bool:
        seen.append(record)
        return int(record["Age"]) >= 18

    summary = run_pipeline(
        MemorySource([["Ada", "36"], ["Tim", "9"], ["Grace", "45"]]),
        CallbackLoader(execute=adults),
        mapping={"Name": 0, "Age": 1},
    )
    assert [r["Name"] for r in seen] == ["Ada", "Tim", "Grace"]
    assert (summary.total, summary.loaded, summary.rejected) == (3, 2, 1)
    # a falsy result is not counted, but it is not a failure either.
    assert summary.failures == ()
    assert summary.destination == "callback adults"


def test_callback_by_registry_name() -> None:
    names: list[str] = []
    p = Pipeline().extract_using("memory", rows=[["Ada"]]).load_into("callable", execute=lambda r: names.append(r["Name"]))
    summary = p.transform(Name=0).run()
    # list.append returns None, so nothing counts as loaded.
    assert names == ["Ada"]
    assert summary.loaded == 0


def test_execute_must_be_callable() -> None:
    with pytest.raises(ConfigurationError, match="callable"):
        CallbackLoader(execute="print")  # type: ignore[arg-type]
