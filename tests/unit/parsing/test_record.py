from __future__ import annotations

from etl_pipeline.parsing.types import DuplicatePolicy, Record


def test_record_with_values_is_not_blank() -> None:
    r = Record(raw={0: "Ada", 1: ""})
    assert r.is_blank is False
    assert r.fields == {}


def test_record_blank_when_every_value_is_empty() -> None:
    """Whitespace and `None` count as empty; an empty row is blank too."""
    assert Record(raw={0: "", 1: "   ", 2: None}).is_blank is True
    assert Record(raw={}).is_blank is True


def test_zero_is_content() -> None:
    assert Record(raw={"A": 0}).is_blank is False


def test_duplicate_policy_from_text() -> None:
    assert DuplicatePolicy("skip") is DuplicatePolicy.skip
    assert DuplicatePolicy.keep == "keep"
