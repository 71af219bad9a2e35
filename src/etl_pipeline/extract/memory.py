from __future__ import annotations

from typing import Any, Hashable, Iterable, Mapping, Sequence

from etl_pipeline.extract.base import Extractor, RecordTest
from etl_pipeline.parsing.types import Record


class MemorySource(Extractor):
    """
    Records from rows already in memory.

    A row is either a sequence (fields keyed `0`, `1`, ...) or a mapping
    (used as-is). Blank rows are returned like any other; this source does
    no skipping of its own. With `field_names`, the first row names the columns.
    """

    def __init__(
        self,
        rows: Iterable[Sequence[Any] | Mapping[Hashable, Any]],
        *,
        field_names: bool = False,
        stop_if: RecordTest | None = None,
        bypass_if: RecordTest | None = None,
    ) -> None:
        super().__init__(stop_if=stop_if, bypass_if=bypass_if)
        self.rows = list(rows)
        self.field_names = field_names
        self._index = 0
        self._ready = False

    @staticmethod
    def _as_raw(row: Sequence[Any] | Mapping[Hashable, Any]) -> dict[Hashable, Any]:
        if isinstance(row, Mapping):
            return dict(row)
        return {i: v for i, v in enumerate(row)}

    def setup(self) -> None:
        if self._ready:
            return
        if self.field_names and self.rows:
            self.set_field_names(self._as_raw(self.rows[0]))
            self._index = 1
        self._ready = True

    def finished(self) -> None:
        pass

    def _read_record(self) -> Record | None:
        if not self._ready:
            self.setup()
        if self._index >= len(self.rows):
            return None
        row = self.rows[self._index]
        self._index += 1
        record = Record(raw=self._as_raw(row))
        record.origin = f"row {self._index} in memory"
        return record
