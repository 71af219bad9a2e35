from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Hashable, Mapping

from etl_pipeline.parsing.columns import column_letters, column_ordinal, is_column_name
from etl_pipeline.parsing.types import FieldId, Record

logger = logging.getLogger(__name__)

# called with the extractor, after a record is read.
RecordTest = Callable[["Extractor"], bool]


class Extractor(ABC):
    """
    The contract every input source implements.

    Subclasses provide `setup`, `finished` and `_read_record`. This class owns
    the bookkeeping shared by all of them:
    - `record_number`: 1-based count of records returned so far,
    - `end_of_input`: set once, the first time `next_record` returns `False`,
    - `stop_if` / `bypass_if` hooks,
    - `get`, which never raises on a missing field.
    """

    def __init__(
        self,
        *,
        stop_if: RecordTest | None = None,
        bypass_if: RecordTest | None = None,
    ) -> None:
        self.stop_if = stop_if
        self.bypass_if = bypass_if
        self.record: Record | None = None
        self.record_number = 0
        self.end_of_input = False
        # header text -> field id, filled by sources that read column names.
        self.headers: dict[str, Hashable] = {}
        self._alias: dict[Any, Hashable] = {}

    @property
    def source_name(self) -> str:
        """Short description for logs and summaries."""
        return type(self).__name__

    @abstractmethod
    def setup(self) -> None:
        """Open whatever the source reads from. Safe to call more than once."""

    @abstractmethod
    def finished(self) -> None:
        """Release the source. Safe to call even if `setup` did not complete."""

    @abstractmethod
    def _read_record(self) -> Record | None:
        """Produce the next record, or `None` at the end of input."""

    def next_record(self) -> bool:
        """
        Advance to the next record. Returns `False` at the end of input.

        Records for which `bypass_if` is true are skipped, but still counted, so
        `record_number` stays in step with the source. The record that makes
        `stop_if` true is not counted. `stop_if` sees it as `record_number`.
        """
        if self.end_of_input:
            return False

        while True:
            record = self._read_record()
            if record is None:
                self._end()
                return False

            self.record = record
            self.record_number += 1

            if self.stop_if is not None and self.stop_if(self):
                logger.debug("%s: stop_if ended input at record %d", self.source_name, self.record_number)
                # the stopping record is never returned.
                self.record_number -= 1
                self._end()
                return False
            if self.bypass_if is not None and self.bypass_if(self):
                logger.debug("%s: bypassed record %d", self.source_name, self.record_number)
                continue
            return True

    def _end(self) -> None:
        self.record = None
        self.end_of_input = True

    def get(self, field: FieldId) -> Any:
        """
        Value of one field of the current record, or `None` if there is no such field.

        `field` may be a raw identifier, a column name read from a header row,
        or a compiled regex matched against the column names.
        """
        if self.record is None:
            return None
        raw = self.record.raw
        key = self._resolve(field, raw)
        return None if key is None else raw.get(key)

    def _resolve(self, field: FieldId, raw: Mapping[Hashable, Any]) -> Hashable | None:
        if field in self._alias:
            return self._alias[field]

        if isinstance(field, re.Pattern):
            for text, key in self.headers.items():
                if field.search(text):
                    self._alias[field] = key
                    return key
            return None

        if field in raw:
            return field
        if isinstance(field, str):
            s = field.strip()
            if s in self.headers:
                return self.headers[s]
            # "0" for delimited columns, "b" or "B12" for spreadsheet columns.
            if s.isdigit() and int(s) in raw:
                return int(s)
            if is_column_name(s):
                letters = column_letters(column_ordinal(s))
                if letters in raw:
                    return letters
        return None

    def set_field_names(self, row: Mapping[Hashable, Any]) -> None:
        """Use `row` (a header row) as the column names for `get`."""
        for key, text in row.items():
            if text is None:
                continue
            name = str(text).strip()
            if name and name not in self.headers:
                self.headers[name] = key
