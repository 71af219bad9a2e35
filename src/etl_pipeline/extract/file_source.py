from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path

from etl_pipeline.extract.base import Extractor, RecordTest
from etl_pipeline.ingest.discovery import find_single_file
from etl_pipeline.ingest.readers import RowReader, RowReaderFactory
from etl_pipeline.parsing.types import Record
from etl_pipeline.pipeline.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SourceState(str, Enum):
    unopened = "unopened"
    skipping_headers = "skipping_headers"
    active = "active"
    end_of_input = "end_of_input"


class FileSource(Extractor):
    """
    Extractor for any file read row by row.

    The file format only supplies a `RowReaderFactory` ("open the file, read one
    physical row"). This class runs the state machine on top of it:

        unopened -> skipping_headers -> active -> end_of_input

    - `header_rows` physical rows are discarded before any data. A file shorter
      than that simply has no data records.
    - With `field_names`, the next row after those is read as column names.
    - Blank rows (every field empty) are skipped without the caller noticing.
      `record_number` counts returned records only; `position` counts every
      physical row and is what `Record.origin` reports.

    The input file is either `path`, or the one file in `search_in` whose name
    matches `find_file`.
    """

    def __init__(
        self,
        reader_factory: RowReaderFactory,
        *,
        path: str | Path | None = None,
        find_file: str | re.Pattern[str] | None = None,
        search_in: str | Path | None = None,
        header_rows: int = 0,
        field_names: bool = False,
        stop_if: RecordTest | None = None,
        bypass_if: RecordTest | None = None,
    ) -> None:
        super().__init__(stop_if=stop_if, bypass_if=bypass_if)
        if path is None and find_file is None:
            raise ConfigurationError(f"{type(self).__name__} needs either `path` or `find_file`")
        if header_rows < 0:
            raise ConfigurationError(f"header_rows must be >= 0, got {header_rows}")

        self.reader_factory = reader_factory
        self.path: Path | None = Path(path) if path is not None else None
        self.find_file = find_file
        self.search_in = Path(search_in) if search_in is not None else None
        self.header_rows = header_rows
        self.field_names = field_names

        self.state = SourceState.unopened
        self.position = 0
        self._reader: RowReader | None = None

    @property
    def source_name(self) -> str:
        return str(self.path) if self.path is not None else f"{type(self).__name__}({self.find_file!r})"

    def setup(self) -> None:
        """Locate and open the input file. Raises `FileOpenError` if it cannot be read."""
        if self.state is not SourceState.unopened:
            return
        if self.path is None:
            assert self.find_file is not None
            self.path = find_single_file(self.find_file, self.search_in)
            logger.debug("found input file %s", self.path)

        self._reader = self.reader_factory(self.path)
        self.state = SourceState.skipping_headers

    def finished(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        if self.state is not SourceState.unopened:
            self.state = SourceState.end_of_input
            self._end()

    def _read_physical(self) -> dict | None:
        assert self._reader is not None
        row = self._reader.read_row()
        if row is None:
            return None
        self.position += 1
        return dict(row)

    def _read_record(self) -> Record | None:
        if self.state is SourceState.unopened:
            self.setup()

        if self.state is SourceState.skipping_headers:
            while self.position < self.header_rows:
                if self._read_physical() is None:
                    logger.debug("%s ended inside its %d header rows", self.source_name, self.header_rows)
                    self.state = SourceState.end_of_input
                    return None
            if self.field_names:
                names = self._read_physical()
                if names is None:
                    self.state = SourceState.end_of_input
                    return None
                self.set_field_names(names)
            self.state = SourceState.active

        if self.state is SourceState.end_of_input:
            return None

        while True:
            row = self._read_physical()
            if row is None:
                self.state = SourceState.end_of_input
                return None
            record = Record(raw=row)
            if record.is_blank:
                logger.debug("%s: skipped blank row %d", self.source_name, self.position)
                continue
            assert self.path is not None
            record.origin = f"row {self.position} in {self.path.name}"
            return record
