from __future__ import annotations

from functools import partial
from typing import Any

from etl_pipeline.extract.file_source import FileSource
from etl_pipeline.ingest.readers import DelimitedRowReader


class DelimitedTextSource(FileSource):
    """CSV (or any single-character separator) input. Fields are `0`, `1`, ... or header names."""

    def __init__(self, *, separator: str = ",", encoding: str = "utf-8-sig", **options: Any) -> None:
        super().__init__(partial(DelimitedRowReader, separator=separator, encoding=encoding), **options)
        self.separator = separator
