from __future__ import annotations

import re
from functools import partial
from typing import Any

from etl_pipeline.extract.file_source import FileSource
from etl_pipeline.ingest.readers import ExcelRowReader


class ExcelSource(FileSource):
    """
    Spreadsheet input (`.xlsx`/`.xlsm`). Fields are column letters (`"A"`, `"AB"`) or header names.

    `worksheet` selects a sheet by name or regex; default is the first sheet.
    """

    def __init__(self, *, worksheet: str | re.Pattern[str] | None = None, **options: Any) -> None:
        super().__init__(partial(ExcelRowReader, worksheet=worksheet), **options)
        self.worksheet = worksheet
