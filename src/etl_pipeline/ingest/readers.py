from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import IO, Any, Callable, Iterator, Mapping, Protocol

import openpyxl

from etl_pipeline.parsing.columns import column_letters
from etl_pipeline.pipeline.errors import ConfigurationError, FileOpenError, InputReadError


class RowReader(Protocol):
    """
    Reads one physical row at a time from an opened input file.

    `read_row` returns the row keyed by field identifier, an empty mapping
    for an empty row, or `None` once the input is exhausted.
    """
    def read_row(self) -> Mapping[Any, Any] | None: ...

    def close(self) -> None: ...


# opens `path` and returns a reader positioned before the first row.
RowReaderFactory = Callable[[Path], RowReader]


class DelimitedRowReader:
    """
    `csv` backed reader. Fields are keyed by their 0-based position.

    Quoting and embedded separators are handled by `csv.reader`.
    """

    def __init__(self, path: Path, *, separator: str = ",", encoding: str = "utf-8-sig") -> None:
        self.path = path
        try:
            self._handle: IO[str] = path.open("r", encoding=encoding, newline="")
        except OSError as e:
            raise FileOpenError(path, str(e)) from e
        self._rows = csv.reader(self._handle, delimiter=separator)

    def read_row(self) -> Mapping[int, str] | None:
        try:
            fields = next(self._rows)
        except StopIteration:
            return None
        except (UnicodeDecodeError, csv.Error) as e:
            raise InputReadError(self.path, self._rows.line_num + 1, str(e)) from e
        # csv yields `[]` for an empty line.
        return {i: v for i, v in enumerate(fields)}

    def close(self) -> None:
        self._handle.close()


class ExcelRowReader:
    """
    `openpyxl` backed reader for `.xlsx`/`.xlsm` workbooks. Cells are keyed by column letters.

    `worksheet` picks the sheet by exact name or by regex over sheet names.
    The first sheet is used when it is `None`.
    """

    def __init__(self, path: Path, *, worksheet: str | re.Pattern[str] | None = None) -> None:
        self.path = path
        try:
            self._workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
        except Exception as e:
            # openpyxl raises several unrelated types for unreadable workbooks.
            raise FileOpenError(path, str(e)) from e

        try:
            sheet = self._select_sheet(worksheet)
        except ConfigurationError:
            self._workbook.close()
            raise
        self._rows: Iterator[tuple[Any, ...]] = sheet.iter_rows(min_col=1, values_only=True)

    def _select_sheet(self, worksheet: str | re.Pattern[str] | None) -> Any:
        names = self._workbook.sheetnames
        if not names:
            raise ConfigurationError(f"'{self.path}' has no worksheets")
        if worksheet is None:
            return self._workbook[names[0]]
        if isinstance(worksheet, re.Pattern):
            for name in names:
                if worksheet.search(name):
                    return self._workbook[name]
        elif worksheet in names:
            return self._workbook[worksheet]
        raise ConfigurationError(f"no worksheets in '{self.path}' match {worksheet!r}")

    def read_row(self) -> Mapping[str, Any] | None:
        try:
            cells = next(self._rows)
        except StopIteration:
            return None
        return {column_letters(i): ("" if v is None else v) for i, v in enumerate(cells)}

    def close(self) -> None:
        self._workbook.close()
