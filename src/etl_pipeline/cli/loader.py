from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from psycopg import Connection

from etl_pipeline.extract.base import Extractor
from etl_pipeline.ingest.summary import RunSummary
from etl_pipeline.load.postgres import PostgresTable
from etl_pipeline.pipeline.engine import Pipeline
from etl_pipeline.pipeline.errors import ConfigurationError
from etl_pipeline.pipeline.registry import get_extractor

# file extension -> registry input format.
INPUT_FORMATS: dict[str, str] = {
    ".csv": "csv",
    ".txt": "csv",
    ".tsv": "tsv",
    ".xlsx": "excel",
    ".xlsm": "excel",
}


def extractor_for(input_path: Path, **options: Any) -> Extractor:
    """Pick the input source from the file extension."""
    fmt = INPUT_FORMATS.get(input_path.suffix.lower())
    if fmt is None:
        raise ConfigurationError(
            f"Cannot tell the format of '{input_path.name}' (known extensions: {sorted(INPUT_FORMATS)})"
        )
    if fmt != "excel":
        options.pop("worksheet", None)
    else:
        options.pop("separator", None)
    return get_extractor(fmt, path=input_path, **options)


def load_file(
    conn: Connection,
    *,
    input_path: Path,
    table: str,
    fields: Mapping[str, str],
    mapping: Mapping[str, Any],
    constants: Mapping[str, Any] | None = None,
    separator: str | None = None,
    worksheet: str | None = None,
    header_rows: int = 0,
    field_names: bool = False,
) -> RunSummary:
    """
    Load one delimited or spreadsheet file into a Postgres table on `conn`.

    Raises on configuration and open errors. Rows the table rejects are
    counted in the returned summary.
    """
    options: dict[str, Any] = {"header_rows": header_rows, "field_names": field_names, "worksheet": worksheet}
    if separator is not None:
        options["separator"] = separator

    p = Pipeline()
    p.extract_using(extractor_for(input_path, **options))
    p.load_into(PostgresTable(table=table, fields=fields, connection=conn))
    p.transform(mapping)
    p.constants(constants or {})
    return p.run()
