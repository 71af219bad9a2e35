from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from etl_pipeline.cli.loader import load_file
from etl_pipeline.db.connect import connect
from etl_pipeline.parsing.columns import column_letters, column_ordinal
from etl_pipeline.pipeline.errors import EtlError


def _pairs(values: list[str] | None, *, sep: str, option: str) -> dict[str, str]:
    """`["a=b", ...]` -> `{"a": "b"}`, splitting on the first `sep`."""
    out: dict[str, str] = {}
    for v in values or []:
        name, found, rest = v.partition(sep)
        if not found or not name.strip():
            raise argparse.ArgumentTypeError(f"{option} expects NAME{sep}VALUE, got {v!r}")
        out[name.strip()] = rest.strip() if option != "--constant" else rest
    return out


def main(argv: list[str] | None = None) -> int:
    """
    A CLI for small file conversions.

    The `cmd` options are:
    ## load:
    Load a delimited text file or an xlsx workbook into a Postgres table.
    - `--input` path to the file (format from its extension),
    - `--table` destination table,
    - `--field name:type` destination columns and their SQL types (repeat),
    - `--map dest=source` where each column comes from: a column index, letter, or header name (repeat),
    - `--constant dest=value` fixed values (repeat).

    ### Example load usage:
    - `etl load --input people.csv --table people --field name:text --field age:integer --map name=0 --map age=1`

    ## column:
    Convert a column number to letters (`27` -> `AB`) or letters to a number (`AB` -> `27`).
    Numbers are 0-based.
    """
    p = argparse.ArgumentParser(prog="etl")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    # load cmd
    load = sub.add_parser("load", help="Load a file into a Postgres table.")
    load.add_argument("--input", required=True, help="Path to input file (CSV, TSV or XLSX).")
    load.add_argument("--table", required=True, help="Destination table, optionally schema qualified.")
    load.add_argument("--field", action="append", required=True, metavar="NAME:TYPE", help="Destination column.")
    load.add_argument("--map", action="append", required=True, metavar="DEST=SOURCE", help="Field mapping.")
    load.add_argument("--constant", action="append", metavar="DEST=VALUE", help="Constant field value.")
    load.add_argument("--separator", default=None, help="Field separator for delimited text.")
    load.add_argument("--worksheet", default=None, help="Worksheet name for spreadsheets.")
    load.add_argument("--header-rows", type=int, default=0, help="Rows to skip before the data.")
    load.add_argument("--field-names", action="store_true", help="The row after the header rows names the columns.")
    load.add_argument("--dsn", default=None, help="Postgres connection string (default: $ETL_DSN).")

    # column cmd
    column = sub.add_parser("column", help="Convert between column numbers and letters.")
    column.add_argument("value", help="A 0-based column number, or column letters.")

    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "column":
        try:
            if args.value.strip().isdigit():
                print(column_letters(int(args.value)))
            else:
                print(column_ordinal(args.value))
        except ValueError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        return 0

    if args.cmd == "load":
        try:
            fields = _pairs(args.field, sep=":", option="--field")
            mapping = _pairs(args.map, sep="=", option="--map")
            constants = _pairs(args.constant, sep="=", option="--constant")
        except argparse.ArgumentTypeError as e:
            p.error(str(e))

        try:
            with connect(args.dsn) as conn:
                summary = load_file(
                    conn,
                    input_path=Path(args.input),
                    table=args.table,
                    fields=fields,
                    mapping=mapping,
                    constants=constants,
                    separator=args.separator,
                    worksheet=args.worksheet,
                    header_rows=args.header_rows,
                    field_names=args.field_names,
                )
        except EtlError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1

        print(summary.render_one_line())
        for f in summary.failures:
            print(f"  record {f.record_number}: {f.reason}")
        return 0

    return 2
