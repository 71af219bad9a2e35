from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Mapping

import psycopg
from psycopg import Connection, sql

from etl_pipeline.db.connect import connect
from etl_pipeline.load.base import Loader
from etl_pipeline.pipeline.errors import ConfigurationError

if TYPE_CHECKING:
    from etl_pipeline.extract.base import Extractor


# type names are composed into the statement, so only plain type syntax is allowed.
_SQL_TYPE = re.compile(r"^[A-Za-z][A-Za-z0-9_ ]*(\(\s*\d+(\s*,\s*\d+)?\s*\))?(\[\])?$")


class PostgresTable(Loader):
    """
    Inserts one row per record into a Postgres table.

    `fields` maps output field name -> SQL type; only those fields are written,
    in that order, each bound as a typed placeholder. The `INSERT` is built
    once in `setup` and prepared on first use.

    Every record runs in its own transaction block. A constraint violation or
    bad value fails that record only (reported in `failures`); the rest of the
    batch keeps loading. `finished` commits.

    Pass `connection` to reuse an open connection (it is left open), or `dsn`
    (default `ETL_DSN`) to let the loader connect and close on its own.
    """

    def __init__(
        self,
        *,
        table: str,
        fields: Mapping[str, str],
        dsn: str | None = None,
        connection: Connection | None = None,
    ) -> None:
        super().__init__()
        if not table:
            raise ConfigurationError("PostgresTable needs a `table` name")
        if not fields:
            raise ConfigurationError(f"PostgresTable '{table}' needs at least one field")
        for name, sql_type in fields.items():
            if not _SQL_TYPE.match(sql_type.strip()):
                raise ConfigurationError(f"field {name!r}: unsupported SQL type {sql_type!r}")

        self.table = table
        self.fields = dict(fields)
        self.columns: tuple[str, ...] = tuple(self.fields)
        self.dsn = dsn
        self.conn: Connection | None = connection
        self._owns_connection = connection is None
        self.query: sql.Composed | None = None

    @property
    def destination_name(self) -> str:
        return f"table {self.table}"

    def build_insert(self) -> sql.Composed:
        """`INSERT INTO <table> (<cols>) VALUES (%s::<type>, ...)` with quoted identifiers."""
        # "schema.table" becomes a qualified identifier.
        tbl = sql.Identifier(*self.table.split("."))
        return sql.SQL("INSERT INTO {tbl} ({cols}) VALUES ({vals})").format(
            tbl=tbl,
            cols=sql.SQL(", ").join(sql.Identifier(c) for c in self.columns),
            vals=sql.SQL(", ").join(
                sql.SQL("{}::{}").format(sql.Placeholder(), sql.SQL(self.fields[c].strip()))
                for c in self.columns
            ),
        )

    def setup(self, extract: Extractor) -> None:
        if self.conn is None:
            self.conn = connect(self.dsn)
        if self.query is None:
            self.query = self.build_insert()

    def finished(self) -> None:
        if self.conn is None:
            return
        try:
            self.conn.commit()
        finally:
            if self._owns_connection:
                self.conn.close()
                self.conn = None

    def _write(self, record: dict[str, Any], record_number: int) -> int:
        assert self.conn is not None and self.query is not None, "setup() was not called"
        params = tuple(record.get(c) for c in self.columns)
        try:
            with self.conn.transaction():
                self.conn.execute(self.query, params, prepare=True)
        except (psycopg.DataError, psycopg.IntegrityError) as e:
            # bad value or constraint violation: this record only.
            return self.reject(record, record_number, str(e).strip())
        return 1
