"""
Relational-table worker.

Uses an in-memory DuckDB instance with the database's extension loaded and
the remote database ATTACHed read-only; DuckDB handles the network
transfer.  Unlike the file workers, no table data is pulled into memory:
each column's statistics come from SQL aggregates (one set of round trips
per column) and samples from a bounded ``SELECT DISTINCT ... LIMIT`` query.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterator
from dataclasses import replace
from typing import Any

import duckdb

from datainspect.config import InspectConfig
from datainspect.errors import RecordParseFailure, SourceUnreadable
from datainspect.models.descriptor import ColumnStats, DatasetDescriptor, Dialect, Field, FieldConstraints
from datainspect.models.source import FormatTag, SourceLocation
from datainspect.profiler.column_profiler import ColumnData, TableSource
from datainspect.profiler.type_inspector import (
    BOOLEAN,
    DATE,
    INTEGER,
    NUMBER,
    NUMERIC_TYPES,
    STRING,
    proportion,
    render_value,
    round_half_away,
)
from datainspect.utils.cancel import CancelToken
from datainspect.workers.base import FormatWorker, Member

__all__ = ["RelationalTableWorker", "declared_type_for_sql", "quote_ident"]

logger = logging.getLogger(__name__)

ATTACH_ALIAS = "source_db"

_SQL_TYPES = {
    INTEGER: {
        "INT", "INT1", "INT2", "INT4", "INT8", "INTEGER", "SMALLINT", "BIGINT", "TINYINT",
        "HUGEINT", "UTINYINT", "USMALLINT", "UINTEGER", "UBIGINT", "SERIAL", "BIGSERIAL",
        "SMALLSERIAL",
    },
    NUMBER: {"FLOAT", "FLOAT4", "FLOAT8", "REAL", "DOUBLE", "DOUBLE PRECISION", "NUMERIC", "DECIMAL"},
    BOOLEAN: {"BOOL", "BOOLEAN"},
    DATE: {
        "DATE", "TIMESTAMP", "TIMESTAMPTZ", "TIMESTAMP WITH TIME ZONE", "TIMESTAMP WITHOUT TIME ZONE",
        "TIMESTAMP_S", "TIMESTAMP_MS", "TIMESTAMP_NS", "DATETIME",
    },
}

_IDENT_SAFE = re.compile(r"^[a-z_][a-z0-9_]*$")


def declared_type_for_sql(type_name: str) -> str:
    """Map a SQL column type (Postgres or DuckDB spelling) to the type vocabulary."""
    base = type_name.split("(", 1)[0].strip().upper()
    for inferred, names in _SQL_TYPES.items():
        if base in names:
            return inferred
    return STRING


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class RelationalTableWorker(FormatWorker):
    """Profile every base table of one schema.

    Parameters
    ----------
    connection : duckdb.DuckDBPyConnection, optional
        An already-open DuckDB connection whose *current* database holds the
        tables.  When omitted, a fresh in-memory connection is created and
        the source database is attached from the location's
        :class:`ConnectionParams`.
    """

    tag = FormatTag.RELATIONAL_TABLE

    def __init__(
        self,
        config: InspectConfig | None = None,
        *,
        connection: duckdb.DuckDBPyConnection | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, **kwargs)
        self._external = connection
        self._con: duckdb.DuckDBPyConnection | None = None
        self._catalog = ""
        self._dbname = ""
        self._schema = self.config.relational_schema

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def _connect(self, location: SourceLocation) -> None:
        params = location.connection
        if params is not None:
            self._schema = params.schema
            self._dbname = params.dbname

        if self._external is not None:
            self._con = self._external
            self._catalog = self._con.execute("SELECT current_database()").fetchone()[0]
            self._dbname = self._dbname or self._catalog
            return

        if params is None:
            raise SourceUnreadable("Relational worker needs connection parameters")
        db_type = params.db_type.lower()
        if not _IDENT_SAFE.match(db_type):
            raise SourceUnreadable(f"Unsupported database type: {params.db_type!r}")

        con = duckdb.connect()
        conn_str = params.connection_string().replace("'", "''")
        try:
            con.execute(f"INSTALL {db_type};")
            con.execute(f"LOAD {db_type};")
            con.execute(f"ATTACH '{conn_str}' AS {ATTACH_ALIAS} (TYPE {db_type}, READ_ONLY);")
        except duckdb.Error as exc:
            con.close()
            raise SourceUnreadable(f"Cannot connect to {location.describe()}: {exc}") from exc

        logger.info("Connected to %s", location.describe())
        self._con = con
        self._catalog = ATTACH_ALIAS

    def close(self) -> None:
        if self._con is not None and self._external is None:
            self._con.close()
        self._con = None

    def _qualified(self, table: str) -> str:
        return ".".join(quote_ident(part) for part in (self._catalog, self._schema, table))

    def _scalar(self, query: str, params: list[Any] | None = None) -> Any:
        cursor = self._con.execute(query, params) if params else self._con.execute(query)
        return cursor.fetchone()[0]

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def enumerate(self, location: SourceLocation, cancel: CancelToken) -> Iterator[Member]:
        self._connect(location)
        try:
            rows = self._con.execute(
                "SELECT table_name FROM information_schema.tables"
                " WHERE table_catalog = ? AND table_schema = ? AND table_type = 'BASE TABLE'"
                " ORDER BY table_name",
                [self._catalog, self._schema],
            ).fetchall()
        except duckdb.Error as exc:
            raise SourceUnreadable(f"Cannot list tables of {location.describe()}: {exc}") from exc

        tables = [r[0] for r in rows]
        logger.info("Found %d tables in %s.%s", len(tables), self._catalog, self._schema)
        if location.table is not None:
            if location.table not in tables:
                raise SourceUnreadable(f"Table {location.table!r} not found in schema {self._schema!r}")
            tables = [location.table]

        return iter([
            Member(
                name=t,
                path=f"{self._catalog}.{self._schema}.{t}",
                key=f"{self._dbname}/{self._schema}/{t}",
            )
            for t in tables
        ])

    def read_columns(self, member: Member) -> TableSource:
        """Read the table's column set and row count; no data rows."""
        try:
            cols = self._con.execute(
                "SELECT column_name, data_type FROM information_schema.columns"
                " WHERE table_catalog = ? AND table_schema = ? AND table_name = ?"
                " ORDER BY ordinal_position",
                [self._catalog, self._schema, member.name],
            ).fetchall()
            row_count = int(self._scalar(f"SELECT COUNT(*) FROM {self._qualified(member.name)}"))
        except duckdb.Error as exc:
            raise RecordParseFailure(f"Cannot read table {member.path}: {exc}") from exc

        return TableSource(
            name=member.name,
            path=member.path,
            columns=[ColumnData(name=name, declared_type=declared_type_for_sql(dtype)) for name, dtype in cols],
            row_count=row_count,
            format="",
            mediatype="",
            dialect=Dialect.blank(),
            title=member.name,
            description=f"Metadata for the table: {member.name}",
        )

    def describe(self, member: Member, table: TableSource) -> DatasetDescriptor:
        if table.row_count == 0:
            return self.profiler.profile(table)

        fields = []
        for column in table.columns:
            try:
                stats = self._column_stats(member.name, column, table.row_count)
            except duckdb.Error as exc:
                raise RecordParseFailure(f"Cannot profile {member.path}.{column.name}: {exc}") from exc
            fields.append(
                Field(
                    name=column.name,
                    types=column.declared_type if stats.present_count else STRING,
                    stats=stats,
                    constraints=FieldConstraints.from_stats(stats),
                )
            )

        return DatasetDescriptor.build(
            name=table.name,
            path=table.path,
            fields=fields,
            dialect=replace(table.dialect, rows_count=table.row_count, columns_count=len(fields)),
            format=table.format,
            mediatype=table.mediatype,
            title=table.title,
            description=table.description,
        )

    def _column_stats(self, table: str, column: ColumnData, row_count: int) -> ColumnStats:
        qualified = self._qualified(table)
        col = quote_ident(column.name)

        null_count = int(self._scalar(f"SELECT COUNT(*) FROM {qualified} WHERE {col} IS NULL"))
        unique_count = int(self._scalar(f"SELECT COUNT(DISTINCT {col}) FROM {qualified}"))
        present_count = row_count - null_count

        samples = self._con.execute(
            f"SELECT DISTINCT {col} FROM {qualified} WHERE {col} IS NOT NULL ORDER BY 1"
            f" LIMIT {int(self.config.relational_sample_limit)}"
        ).fetchall()

        stats = ColumnStats(
            null_count=null_count,
            present_count=present_count,
            unique_count=unique_count,
            sample_values=[render_value(r[0]) for r in samples],
            null_proportion=proportion(null_count, present_count),
            unique_proportion=proportion(unique_count, present_count),
        )

        if column.declared_type in NUMERIC_TYPES and present_count > 0:
            lo, hi, mean, std = self._con.execute(
                f"SELECT MIN({col}), MAX({col}), AVG({col}), STDDEV_POP({col}) FROM {qualified}"
            ).fetchone()
            numeric = [float(v) if v is not None else 0.0 for v in (lo, hi, mean, std)]
            if all(math.isfinite(v) for v in numeric):
                stats.min, stats.max, stats.mean, stats.std = (round_half_away(v) for v in numeric)
        return stats
