"""
Source identification — what to profile and which worker profiles it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = ["FormatTag", "ConnectionParams", "SourceLocation"]


class FormatTag(Enum):
    """Which format worker receives a :class:`SourceLocation`."""

    DELIMITED_TEXT = "delimited-text"
    JSON_ARRAY = "json-array"
    RELATIONAL_TABLE = "relational-table"

    @property
    def plugin_name(self) -> str:
        """Legacy ``pluginType`` value carried in request payloads."""
        return _PLUGIN_NAMES[self]

    @property
    def is_file_based(self) -> bool:
        return self is not FormatTag.RELATIONAL_TABLE

    @classmethod
    def parse(cls, value: FormatTag | str) -> FormatTag:
        """Accept a tag, its value (``"json-array"``) or a plugin name (``"json"``)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for tag in cls:
            if key in (tag.value, tag.plugin_name, tag.name.lower()):
                return tag
        raise ValueError(f"Unknown format tag: {value!r}")


_PLUGIN_NAMES = {
    FormatTag.DELIMITED_TEXT: "csv",
    FormatTag.JSON_ARRAY: "json",
    FormatTag.RELATIONAL_TABLE: "postgres",
}


def _libpq_quote(value: object) -> str:
    text = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{text}'"


@dataclass(frozen=True)
class ConnectionParams:
    """Connection parameters for a relational source."""

    host: str
    port: int
    user: str
    password: str
    dbname: str
    schema: str = "public"
    db_type: str = "postgres"

    def connection_string(self) -> str:
        """libpq key/value string, as accepted by duckdb's ``ATTACH``.

        Every value is single-quoted, with ``\\`` and ``'`` backslash-escaped.
        """
        pairs = (
            ("host", self.host),
            ("port", self.port),
            ("user", self.user),
            ("password", self.password),
            ("dbname", self.dbname),
        )
        return " ".join(f"{key}={_libpq_quote(value)}" for key, value in pairs)

    def __repr__(self) -> str:
        return (
            f"ConnectionParams(host={self.host!r}, port={self.port!r}, user={self.user!r}, "
            f"dbname={self.dbname!r}, schema={self.schema!r}, db_type={self.db_type!r})"
        )


@dataclass(frozen=True)
class SourceLocation:
    """One profiling target; read-only once dispatched.

    File sources carry a *root_path* (a directory walked recursively, or a
    single file).  Relational sources carry *connection* and optionally a
    *table* restricting the walk to that one table.
    """

    root_path: str | None = None
    connection: ConnectionParams | None = None
    table: str | None = None

    def __post_init__(self) -> None:
        if self.root_path is None and self.connection is None:
            raise ValueError("SourceLocation needs a root_path or connection parameters")

    @classmethod
    def directory(cls, root_path: str) -> SourceLocation:
        return cls(root_path=str(root_path))

    @classmethod
    def database(cls, connection: ConnectionParams, table: str | None = None) -> SourceLocation:
        return cls(connection=connection, table=table)

    def describe(self) -> str:
        """Human-readable identity, safe for logs (no password)."""
        if self.connection is not None:
            c = self.connection
            target = f"{c.db_type}://{c.user}@{c.host}:{c.port}/{c.dbname}/{c.schema}"
            return f"{target}/{self.table}" if self.table else target
        return str(self.root_path)
