"""
DatasetDescriptor — the schema + statistics document produced per file/table.

The serialized layout (key names *and* key order) is consumed downstream
and must not change::

    {profile, name, title, description,
     resources: [{profile, name, path, title, description, format, mediatype,
                  encoding, bytes, hash,
                  schema: {fields: [{name, types, format, description,
                                     constraints: {required, unique},
                                     stats: {min, max, mean, std,
                                             nullValueCounts, present_value_counts,
                                             uniqueValueCounts, sample_value,
                                             nullProportion, uniqueProportion}}]},
                  dialect: {caseSensitiveHeader, delimiter, doubleQuote, header,
                            lineTerminator, quoteChar, skipInitialSpace,
                            rowsCount, columnsCount},
                  version}],
     version}

Descriptors are built fresh by :meth:`DatasetDescriptor.build` for every
profiling call; nothing is shared between calls.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "ColumnStats",
    "FieldConstraints",
    "Field",
    "Dialect",
    "DatasetDescriptor",
    "DESCRIPTOR_VERSION",
]

DESCRIPTOR_VERSION = "1.0.0"


@dataclass
class ColumnStats:
    """Per-column counts and (for numeric columns) summary statistics.

    ``min``/``max``/``mean``/``std`` are ``None`` unless the column is
    numeric; the wire format has no notion of absence, so they are written
    as ``0`` in that case.
    """

    null_count: int = 0
    present_count: int = 0
    unique_count: int = 0
    sample_values: list[str] = field(default_factory=list)
    null_proportion: int = 0
    unique_proportion: int = 0
    min: int | None = None
    max: int | None = None
    mean: int | None = None
    std: int | None = None

    @property
    def has_numeric_stats(self) -> bool:
        return self.min is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "min": self.min or 0,
            "max": self.max or 0,
            "mean": self.mean or 0,
            "std": self.std or 0,
            "nullValueCounts": self.null_count,
            "present_value_counts": self.present_count,
            "uniqueValueCounts": self.unique_count,
            "sample_value": list(self.sample_values),
            "nullProportion": self.null_proportion,
            "uniqueProportion": self.unique_proportion,
        }


@dataclass
class FieldConstraints:
    """``required``/``unique`` flags, kept as strings like the rest of the layout."""

    required: str = "false"
    unique: str = "false"

    @classmethod
    def from_stats(cls, stats: ColumnStats) -> FieldConstraints:
        has_values = stats.present_count > 0
        return cls(
            required=_flag(has_values and stats.null_count == 0),
            unique=_flag(has_values and stats.unique_count == stats.present_count),
        )

    def to_dict(self) -> dict[str, str]:
        return {"required": self.required, "unique": self.unique}


def _flag(value: bool) -> str:
    return "true" if value else "false"


@dataclass
class Field:
    """One inferred column (a.k.a. column profile)."""

    name: str
    types: str
    stats: ColumnStats
    constraints: FieldConstraints = field(default_factory=FieldConstraints)
    format: str = "default"
    description: str = ""

    def __post_init__(self) -> None:
        if not self.description:
            self.description = self.name

    @property
    def inferred_type(self) -> str:
        return self.types

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "types": self.types,
            "format": self.format,
            "description": self.description,
            "constraints": self.constraints.to_dict(),
            "stats": self.stats.to_dict(),
        }


@dataclass
class Dialect:
    """Delimited-text conventions; fixed defaults for other formats."""

    delimiter: str = ","
    line_terminator: str = "\r\n"
    header: str = "true"
    case_sensitive_header: str = "false"
    double_quote: str = "true"
    quote_char: str = ""
    skip_initial_space: str = "true"
    rows_count: int = 0
    columns_count: int = 0

    @classmethod
    def blank(cls) -> Dialect:
        """All-empty dialect used for relational tables."""
        return cls(
            delimiter="",
            line_terminator="",
            header="",
            case_sensitive_header="",
            double_quote="",
            quote_char="",
            skip_initial_space="",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "caseSensitiveHeader": self.case_sensitive_header,
            "delimiter": self.delimiter,
            "doubleQuote": self.double_quote,
            "header": self.header,
            "lineTerminator": self.line_terminator,
            "quoteChar": self.quote_char,
            "skipInitialSpace": self.skip_initial_space,
            "rowsCount": self.rows_count,
            "columnsCount": self.columns_count,
        }


@dataclass
class DatasetDescriptor:
    """One profiled file or table."""

    name: str
    path: str
    fields: list[Field]
    dialect: Dialect
    format: str
    mediatype: str
    byte_size: int | None = None
    hash: str = ""
    title: str = ""
    description: str = ""
    encoding: str = "UTF-8"
    package_profile: str = "tabular-data-package"
    resource_profile: str = "tabular-data-resource"
    version: str = DESCRIPTOR_VERSION
    flags: list[str] = field(default_factory=list)
    """Diagnostic markers (``empty``, ``empty-delimiter``); not serialized."""

    @classmethod
    def build(
        cls,
        *,
        name: str,
        path: str,
        fields: list[Field],
        dialect: Dialect,
        format: str,
        mediatype: str,
        byte_size: int | None = None,
        hash: str = "",
        title: str | None = None,
        description: str | None = None,
        encoding: str = "UTF-8",
        flags: list[str] | None = None,
    ) -> DatasetDescriptor:
        """Construct a fresh descriptor; row/column counts come from *dialect*."""
        return cls(
            name=name,
            path=path,
            fields=list(fields),
            dialect=dialect,
            format=format,
            mediatype=mediatype,
            byte_size=byte_size,
            hash=hash,
            title=title if title is not None else name,
            description=description if description is not None else f"Profile of {name}",
            encoding=encoding,
            flags=list(flags or []),
        )

    @property
    def row_count(self) -> int:
        return self.dialect.rows_count

    @property
    def column_count(self) -> int:
        return self.dialect.columns_count

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> Field:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def to_dict(self) -> dict[str, Any]:
        resource = {
            "profile": self.resource_profile,
            "name": self.name,
            "path": self.path,
            "title": self.title,
            "description": self.description,
            "format": self.format,
            "mediatype": self.mediatype,
            "encoding": self.encoding,
            "bytes": "" if self.byte_size is None else str(self.byte_size),
            "hash": self.hash,
            "schema": {"fields": [f.to_dict() for f in self.fields]},
            "dialect": self.dialect.to_dict(),
            "version": self.version,
        }
        return {
            "profile": self.package_profile,
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "resources": [resource],
            "version": self.version,
        }

    def to_json(self, indent: str = "\t") -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
