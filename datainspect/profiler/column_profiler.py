"""
Column profiler — turn one table-shaped source into a DatasetDescriptor.

Format workers read a file or table into a :class:`TableSource` (ordered
columns with their values, plus resource metadata) and hand it to
:class:`ColumnProfiler`, which runs the type inspector over every column and
assembles the descriptor.

Column order is first-appearance order in the source and is preserved
through to the serialized descriptor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from datainspect.errors import EmptySourceError
from datainspect.models.descriptor import DatasetDescriptor, Dialect, Field
from datainspect.profiler.type_inspector import inspect_column

__all__ = ["ColumnData", "TableSource", "ColumnProfiler"]

logger = logging.getLogger(__name__)


@dataclass
class ColumnData:
    """One column as read from the source."""

    name: str
    values: list[Any] = field(default_factory=list, repr=False)
    declared_type: str | None = None
    """Storage type known to the reader (``None`` if the reader has none)."""


@dataclass
class TableSource:
    """A table-shaped source ready for profiling.

    *columns* must be in first-appearance order.  *row_count* is the number
    of records; every column carries exactly that many values (missing
    cells are ``None``).
    """

    name: str
    path: str
    columns: list[ColumnData]
    row_count: int
    format: str
    mediatype: str
    dialect: Dialect = field(default_factory=Dialect)
    byte_size: int | None = None
    hash: str = ""
    title: str | None = None
    description: str | None = None
    flags: list[str] = field(default_factory=list)

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]


class ColumnProfiler:
    """Build a :class:`DatasetDescriptor` from a :class:`TableSource`.

    Usage::

        profiler = ColumnProfiler(sample_count=3)
        descriptor = profiler.profile(table)
    """

    def __init__(self, sample_count: int = 3) -> None:
        self._sample_count = sample_count

    def profile_columns(self, table: TableSource) -> list[Field]:
        """Profile every column of *table* in order.

        Raises :class:`EmptySourceError` when the table has no rows.  Rows
        without any columns (a JSON array of empty objects) give no fields.
        """
        if table.row_count == 0:
            raise EmptySourceError(f"{table.name} has no rows")

        fields: list[Field] = []
        for column in table.columns:
            if len(column.values) != table.row_count:
                logger.warning(
                    "Column %r of %s has %d values for %d rows",
                    column.name, table.name, len(column.values), table.row_count,
                )
            fields.append(
                inspect_column(
                    column.name,
                    column.values,
                    declared=column.declared_type,
                    sample_count=self._sample_count,
                )
            )
        return fields

    def profile(self, table: TableSource) -> DatasetDescriptor:
        """Profile *table*; an empty source gives an empty-but-valid descriptor."""
        flags = list(table.flags)
        try:
            fields = self.profile_columns(table)
            rows, cols = table.row_count, len(table.columns)
        except EmptySourceError:
            logger.info("%s is empty; writing an empty descriptor", table.path or table.name)
            fields, rows, cols = [], 0, 0
            if "empty" not in flags:
                flags.append("empty")

        dialect = replace(table.dialect, rows_count=rows, columns_count=cols)
        return DatasetDescriptor.build(
            name=table.name,
            path=table.path,
            fields=fields,
            dialect=dialect,
            format=table.format,
            mediatype=table.mediatype,
            byte_size=table.byte_size,
            hash=table.hash,
            title=table.title,
            description=table.description,
            flags=flags,
        )
