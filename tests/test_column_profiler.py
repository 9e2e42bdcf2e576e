"""Tests for datainspect.profiler.column_profiler."""

import pytest

from datainspect.errors import EmptySourceError
from datainspect.models.descriptor import Dialect
from datainspect.profiler.column_profiler import ColumnData, ColumnProfiler, TableSource


def _table(columns, row_count, **kwargs):
    return TableSource(
        name="t.csv",
        path="/lake/t.csv",
        columns=columns,
        row_count=row_count,
        format="csv",
        mediatype="text/csv",
        **kwargs,
    )


class TestColumnProfiler:
    def test_profile_preserves_column_order(self):
        table = _table(
            [
                ColumnData("zeta", ["a", "b"]),
                ColumnData("alpha", [1, 2]),
                ColumnData("mid", [None, 2.5]),
            ],
            row_count=2,
        )
        descriptor = ColumnProfiler().profile(table)
        assert descriptor.field_names == ["zeta", "alpha", "mid"]
        assert [f.types for f in descriptor.fields] == ["string", "integer", "number"]
        assert descriptor.row_count == 2
        assert descriptor.column_count == 3

    def test_declared_type_is_used(self):
        table = _table([ColumnData("n", [1, 2], declared_type="number")], row_count=2)
        assert ColumnProfiler().profile(table).fields[0].types == "number"

    def test_dialect_counts_filled_in(self):
        table = _table([ColumnData("x", ["a"])], row_count=1, dialect=Dialect(delimiter="\t"))
        dialect = ColumnProfiler().profile(table).dialect
        assert dialect.delimiter == "\t"
        assert (dialect.rows_count, dialect.columns_count) == (1, 1)

    def test_sample_count(self):
        table = _table([ColumnData("x", list("abcdef"))], row_count=6)
        stats = ColumnProfiler(sample_count=2).profile(table).fields[0].stats
        assert stats.sample_values == ["a", "b"]

    def test_resource_metadata_carried_over(self):
        table = _table([ColumnData("x", [1])], row_count=1, byte_size=10, hash="d41d8", flags=["empty-delimiter"])
        descriptor = ColumnProfiler().profile(table)
        assert descriptor.hash == "d41d8"
        assert descriptor.byte_size == 10
        assert descriptor.flags == ["empty-delimiter"]


class TestEmptySource:
    def test_profile_columns_raises(self):
        with pytest.raises(EmptySourceError):
            ColumnProfiler().profile_columns(_table([ColumnData("x")], row_count=0))

    def test_profile_gives_empty_descriptor(self):
        descriptor = ColumnProfiler().profile(_table([ColumnData("x")], row_count=0))
        assert descriptor.fields == []
        assert descriptor.row_count == 0
        assert descriptor.column_count == 0
        assert "empty" in descriptor.flags
        assert descriptor.to_dict()["resources"][0]["schema"] == {"fields": []}

    def test_no_columns_is_empty(self):
        descriptor = ColumnProfiler().profile(_table([], row_count=0))
        assert descriptor.flags == ["empty"]

    def test_rows_without_columns_keep_row_count(self):
        descriptor = ColumnProfiler().profile(_table([], row_count=2))
        assert descriptor.fields == []
        assert descriptor.row_count == 2
        assert descriptor.column_count == 0
        assert descriptor.flags == []
