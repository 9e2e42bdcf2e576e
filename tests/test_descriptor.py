"""Tests for datainspect.models."""

import json

import pytest

from datainspect.models.descriptor import ColumnStats, DatasetDescriptor, Dialect, Field, FieldConstraints
from datainspect.models.manifest import ManifestEntry, ProfilingManifest, SkippedItem
from datainspect.models.source import ConnectionParams, FormatTag, SourceLocation


def _descriptor(**overrides):
    stats = ColumnStats(null_count=0, present_count=2, unique_count=2, sample_values=["1", "2"],
                        unique_proportion=100, min=1, max=2, mean=2, std=1)
    kwargs = dict(
        name="sales.csv",
        path="/lake/sales.csv",
        fields=[Field(name="qty", types="integer", stats=stats, constraints=FieldConstraints.from_stats(stats))],
        dialect=Dialect(rows_count=2, columns_count=1),
        format="csv",
        mediatype="text/csv",
        byte_size=42,
        hash="abc",
    )
    kwargs.update(overrides)
    return DatasetDescriptor.build(**kwargs)


class TestDescriptorLayout:
    def test_top_level_key_order(self):
        d = _descriptor().to_dict()
        assert list(d) == ["profile", "name", "title", "description", "resources", "version"]

    def test_resource_key_order(self):
        resource = _descriptor().to_dict()["resources"][0]
        assert list(resource) == [
            "profile", "name", "path", "title", "description", "format", "mediatype",
            "encoding", "bytes", "hash", "schema", "dialect", "version",
        ]
        assert list(resource["dialect"]) == [
            "caseSensitiveHeader", "delimiter", "doubleQuote", "header", "lineTerminator",
            "quoteChar", "skipInitialSpace", "rowsCount", "columnsCount",
        ]

    def test_field_and_stats_key_order(self):
        field = _descriptor().to_dict()["resources"][0]["schema"]["fields"][0]
        assert list(field) == ["name", "types", "format", "description", "constraints", "stats"]
        assert list(field["stats"]) == [
            "min", "max", "mean", "std", "nullValueCounts", "present_value_counts",
            "uniqueValueCounts", "sample_value", "nullProportion", "uniqueProportion",
        ]
        assert field["constraints"] == {"required": "true", "unique": "true"}

    def test_bytes_is_a_string(self):
        assert _descriptor().to_dict()["resources"][0]["bytes"] == "42"
        assert _descriptor(byte_size=None).to_dict()["resources"][0]["bytes"] == ""

    def test_defaults(self):
        d = _descriptor()
        assert d.title == "sales.csv"
        assert d.row_count == 2
        assert d.column_count == 1
        assert d.field_names == ["qty"]
        with pytest.raises(KeyError):
            d.get_field("missing")

    def test_to_json_is_tab_indented_utf8(self):
        text = _descriptor(name="café.csv").to_json()
        assert "\n\t\"profile\"" in text
        assert "café.csv" in text
        assert json.loads(text)["name"] == "café.csv"

    def test_build_returns_fresh_instances(self):
        a, b = _descriptor(), _descriptor()
        a.fields.clear()
        assert b.field_names == ["qty"]


class TestDialect:
    def test_blank(self):
        d = Dialect.blank().to_dict()
        assert d["delimiter"] == ""
        assert d["header"] == ""
        assert d["rowsCount"] == 0


class TestSource:
    def test_parse_tags(self):
        assert FormatTag.parse("json") is FormatTag.JSON_ARRAY
        assert FormatTag.parse("delimited-text") is FormatTag.DELIMITED_TEXT
        assert FormatTag.parse("POSTGRES") is FormatTag.RELATIONAL_TABLE
        with pytest.raises(ValueError):
            FormatTag.parse("xml")

    def test_location_needs_a_target(self):
        with pytest.raises(ValueError):
            SourceLocation()

    def test_password_kept_out_of_logs(self):
        params = ConnectionParams(host="db", port=5432, user="me", password="s3cret", dbname="sales")
        location = SourceLocation.database(params, table="orders")
        assert "s3cret" not in repr(params)
        assert "s3cret" not in location.describe()
        assert location.describe() == "postgres://me@db:5432/sales/public/orders"
        assert "password='s3cret'" in params.connection_string()

    def test_connection_string_quotes_values(self):
        params = ConnectionParams(host="db", port=5432, user="me", password="pa ss'wo\\rd", dbname="sales")
        assert params.connection_string() == (
            "host='db' port='5432' user='me' password='pa ss\\'wo\\\\rd' dbname='sales'"
        )


class TestManifest:
    def test_from_dict_restores_entries(self):
        manifest = ProfilingManifest(format="json-array", source="/lake")
        manifest.succeeded.append(ManifestEntry("b.json", "/lake/b.json", "/out/b.json", 2, 4))
        manifest.skipped.append(SkippedItem("bad.json", "/lake/bad.json", "Invalid JSON", "RECORD_PARSE_FAILURE"))

        restored = ProfilingManifest.from_dict(json.loads(json.dumps(manifest.to_dict())))
        assert restored == manifest

    def test_outcome_properties(self):
        manifest = ProfilingManifest(format="csv", source="/lake")
        assert manifest.nothing_found
        manifest.skipped.append(SkippedItem("x.csv", "/lake/x.csv", "bad", "RECORD_PARSE_FAILURE"))
        assert manifest.all_failed
