"""Tests for datainspect.dispatch.server (FastAPI worker service)."""

import duckdb
import pytest
from fastapi.testclient import TestClient

from datainspect.dispatch.server import create_app
from datainspect.models.source import FormatTag
from datainspect.workers import RelationalTableWorker


@pytest.fixture
def csv_client(config, store):
    return TestClient(create_app(FormatTag.DELIMITED_TEXT, config, store))


class TestHealth:
    def test_reports_format(self, csv_client):
        resp = csv_client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "format": "delimited-text"}


class TestProfileEndpoint:
    def test_completed(self, csv_client, lake, out_dir):
        resp = csv_client.post("/profile", json={"sourceDirectory": str(lake), "pluginType": "csv"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "completed"
        assert body["errorCode"] is None
        assert body["request"]["sourceDirectory"] == str(lake)
        assert [e["name"] for e in body["manifest"]["succeeded"]] == ["a.csv"]
        assert (out_dir / "delimited-text" / "a.csv.json").exists()

    def test_unreadable_source(self, csv_client, tmp_path):
        body = csv_client.post("/profile", json={"sourceDirectory": str(tmp_path / "missing")}).json()
        assert body["status"] == "failed"
        assert body["errorCode"] == "SOURCE_UNREADABLE"
        assert body["manifest"] is None

    def test_missing_directory_field(self, csv_client):
        body = csv_client.post("/profile", json={}).json()
        assert body["status"] == "failed"
        assert body["errorCode"] == "INVALID_REQUEST"

    def test_timeout_cancels_walk(self, csv_client, lake):
        body = csv_client.post("/profile", json={"sourceDirectory": str(lake), "timeout": 0}).json()
        assert body["status"] == "failed"
        assert body["errorCode"] == "CANCELLED"
        assert body["manifest"]["cancelled"] is True

    def test_empty_directory_completes(self, csv_client, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        body = csv_client.post("/profile", json={"sourceDirectory": str(empty)}).json()
        assert body["status"] == "completed"
        assert body["manifest"]["succeeded"] == []
        assert "No delimited-text sources" in body["message"]

    def test_malformed_file_does_not_fail_request(self, config, store, tmp_path):
        src = tmp_path / "src"
        src.mkdir()
        (src / "good.json").write_text('[{"a": 1}]', encoding="utf-8")
        (src / "bad.json").write_text("[{", encoding="utf-8")
        client = TestClient(create_app("json", config, store))

        body = client.post("/profile", json={"sourceDirectory": str(src)}).json()
        assert body["status"] == "completed"
        assert len(body["manifest"]["succeeded"]) == 1
        assert body["manifest"]["skipped"][0]["errorCode"] == "RECORD_PARSE_FAILURE"

    def test_worker_crash_is_reported(self, config, store, lake):
        def broken_factory(tag, config, store=None):
            raise RuntimeError("no worker")

        client = TestClient(create_app("csv", config, store, worker_factory=broken_factory))
        body = client.post("/profile", json={"sourceDirectory": str(lake)}).json()
        assert body["status"] == "failed"
        assert body["errorCode"] == "UNEXPECTED_ERROR"


class TestRelationalEndpoint:
    @pytest.fixture
    def client(self, config, store):
        con = duckdb.connect()
        con.execute("CREATE TABLE orders (id INTEGER, total DOUBLE)")
        con.execute("INSERT INTO orders VALUES (1, 9.5), (2, 20.5)")

        def factory(tag, config, store=None):
            return RelationalTableWorker(config, store=store, connection=con)

        yield TestClient(create_app(FormatTag.RELATIONAL_TABLE, config, store, worker_factory=factory))
        con.close()

    def test_password_not_echoed(self, client):
        body = client.post(
            "/profile",
            json={"host": "db", "port": 5432, "user": "me", "password": "s3cret",
                  "dbname": "memory", "schema": "main", "pluginType": "postgres"},
        ).json()
        assert body["status"] == "completed"
        assert "password" not in body["request"]
        assert body["request"]["schema"] == "main"
        assert [e["name"] for e in body["manifest"]["succeeded"]] == ["orders"]

    def test_missing_connection_fields(self, client):
        body = client.post("/profile", json={"host": "db"}).json()
        assert body["status"] == "failed"
        assert body["errorCode"] == "INVALID_REQUEST"
        assert "dbname" in body["message"]
