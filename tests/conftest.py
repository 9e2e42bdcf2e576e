"""Shared fixtures for the datainspect tests."""

import json

import pytest

from datainspect.config import InspectConfig
from datainspect.store.descriptor_store import DescriptorStore


@pytest.fixture
def out_dir(tmp_path):
    return tmp_path / "out"


@pytest.fixture
def config(out_dir):
    return InspectConfig(output_dir=str(out_dir))


@pytest.fixture
def store(out_dir):
    return DescriptorStore(out_dir, retry_delay=0)


@pytest.fixture
def lake(tmp_path):
    """A small source directory with one CSV and one JSON-array file."""
    root = tmp_path / "lake"
    root.mkdir()
    (root / "a.csv").write_text("id,name,score\n1,alice,10\n2,bob,\n3,carol,30\n", encoding="utf-8")
    records = [
        {"id": 1, "tags": ["x"], "ok": True},
        {"id": 2, "ok": False, "extra": "z"},
    ]
    (root / "b.json").write_text(json.dumps(records), encoding="utf-8")
    return root
