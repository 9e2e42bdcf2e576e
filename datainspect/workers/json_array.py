"""
JSON-array worker (``.json`` files holding ``[{...}, {...}]``).

Records are flat key/value objects.  Columns are the union of keys in
first-appearance order (the first record's key order, then any new keys
from later records in the order they show up).  A key missing from a record
counts as a null for that row.  Nested objects and arrays are profiled as
their compact JSON text.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from datainspect.config import InspectConfig
from datainspect.errors import RecordParseFailure, SourceUnreadable
from datainspect.models.descriptor import Dialect
from datainspect.models.source import FormatTag
from datainspect.profiler.column_profiler import ColumnData, TableSource
from datainspect.utils.io_utils import file_md5
from datainspect.workers.base import FileFormatWorker, Member

__all__ = ["JsonArrayWorker", "records_to_columns"]

logger = logging.getLogger(__name__)


def _flatten_value(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return value


def records_to_columns(records: list[dict[str, Any]]) -> list[ColumnData]:
    """Pivot *records* into columns in first-appearance key order."""
    order: dict[str, None] = {}
    for record in records:
        for key in record:
            order.setdefault(key, None)

    return [
        ColumnData(name=key, values=[_flatten_value(r.get(key)) for r in records])
        for key in order
    ]


class JsonArrayWorker(FileFormatWorker):
    """Profile every JSON-array file under a directory."""

    tag = FormatTag.JSON_ARRAY

    def __init__(self, config: InspectConfig | None = None, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self.extensions = tuple(ext.lower() for ext in self.config.json_extensions)
        self.encoding = "utf-8"

    def _load(self, member: Member) -> list[dict[str, Any]]:
        try:
            with open(member.path, encoding=self.encoding) as f:
                data = json.load(f)
        except OSError as exc:
            raise SourceUnreadable(f"Cannot read {member.path}: {exc}") from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise RecordParseFailure(f"Invalid JSON file {member.path}: {exc}") from exc

        if not isinstance(data, list):
            raise RecordParseFailure(
                f"{member.path} is not a JSON array (top level is {type(data).__name__})"
            )
        for i, record in enumerate(data):
            if not isinstance(record, dict):
                raise RecordParseFailure(
                    f"{member.path}: element {i} is {type(record).__name__}, not an object"
                )
        return data

    def read_columns(self, member: Member) -> TableSource:
        records = self._load(member)
        try:
            digest = file_md5(member.path)
        except OSError as exc:
            raise SourceUnreadable(f"Cannot read {member.path}: {exc}") from exc

        columns = records_to_columns(records)
        logger.debug("Read %s: %d records x %d keys", member.path, len(records), len(columns))
        return TableSource(
            name=member.name,
            path=member.path,
            columns=columns,
            row_count=len(records),
            format="json",
            mediatype="application/json",
            dialect=Dialect(),
            byte_size=member.size,
            hash=digest,
        )
