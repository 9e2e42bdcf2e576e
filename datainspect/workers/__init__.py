"""
Format workers — one per source format, sharing the walk in :mod:`base`.

Modules
-------
base
    ``FormatWorker`` template (enumerate / read_columns / describe / write).
delimited
    ``.csv`` / ``.tsv`` files via pandas.
json_array
    ``.json`` files holding arrays of flat records.
relational
    Base tables of a database schema via DuckDB.
"""

from __future__ import annotations

from datainspect.models.source import FormatTag
from datainspect.workers.base import FileFormatWorker, FormatWorker, Member
from datainspect.workers.delimited import DelimitedTextWorker
from datainspect.workers.json_array import JsonArrayWorker
from datainspect.workers.relational import RelationalTableWorker

__all__ = [
    "DelimitedTextWorker",
    "FileFormatWorker",
    "FormatWorker",
    "JsonArrayWorker",
    "Member",
    "RelationalTableWorker",
    "WORKER_TYPES",
    "build_worker",
]

WORKER_TYPES: dict[FormatTag, type[FormatWorker]] = {
    FormatTag.DELIMITED_TEXT: DelimitedTextWorker,
    FormatTag.JSON_ARRAY: JsonArrayWorker,
    FormatTag.RELATIONAL_TABLE: RelationalTableWorker,
}


def build_worker(tag: FormatTag | str, config=None, **kwargs) -> FormatWorker:
    """Instantiate the worker registered for *tag*.

    Raises :class:`ValueError` for unknown tags.
    """
    return WORKER_TYPES[FormatTag.parse(tag)](config, **kwargs)
