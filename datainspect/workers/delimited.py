"""
Delimited-text worker (``.csv`` / ``.tsv`` files).

Each file's delimiter is sniffed from its first line; the file is then read
with pandas using the nullable dtype backend, whose per-column dtype is the
declared storage type handed to the type inspector (pandas only infers a
numeric dtype when every non-empty cell parses as a number).
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from datainspect.config import InspectConfig
from datainspect.errors import RecordParseFailure, SourceUnreadable
from datainspect.models.descriptor import Dialect
from datainspect.models.manifest import ProfilingManifest
from datainspect.models.source import FormatTag, SourceLocation
from datainspect.profiler.column_profiler import ColumnData, TableSource
from datainspect.profiler.dialect import sniff_file
from datainspect.profiler.type_inspector import BOOLEAN, DATE, INTEGER, NUMBER, STRING, is_null
from datainspect.utils.cancel import CancelToken
from datainspect.utils.io_utils import file_md5
from datainspect.workers.base import FileFormatWorker, Member

__all__ = ["DelimitedTextWorker", "declared_type_for"]

logger = logging.getLogger(__name__)


def declared_type_for(dtype: Any) -> str:
    """Map a pandas dtype onto the descriptor's type vocabulary."""
    if pd.api.types.is_bool_dtype(dtype):
        return BOOLEAN
    if pd.api.types.is_integer_dtype(dtype):
        return INTEGER
    if pd.api.types.is_float_dtype(dtype):
        return NUMBER
    if pd.api.types.is_datetime64_any_dtype(dtype):
        return DATE
    return STRING


def _column_values(series: pd.Series) -> list[Any]:
    return [None if is_null(v) else v for v in series.tolist()]


class DelimitedTextWorker(FileFormatWorker):
    """Profile every delimited-text file under a directory."""

    tag = FormatTag.DELIMITED_TEXT

    def __init__(self, config: InspectConfig | None = None, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self.extensions = tuple(ext.lower() for ext in self.config.delimited_extensions)
        self.encoding = "utf-8"
        self._tally = {"files": 0, "comma": 0, "tab": 0, "emptyDelimiter": 0}

    def diagnostics(self) -> dict[str, int]:
        return dict(self._tally)

    def read_columns(self, member: Member) -> TableSource:
        sniff = sniff_file(member.path, encoding=self.encoding)
        self._tally["files"] += 1
        flags: list[str] = []
        if sniff.empty_delimiter:
            self._tally["emptyDelimiter"] += 1
            flags.append("empty-delimiter")
            logger.info("Empty-delimiter file: %s", member.path)
        elif sniff.is_tab:
            self._tally["tab"] += 1
        else:
            self._tally["comma"] += 1

        try:
            digest = file_md5(member.path)
        except OSError as exc:
            raise SourceUnreadable(f"Cannot read {member.path}: {exc}") from exc

        is_tab = sniff.is_tab
        table = TableSource(
            name=member.name,
            path=member.path,
            columns=[],
            row_count=0,
            format="tsv" if is_tab else "csv",
            mediatype="text/tab-separated-values" if is_tab else "text/csv",
            dialect=Dialect(delimiter=sniff.delimiter or "", line_terminator=sniff.line_terminator),
            byte_size=member.size,
            hash=digest,
            flags=flags,
        )

        if not sniff.first_line.strip():
            return table

        try:
            df = pd.read_csv(
                member.path,
                sep=sniff.delimiter or ",",
                encoding=self.encoding,
                dtype_backend="numpy_nullable",
            )
        except pd.errors.EmptyDataError:
            return table
        except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as exc:
            raise RecordParseFailure(f"Cannot parse {member.path}: {exc}") from exc

        table.columns = [
            ColumnData(
                name=str(col),
                values=_column_values(df[col]),
                declared_type=declared_type_for(df[col].dtype),
            )
            for col in df.columns
        ]
        table.row_count = len(df)
        logger.debug("Read %s: %d rows x %d columns", member.path, len(df), len(df.columns))
        return table

    def run(self, location: SourceLocation, cancel: CancelToken | None = None) -> ProfilingManifest:
        manifest = super().run(location, cancel)
        t = manifest.diagnostics
        logger.info(
            "Delimited files: %d (comma %d, tab %d, empty-delimiter %d)",
            t.get("files", 0), t.get("comma", 0), t.get("tab", 0), t.get("emptyDelimiter", 0),
        )
        return manifest
