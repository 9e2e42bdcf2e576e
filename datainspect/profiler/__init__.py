"""
Profiler package — schema inference for table-shaped sources.

Modules
-------
dialect
    First-line delimiter detection for delimited text.
type_inspector
    Per-column type classification and statistics.
column_profiler
    Runs the type inspector over a whole table and builds the descriptor.
"""

from datainspect.profiler.column_profiler import ColumnData, ColumnProfiler, TableSource
from datainspect.profiler.dialect import SniffResult, detect_delimiter, sniff_file
from datainspect.profiler.type_inspector import infer_type, inspect_column

__all__ = [
    "ColumnData",
    "ColumnProfiler",
    "SniffResult",
    "TableSource",
    "detect_delimiter",
    "infer_type",
    "inspect_column",
    "sniff_file",
]
