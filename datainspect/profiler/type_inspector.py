"""
Type inspection — classify one column and compute its statistics.

Classification rule (identical for every source format): a column is
numeric iff it has at least one present value and *every* present value is
a number.  Readers that already know the storage type of a column (pandas
dtypes for delimited text, declared SQL types for tables) pass it as
*declared*; otherwise the Python types of the values decide.

All statistics are integers.  Rounding is half away from zero, so a mean of
2.5 becomes 3.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
import numbers
import re
from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd

from datainspect.models.descriptor import ColumnStats, Field, FieldConstraints

__all__ = [
    "INTEGER",
    "NUMBER",
    "STRING",
    "BOOLEAN",
    "DATE",
    "NUMERIC_TYPES",
    "is_null",
    "render_value",
    "round_half_away",
    "proportion",
    "infer_type",
    "compute_numeric_stats",
    "compute_stats",
    "inspect_column",
]

logger = logging.getLogger(__name__)

INTEGER = "integer"
NUMBER = "number"
STRING = "string"
BOOLEAN = "boolean"
DATE = "date"

NUMERIC_TYPES = frozenset({INTEGER, NUMBER})
_DECLARABLE = frozenset({INTEGER, NUMBER, STRING, BOOLEAN, DATE})

_ISO_DATE = re.compile(
    r"^\d{4}-\d{2}-\d{2}"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?$"
)


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

def is_null(value: Any) -> bool:
    """``None``, NaN, ``pd.NA`` and ``NaT`` all count as null."""
    if value is None:
        return True
    if isinstance(value, (str, bool, list, dict)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def render_value(value: Any) -> str:
    """String form used for unique counting and sample values.

    Booleans render as ``true``/``false`` and integral floats drop their
    fractional part, so ``2.0`` and ``2`` are the same distinct value.
    """
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (float, np.floating)):
        if math.isfinite(value) and float(value).is_integer():
            return str(int(value))
        return str(float(value))
    if isinstance(value, (np.integer,)):
        return str(int(value))
    if isinstance(value, (pd.Timestamp, dt.datetime, dt.date)):
        return value.isoformat()
    return str(value)


def round_half_away(x: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    rounded = math.floor(abs(x) + 0.5)
    return int(rounded) if x >= 0 else -int(rounded)


def proportion(part: int, whole: int) -> int:
    """``round(part / whole * 100)``; a zero *whole* yields 0."""
    if whole == 0:
        return 0
    return round_half_away(part / whole * 100)


def _is_bool(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Number) and not _is_bool(value)


def _is_integral_type(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not _is_bool(value)


def _looks_temporal(values: Sequence[Any]) -> bool:
    if all(isinstance(v, (pd.Timestamp, dt.datetime, dt.date)) for v in values):
        return True
    if not all(isinstance(v, str) and _ISO_DATE.match(v.strip()) for v in values):
        return False
    parsed = pd.to_datetime(pd.Series(values, dtype="object"), errors="coerce", format="ISO8601")
    return bool(parsed.notna().all())


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def infer_type(values: Sequence[Any], declared: str | None = None) -> str:
    """Classify a column as integer, number, string, boolean or date.

    Parameters
    ----------
    values
        Every value of the column in row order; nulls included.
    declared
        Storage type reported by the reader, if it has one.  A declared
        ``string`` is still checked for ISO dates.
    """
    present = [v for v in values if not is_null(v)]
    if not present:
        return STRING

    if declared is not None and declared not in _DECLARABLE:
        raise ValueError(f"Unknown declared type: {declared!r}")
    if declared is not None and declared != STRING:
        return declared

    if all(_is_bool(v) for v in present):
        return BOOLEAN
    if all(_is_number(v) for v in present):
        return INTEGER if all(_is_integral_type(v) for v in present) else NUMBER
    if _looks_temporal(present):
        return DATE
    return STRING


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

def compute_numeric_stats(values: Sequence[Any]) -> tuple[int, int, int, int] | None:
    """``(min, max, mean, std)`` over the finite numbers in *values*.

    Standard deviation is the population one (divide by n).  Returns
    ``None`` when no finite value remains.
    """
    finite: list[float] = []
    for v in values:
        try:
            f = float(v)
        except (TypeError, ValueError, OverflowError):
            continue
        if math.isfinite(f):
            finite.append(f)

    if not finite:
        return None

    arr = np.array(finite, dtype=float)
    return (
        round_half_away(float(np.min(arr))),
        round_half_away(float(np.max(arr))),
        round_half_away(float(np.mean(arr))),
        round_half_away(float(np.std(arr, ddof=0))),
    )


def compute_stats(values: Sequence[Any], inferred_type: str, sample_count: int = 3) -> ColumnStats:
    """Counts, proportions, samples and (numeric only) summary stats.

    Proportions are taken against the *present* count, not the row count.
    """
    present = [v for v in values if not is_null(v)]
    null_count = len(values) - len(present)

    distinct: dict[str, None] = {}
    for v in present:
        distinct.setdefault(render_value(v), None)
    unique_count = len(distinct)

    stats = ColumnStats(
        null_count=null_count,
        present_count=len(present),
        unique_count=unique_count,
        sample_values=list(distinct)[:sample_count],
        null_proportion=proportion(null_count, len(present)),
        unique_proportion=proportion(unique_count, len(present)),
    )

    if inferred_type in NUMERIC_TYPES:
        numeric = compute_numeric_stats(present)
        if numeric is not None:
            stats.min, stats.max, stats.mean, stats.std = numeric
    return stats


def inspect_column(
    name: str,
    values: Sequence[Any],
    declared: str | None = None,
    sample_count: int = 3,
) -> Field:
    """Profile one column into a :class:`Field`."""
    inferred = infer_type(values, declared)
    stats = compute_stats(values, inferred, sample_count=sample_count)
    logger.debug("Column %r -> %s (%d present, %d null)", name, inferred, stats.present_count, stats.null_count)
    return Field(
        name=name,
        types=inferred,
        stats=stats,
        constraints=FieldConstraints.from_stats(stats),
    )
