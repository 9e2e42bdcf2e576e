"""Tests for datainspect.profiler.type_inspector."""

import math

import numpy as np
import pandas as pd
import pytest

from datainspect.profiler.type_inspector import (
    BOOLEAN,
    DATE,
    INTEGER,
    NUMBER,
    STRING,
    compute_numeric_stats,
    compute_stats,
    infer_type,
    inspect_column,
    is_null,
    proportion,
    render_value,
    round_half_away,
)


# ── value helpers ────────────────────────────────────────────────────

class TestValueHelpers:
    def test_round_half_away_from_zero(self):
        assert round_half_away(2.5) == 3
        assert round_half_away(3.5) == 4
        assert round_half_away(-2.5) == -3
        assert round_half_away(2.4) == 2
        assert round_half_away(0.0) == 0

    def test_proportion(self):
        assert proportion(1, 4) == 25
        assert proportion(1, 3) == 33
        assert proportion(2, 3) == 67
        assert proportion(5, 0) == 0

    def test_is_null(self):
        assert is_null(None)
        assert is_null(float("nan"))
        assert is_null(pd.NA)
        assert is_null(pd.NaT)
        assert not is_null("")
        assert not is_null(0)
        assert not is_null(False)
        assert not is_null([1, 2])

    def test_render_value(self):
        assert render_value(True) == "true"
        assert render_value(np.bool_(False)) == "false"
        assert render_value(2.0) == "2"
        assert render_value(2.5) == "2.5"
        assert render_value(np.int64(7)) == "7"
        assert render_value("x") == "x"


# ── classification ───────────────────────────────────────────────────

class TestInferType:
    def test_integers(self):
        assert infer_type([1, 2, None, 3]) == INTEGER

    def test_mixed_int_and_float_is_number(self):
        assert infer_type([1, 2.5, 3]) == NUMBER

    def test_one_string_makes_column_string(self):
        assert infer_type([1, 2, "three"]) == STRING

    def test_numeric_strings_stay_strings(self):
        # JSON "1" is text, not a number
        assert infer_type(["1", "2"]) == STRING

    def test_booleans(self):
        assert infer_type([True, False, None]) == BOOLEAN

    def test_bool_is_not_a_number(self):
        assert infer_type([1, True]) == STRING

    def test_iso_dates(self):
        assert infer_type(["2024-01-05", "2023-12-31"]) == DATE
        assert infer_type(["2024-01-05T10:30:00", "2024-02-01T00:00:00"]) == DATE

    def test_invalid_date_is_string(self):
        assert infer_type(["2024-13-45"]) == STRING

    def test_all_null_is_string(self):
        assert infer_type([None, None]) == STRING
        assert infer_type([]) == STRING

    def test_declared_type_wins(self):
        assert infer_type([1, 2], declared=NUMBER) == NUMBER

    def test_declared_string_still_checks_dates(self):
        assert infer_type(["2024-01-05"], declared=STRING) == DATE

    def test_unknown_declared_type(self):
        with pytest.raises(ValueError):
            infer_type([1], declared="decimal128")


# ── statistics ───────────────────────────────────────────────────────

class TestStats:
    def test_numeric_column_with_null(self):
        stats = compute_stats([1, 2, 3, 4, None], INTEGER)
        assert stats.present_count == 4
        assert stats.null_count == 1
        assert stats.null_proportion == 25
        assert stats.min == 1
        assert stats.max == 4
        assert stats.mean == 3  # 2.5 rounds away from zero
        assert stats.std == 1
        assert stats.unique_count == 4
        assert stats.unique_proportion == 100

    def test_samples_are_first_distinct_values(self):
        stats = compute_stats(["b", "a", "b", "c", "d"], STRING, sample_count=3)
        assert stats.sample_values == ["b", "a", "c"]
        assert stats.unique_count == 4

    def test_string_column_has_no_numeric_stats(self):
        stats = compute_stats(["x", "y"], STRING)
        assert not stats.has_numeric_stats
        assert stats.to_dict()["min"] == 0

    def test_integral_floats_count_once(self):
        stats = compute_stats([2, 2.0, 3], NUMBER)
        assert stats.unique_count == 2

    def test_all_null_column(self):
        stats = compute_stats([None, None], STRING)
        assert stats.present_count == 0
        assert stats.null_proportion == 0
        assert stats.unique_proportion == 0
        assert stats.sample_values == []

    def test_non_finite_values_ignored(self):
        assert compute_numeric_stats([1.0, math.inf, 3.0]) == (1, 3, 2, 1)
        assert compute_numeric_stats([math.nan]) is None


class TestInspectColumn:
    def test_builds_field(self):
        field = inspect_column("age", [30, 40, None])
        assert field.name == "age"
        assert field.types == INTEGER
        assert field.description == "age"
        assert field.constraints.required == "false"
        assert field.constraints.unique == "true"
        assert field.stats.mean == 35

    def test_required_and_unique(self):
        field = inspect_column("code", ["a", "a", "b"])
        assert field.constraints.required == "true"
        assert field.constraints.unique == "false"
