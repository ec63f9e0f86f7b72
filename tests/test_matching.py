"""
Tests for reference row matching.
"""

import logging

import numpy as np
import pytest

from anthropometry.exceptions import (
    EmptyRowError,
    InvalidHeightError,
    MissingColumnError,
    RowNotFoundError,
)
from anthropometry.indicators import Indicator
from anthropometry.matching import ReferenceRow, match_row
from anthropometry.reference import REFERENCE_DTYPE


def _rows(*rows: tuple) -> np.ndarray:
    return np.array(list(rows), dtype=REFERENCE_DTYPE)


@pytest.fixture
def length_rows():
    return _rows(
        (64.6, -0.35, 7.1, 0.08, np.nan),
        (65.0, -0.35, 7.2, 0.08, np.nan),
    )


@pytest.fixture
def age_rows():
    return _rows(
        (0.0, 1.0, 49.1, np.nan, 1.86),
        (1.0, 1.0, 53.7, np.nan, 1.95),
        (2.0, 1.0, 57.1, np.nan, 2.03),
    )


class TestLengthMatching:
    """Row selection for weight-for-height."""

    def test_tc001_exact_length_wins(self, length_rows):
        """65.0 matches the 65.0 row even though 64.6 is within tolerance."""
        row = match_row(Indicator.WEIGHT_FOR_HEIGHT, length_rows, 12, 65.0)
        assert row.key == 65.0
        assert row.value("M") == 7.2

    def test_tc002_first_row_within_tolerance(self, length_rows):
        """64.8 has no exact row; 64.6 is the first with difference < 0.5."""
        row = match_row(Indicator.WEIGHT_FOR_HEIGHT, length_rows, 12, 64.8)
        assert row.key == 64.6

    def test_tc003_tolerance_is_one_sided(self, length_rows):
        """Rows longer than the subject satisfy height - key < 0.5."""
        row = match_row(Indicator.WEIGHT_FOR_HEIGHT, length_rows, 12, 64.0)
        assert row.key == 64.6

    def test_tc004_too_long_for_any_row(self, length_rows):
        """66.0 is 0.5 cm or more above every row."""
        with pytest.raises(RowNotFoundError, match="length 66 cm"):
            match_row(Indicator.WEIGHT_FOR_HEIGHT, length_rows, 12, 66.0)

    def test_tc005_boundary_difference_excluded(self, length_rows):
        """A difference of exactly 0.5 does not match."""
        with pytest.raises(RowNotFoundError):
            match_row(Indicator.WEIGHT_FOR_HEIGHT, length_rows, 12, 65.5)

    def test_tc006_height_required(self, length_rows):
        with pytest.raises(InvalidHeightError):
            match_row(Indicator.WEIGHT_FOR_HEIGHT, length_rows, 12)


class TestAgeMatching:
    """Row selection for the for-age indicators."""

    def test_tc007_exact_age(self, age_rows):
        row = match_row(Indicator.HEIGHT_FOR_AGE, age_rows, 1)
        assert row.key == 1.0
        assert row.value("SD") == 1.95

    def test_tc008_height_ignored(self, age_rows):
        """Any height passed alongside an age indicator plays no part."""
        row = match_row(Indicator.HEIGHT_FOR_AGE, age_rows, 2, 999.0)
        assert row.key == 2.0

    def test_tc009_missing_age(self, age_rows):
        with pytest.raises(RowNotFoundError, match="age 5 months"):
            match_row(Indicator.HEIGHT_FOR_AGE, age_rows, 5)

    def test_tc010_no_interpolation(self):
        """Ages between table rows are not interpolated."""
        rows = _rows((0.0, 1.0, 49.1, np.nan, 1.86), (2.0, 1.0, 57.1, np.nan, 2.03))
        with pytest.raises(RowNotFoundError):
            match_row(Indicator.HEIGHT_FOR_AGE, rows, 1)


class TestMatchErrors:
    """Empty inputs and malformed rows."""

    @pytest.mark.parametrize("rows", [None, np.empty(0, dtype=REFERENCE_DTYPE)])
    def test_tc011_empty_rows_distinct_from_not_found(self, rows):
        with pytest.raises(EmptyRowError, match="Empty reference rows"):
            match_row(Indicator.WEIGHT_FOR_AGE, rows, 0)

    def test_tc012_rows_without_key(self):
        rows = np.array([(1.0, 2.0)], dtype=[("M", "f8"), ("SD", "f8")])
        with pytest.raises(MissingColumnError):
            match_row(Indicator.WEIGHT_FOR_AGE, rows, 0)

    def test_tc013_logs_match(self, age_rows, caplog):
        with caplog.at_level(logging.DEBUG, logger="anthropometry.matching"):
            match_row(Indicator.HEIGHT_FOR_AGE, age_rows, 0)
        assert "Matched hfa row key=0" in caplog.text


class TestReferenceRow:
    """ReferenceRow value access."""

    def test_tc014_nan_columns_dropped(self, age_rows):
        row = ReferenceRow.from_record(age_rows[0])
        assert set(row.values) == {"L", "M", "SD"}
        with pytest.raises(MissingColumnError, match="'S'"):
            row.value("S")

    def test_tc015_values_read_only(self):
        row = ReferenceRow(key=0.0, values={"M": 3.0})
        with pytest.raises(TypeError):
            row.values["M"] = 4.0  # type: ignore[index]
