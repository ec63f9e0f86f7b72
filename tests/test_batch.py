"""
Tests for DataFrame batch categorization.
"""

import logging

import numpy as np
import pandas as pd
import pytest

from anthropometry import categories as cat
from anthropometry.batch import GrowthClassifier
from anthropometry.exceptions import InvalidIndicatorError


@pytest.fixture
def measurements():
    return pd.DataFrame(
        {
            "age_months": [0, 12, 12, 36],
            "sex": ["F", "F", "M", "X"],
            "height_cm": [50.0, 75.0, 60.0, 90.0],
            "weight_kg": [3.0, 9.0, 6.0, 13.0],
            "muac_cm": [11.0, 12.5, 13.0, 14.0],
        },
        index=["a", "b", "c", "d"],
    )


class TestGrowthClassifier:
    """Tests for GrowthClassifier.classify"""

    def test_tc001_weight_for_height(self, reference, measurements):
        """Rows are scored independently; failures carry their error."""
        result = GrowthClassifier(reference).classify(measurements, ["WeightForHeight"])
        frame = result["WeightForHeight"]

        assert list(frame.columns) == ["zscore", "category", "error"]
        assert list(frame.index) == ["a", "b", "c", "d"]
        assert frame.at["a", "zscore"] == -1.0
        assert frame.at["a", "category"] == cat.WFH_NEG2_TO_1
        assert frame.at["c", "category"] == cat.WFH_NEG2_TO_1
        assert frame.at["b", "error"].startswith("RowNotFoundError")
        assert frame.at["d", "error"].startswith("InvalidGenderError")
        assert np.isnan(frame.at["d", "zscore"])
        assert pd.isna(frame.at["d", "category"])

    def test_tc002_weight_for_age(self, reference, measurements):
        frame = GrowthClassifier(reference).classify(measurements, ["WeightForAge"])[
            "WeightForAge"
        ]
        assert frame.at["a", "category"] == cat.WFA_NEG2_TO_1
        assert frame.at["b", "zscore"] == 0.0
        assert frame.at["c", "category"] == cat.WFA_LESS_NEG3
        assert pd.isna(frame.at["a", "error"])

    def test_tc003_muac(self, reference, measurements):
        """MUAC needs no sex and has no z-score."""
        classifier = GrowthClassifier(reference, muac_col="muac_cm")
        frame = classifier.classify(measurements, ["MUAC"])["MUAC"]
        assert frame.at["a", "category"] == cat.MUAC_AGE_LESS_6
        assert frame.at["b", "error"].startswith("CategorizationGapError")
        assert frame.at["c", "category"] == cat.MUAC_GREATER_12P5
        assert frame.at["d", "category"] == cat.MUAC_GREATER_12P5
        assert frame["zscore"].isna().all()

    def test_tc004_several_indicators(self, reference, measurements):
        results = GrowthClassifier(reference, muac_col="muac_cm").classify(
            measurements, ["WeightForAge", "WeightForHeight", "MUAC"]
        )
        assert set(results) == {"WeightForAge", "WeightForHeight", "MUAC"}

    def test_tc005_numeric_frame(self, reference):
        """Numeric sex codes and float ages from an all-numeric frame."""
        df = pd.DataFrame(
            {"age_months": [24.0, np.nan], "sex": [1, 1], "height_cm": [80.0, 80.0]}
        )
        frame = GrowthClassifier(reference).classify(df, ["HeightForAge"])["HeightForAge"]
        assert frame.at[0, "category"] == cat.HFA_NEG2_TO_3
        assert frame.at[1, "error"].startswith("InvalidAgeError")

    def test_tc006_failures_logged(self, reference, measurements, caplog):
        with caplog.at_level(logging.WARNING, logger="anthropometry.batch"):
            GrowthClassifier(reference).classify(measurements, ["WeightForHeight"])
        assert "WeightForHeight: 2 of 4 rows could not be categorized" in caplog.text

    def test_tc007_missing_column(self, reference, measurements):
        with pytest.raises(ValueError, match="Column 'head_circ' does not exist"):
            GrowthClassifier(reference, head_circ_col="head_circ").classify(
                measurements, ["HeadCircumferenceForAge"]
            )

    def test_tc008_unconfigured_column(self, reference, measurements):
        with pytest.raises(ValueError, match="No column configured for MUAC"):
            GrowthClassifier(reference).classify(measurements, ["MUAC"])

    def test_tc009_unknown_indicator(self, reference, measurements):
        with pytest.raises(InvalidIndicatorError):
            GrowthClassifier(reference).classify(measurements, ["BMIForAge"])

    def test_tc010_invalid_configuration(self, reference):
        with pytest.raises(ValueError, match="Invalid configuration"):
            GrowthClassifier(reference, age_col="  ")
        with pytest.raises(ValueError, match="Invalid configuration"):
            GrowthClassifier(reference, muac_col="")

    def test_tc011_duplicate_index_labels_keep_every_row(self, reference):
        """Rows sharing an index label are reported separately, in order."""
        df = pd.DataFrame(
            {"age_months": [12, 12], "sex": ["F", "F"], "weight_kg": [6.0, 9.0]},
            index=["x", "x"],
        )
        frame = GrowthClassifier(reference).classify(df, ["WeightForAge"])["WeightForAge"]
        assert list(frame.index) == ["x", "x"]
        assert frame["zscore"].tolist() == [-3.3, 0.0]
        assert frame["category"].tolist() == [cat.WFA_LESS_NEG3, cat.WFA_NEG2_TO_1]

    def test_tc012_bad_muac_cells_recorded(self, reference):
        """Missing or non-numeric MUAC values become row errors."""
        df = pd.DataFrame(
            {"age_months": [12, 12, 12], "muac_cm": [None, "n/a", 13.0]}
        )
        frame = GrowthClassifier(reference, muac_col="muac_cm").classify(df, ["MUAC"])["MUAC"]
        assert frame.at[0, "error"].startswith("InvalidMeasurementError")
        assert frame.at[1, "error"].startswith("InvalidMeasurementError")
        assert frame.at[2, "category"] == cat.MUAC_GREATER_12P5
