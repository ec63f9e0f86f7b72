"""
WHO child growth z-scores and clinical categorization for ages 0-60 months.
"""

from .batch import ClassifierConfig, GrowthClassifier
from .categories import categorize_muac, categorize_zscore
from .classifier import (
    Anthropometry,
    GrowthAssessment,
    categorize_head_circumference_for_age,
    categorize_height_for_age,
    categorize_muac_for_age,
    categorize_weight_for_age,
    categorize_weight_for_height,
)
from .exceptions import (
    AnthropometryError,
    CategorizationGapError,
    EmptyRowError,
    InputValidationError,
    InvalidAgeError,
    InvalidGenderError,
    InvalidHeightError,
    InvalidIndicatorError,
    InvalidMeasurementError,
    MissingColumnError,
    ReferenceDataError,
    RowNotFoundError,
)
from .indicators import Gender, Indicator, ScoreFamily
from .matching import ReferenceRow, match_row
from .reference import (
    ReferenceData,
    ReferenceDataProvider,
    load_default_reference,
    reset_default_reference,
)
from .zscores import ZScoreCalculator, round_zscore, zscore_to_percentile

__all__ = [
    "Anthropometry",
    "AnthropometryError",
    "CategorizationGapError",
    "ClassifierConfig",
    "EmptyRowError",
    "Gender",
    "GrowthAssessment",
    "GrowthClassifier",
    "Indicator",
    "InputValidationError",
    "InvalidAgeError",
    "InvalidGenderError",
    "InvalidHeightError",
    "InvalidIndicatorError",
    "InvalidMeasurementError",
    "MissingColumnError",
    "ReferenceData",
    "ReferenceDataError",
    "ReferenceDataProvider",
    "ReferenceRow",
    "RowNotFoundError",
    "ScoreFamily",
    "ZScoreCalculator",
    "categorize_head_circumference_for_age",
    "categorize_height_for_age",
    "categorize_muac",
    "categorize_muac_for_age",
    "categorize_weight_for_age",
    "categorize_weight_for_height",
    "categorize_zscore",
    "load_default_reference",
    "match_row",
    "reset_default_reference",
    "round_zscore",
    "zscore_to_percentile",
]
