"""
Batch categorization of anthropometric measurements held in a DataFrame.

Each requested indicator yields a DataFrame aligned on the input index with
the rounded z-score, the category label and, for rows that could not be
categorized, the error that stopped them. Failed rows are logged; they are
never silently dropped or defaulted.
"""

from typing import Any, Dict, List, Optional, Union
import logging
import math

import numpy as np
import pandas as pd
from pydantic import BaseModel, ValidationError, field_validator

from .categories import categorize_muac, categorize_zscore
from .exceptions import AnthropometryError, InvalidAgeError
from .indicators import Gender, Indicator
from .reference import ReferenceDataProvider
from .validation import check_indicator
from .zscores import ZScoreCalculator

logger = logging.getLogger(__name__)

MUAC = "MUAC"
RESULT_COLUMNS = ["zscore", "category", "error"]


class ClassifierConfig(BaseModel):
    """
    Column mapping for batch classification.

    Attributes:
        age_col (str): Age in whole months (0-60).
        sex_col (str): Sex as 'F'/'M', 'female'/'male' or 1/2.
        height_col (str): Length/height in cm.
        weight_col (str): Weight in kg.
        head_circ_col (Optional[str]): Head circumference in cm, if present.
        muac_col (Optional[str]): Mid upper arm circumference in cm, if present.
    """

    age_col: str = "age_months"
    sex_col: str = "sex"
    height_col: str = "height_cm"
    weight_col: str = "weight_kg"
    head_circ_col: Optional[str] = None
    muac_col: Optional[str] = None

    @field_validator("age_col", "sex_col", "height_col", "weight_col")
    @classmethod
    def validate_column_names(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Column name must be a non-empty string")
        return v

    @field_validator("head_circ_col", "muac_col")
    @classmethod
    def validate_optional_column(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and (not isinstance(v, str) or not v.strip()):
            raise ValueError("Optional column name must be a non-empty string")
        return v


class GrowthClassifier:
    """
    Categorizes every row of a DataFrame for the requested indicators.

    Usage:
        classifier = GrowthClassifier(reference, muac_col="muac_cm")
        results = classifier.classify(df, ["WeightForHeight", "MUAC"])
        results["WeightForHeight"]["category"]
    """

    def __init__(self, reference: ReferenceDataProvider, **columns: Any) -> None:
        try:
            self.config = ClassifierConfig(**columns)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e
        self.calculator = ZScoreCalculator(reference)

    def _value_column(self, indicator: Union[Indicator, str]) -> str:
        mapping = {
            Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: self.config.head_circ_col,
            Indicator.HEIGHT_FOR_AGE: self.config.height_col,
            Indicator.WEIGHT_FOR_AGE: self.config.weight_col,
            Indicator.WEIGHT_FOR_HEIGHT: self.config.weight_col,
            MUAC: self.config.muac_col,
        }
        column = mapping[indicator]
        if column is None:
            raise ValueError(f"No column configured for {_name(indicator)}")
        return column

    def _required_columns(self, indicator: Union[Indicator, str]) -> List[str]:
        columns = [self.config.age_col, self._value_column(indicator)]
        if indicator != MUAC:
            columns.append(self.config.sex_col)
        if indicator is Indicator.WEIGHT_FOR_HEIGHT:
            columns.append(self.config.height_col)
        return columns

    def classify(
        self, df: pd.DataFrame, indicators: List[Union[Indicator, str]]
    ) -> Dict[str, pd.DataFrame]:
        """
        Categorize all rows for each indicator.

        Args:
            df: Input DataFrame.
            indicators: Indicator members or names; "MUAC" selects MUAC-for-age.

        Returns:
            Dict keyed by indicator name of DataFrames with columns
            zscore (NaN for MUAC and failed rows), category and error.

        Raises:
            InvalidIndicatorError: If an indicator name is not recognized.
            ValueError: If a required column is missing or not configured.
        """
        results = {}
        for name in indicators:
            indicator = MUAC if name == MUAC else check_indicator(name)
            for col in self._required_columns(indicator):
                if col not in df.columns:
                    raise ValueError(f"Column '{col}' does not exist in DataFrame")

            # Collected by position so duplicate index labels keep their own rows
            zscores, categories, errors = [], [], []
            for idx, row in df.iterrows():
                error = None
                try:
                    z, category = self._classify_row(indicator, row)
                except AnthropometryError as e:
                    z, category = np.nan, None
                    error = f"{type(e).__name__}: {e}"
                    logger.warning(f"Row {idx} {_name(indicator)}: {e}")
                zscores.append(z)
                categories.append(category)
                errors.append(error)

            frame = pd.DataFrame(
                {
                    "zscore": np.array(zscores, dtype=np.float64),
                    "category": np.array(categories, dtype=object),
                    "error": np.array(errors, dtype=object),
                },
                index=df.index,
                columns=RESULT_COLUMNS,
            )

            key = _name(indicator)
            failed = int(frame["error"].notna().sum())
            if failed:
                logger.warning(f"{key}: {failed} of {len(df)} rows could not be categorized")
            results[key] = frame
        return results

    def _classify_row(self, indicator: Union[Indicator, str], row: pd.Series) -> tuple:
        age = _as_age(row[self.config.age_col])
        value = _as_float(row[self._value_column(indicator)])
        if indicator == MUAC:
            return np.nan, categorize_muac(value, age)

        gender = Gender.parse(row[self.config.sex_col])
        height = None
        if indicator is Indicator.WEIGHT_FOR_HEIGHT:
            height = _as_float(row[self.config.height_col])
        z = self.calculator.calculate(value, indicator, gender, age, height)
        return z, categorize_zscore(indicator, z)


def _name(indicator: Union[Indicator, str]) -> str:
    return indicator.value if isinstance(indicator, Indicator) else indicator


def _as_age(value: Any) -> Any:
    """Whole-number floats (from NaN-holding columns) become ints."""
    if isinstance(value, (float, np.floating)):
        if math.isnan(value):
            raise InvalidAgeError("Age in months is missing")
        if float(value).is_integer():
            return int(value)
    return value


def _as_float(value: Any) -> Any:
    if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(
        value, bool
    ):
        return float(value)
    return value
