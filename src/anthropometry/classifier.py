"""
Public entry points for categorizing a child's anthropometric measurements.

Anthropometry binds a reference data provider to the z-score calculator and
the categorizer. Every categorize_* method returns a non-empty label or
raises an AnthropometryError; it never returns both or neither.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from .categories import categorize_muac, categorize_zscore
from .indicators import Indicator
from .reference import ReferenceDataProvider, load_default_reference
from .validation import check_indicator, check_measurement, validate_inputs
from .zscores import ZScoreCalculator, zscore_to_percentile


class GrowthAssessment(BaseModel):
    """Rounded z-score, percentile and category for one measurement."""

    model_config = ConfigDict(frozen=True)

    indicator: Indicator
    value: float
    zscore: float
    percentile: float
    category: str


class Anthropometry:
    """
    Categorizes measurements against WHO growth standards.

    Args:
        reference: Reference data provider. Defaults to the process-wide WHO
            tables, loaded on first use.

    Usage:
        anthro = Anthropometry(ReferenceData.from_npz("who_reference.npz"))
        anthro.categorize_weight_for_height(3.0, Gender.FEMALE, 50.0, 0)
    """

    def __init__(self, reference: Optional[ReferenceDataProvider] = None) -> None:
        self._reference = reference

    @property
    def reference(self) -> ReferenceDataProvider:
        if self._reference is None:
            return load_default_reference()
        return self._reference

    @property
    def calculator(self) -> ZScoreCalculator:
        return ZScoreCalculator(self.reference)

    def zscore(
        self,
        indicator: Any,
        value: float,
        gender: Any,
        age_months: int,
        height_cm: Optional[float] = None,
    ) -> float:
        """Rounded z-score for a measurement."""
        return self.calculator.calculate(value, indicator, gender, age_months, height_cm)

    def _categorize(
        self,
        indicator: Indicator,
        value: float,
        gender: Any,
        age_months: int,
        height_cm: Optional[float] = None,
    ) -> str:
        # All inputs are checked before any reference data is loaded
        validate_inputs(indicator, gender, age_months, height_cm)
        check_measurement(value)
        z = self.zscore(indicator, value, gender, age_months, height_cm)
        return categorize_zscore(indicator, z)

    def categorize_head_circumference_for_age(
        self, value_cm: float, gender: Any, age_months: int
    ) -> str:
        return self._categorize(
            Indicator.HEAD_CIRCUMFERENCE_FOR_AGE, value_cm, gender, age_months
        )

    def categorize_height_for_age(
        self, height_cm: float, gender: Any, age_months: int
    ) -> str:
        return self._categorize(Indicator.HEIGHT_FOR_AGE, height_cm, gender, age_months)

    def categorize_weight_for_age(
        self, weight_kg: float, gender: Any, age_months: int
    ) -> str:
        return self._categorize(Indicator.WEIGHT_FOR_AGE, weight_kg, gender, age_months)

    def categorize_weight_for_height(
        self, weight_kg: float, gender: Any, height_cm: float, age_months: int
    ) -> str:
        return self._categorize(
            Indicator.WEIGHT_FOR_HEIGHT, weight_kg, gender, age_months, height_cm
        )

    def categorize_muac_for_age(self, muac_cm: float, age_months: int) -> str:
        return categorize_muac(muac_cm, age_months)

    def assess(
        self,
        indicator: Any,
        value: float,
        gender: Any,
        age_months: int,
        height_cm: Optional[float] = None,
    ) -> GrowthAssessment:
        """
        Score and categorize a measurement in one call.

        Raises:
            AnthropometryError: On any validation, lookup or categorization failure.
        """
        ind = check_indicator(indicator)
        z = self.zscore(ind, value, gender, age_months, height_cm)
        return GrowthAssessment(
            indicator=ind,
            value=value,
            zscore=z,
            percentile=zscore_to_percentile(z),
            category=categorize_zscore(ind, z),
        )


_default = Anthropometry()


def categorize_head_circumference_for_age(
    value_cm: float, gender: Any, age_months: int
) -> str:
    return _default.categorize_head_circumference_for_age(value_cm, gender, age_months)


def categorize_height_for_age(height_cm: float, gender: Any, age_months: int) -> str:
    return _default.categorize_height_for_age(height_cm, gender, age_months)


def categorize_weight_for_age(weight_kg: float, gender: Any, age_months: int) -> str:
    return _default.categorize_weight_for_age(weight_kg, gender, age_months)


def categorize_weight_for_height(
    weight_kg: float, gender: Any, height_cm: float, age_months: int
) -> str:
    return _default.categorize_weight_for_height(weight_kg, gender, height_cm, age_months)


def categorize_muac_for_age(muac_cm: float, age_months: int) -> str:
    return _default.categorize_muac_for_age(muac_cm, age_months)
