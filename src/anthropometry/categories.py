"""
Clinical categorization of z-scores and MUAC measurements.

Each indicator has an ordered table of contiguous threshold bands. A score
that falls in no band (for example MUAC of exactly 12.5 cm, which the WHO
cut-offs leave between MAM and Normal) raises CategorizationGapError rather
than being assigned to a neighbour.
"""

from typing import Any, Dict, List, Optional
import math

from pydantic import BaseModel, field_validator

from .config import MUAC_MAM_CM, MUAC_MIN_AGE_MONTHS, MUAC_SAM_CM
from .exceptions import CategorizationGapError
from .indicators import Indicator
from .validation import check_age_months, check_indicator, check_measurement

# Head circumference for age
HCFA_LESS_NEG3 = "Severe Microcephaly"
HCFA_NEG3_TO_NEG2 = "Microcephaly"
HCFA_NEG2_TO_3 = "Normal"
HCFA_GREATER_3 = "Macrocephaly (not related to nutritional status)"

# Height for age
HFA_LESS_NEG3 = "Severe Stunting"
HFA_NEG3_TO_NEG2 = "Moderate Stunting"
HFA_NEG2_TO_3 = "Normal"
HFA_GREATER_3 = "Extreme Tallness (not a nutrition related concern)"

# Weight for age
WFA_LESS_NEG3 = "Severe Underweight"
WFA_NEG3_TO_NEG2 = "Moderate Underweight"
WFA_NEG2_TO_1 = "Normal"
WFA_GREATER_1 = "Out of Range. See Weight For Length/Height"

# Weight for height
WFH_LESS_NEG3 = "Severe Acute Malnutrition (SAM)"
WFH_NEG3_TO_NEG2 = "Moderate Acute Malnutrition (MAM)"
WFH_NEG2_TO_1 = "Normal"
WFH_1_TO_2 = "At risk for overweight"
WFH_2_TO_3 = "Overweight"
WFH_GREATER_3 = "Obese"

# MUAC for age
MUAC_AGE_LESS_6 = (
    "Insufficient evidence to recommend a MUAC cutoff for children under 6 months of age"
)
MUAC_LESS_11P5 = "Severe Acute Malnutrition (SAM)"
MUAC_11P5_TO_12P5 = "Moderate Acute Malnutrition (MAM)"
MUAC_GREATER_12P5 = (
    "Normal (if other indicators indicate overweight/obese, they take precedence)"
)


class Band(BaseModel):
    """
    One category band. A bound of None is unbounded on that side.
    """

    label: str
    lower: Optional[float] = None
    upper: Optional[float] = None
    lower_inclusive: bool = True
    upper_inclusive: bool = False

    @field_validator("label")
    @classmethod
    def label_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Band label must be a non-empty string")
        return v

    @field_validator("upper", mode="after")
    @classmethod
    def lower_lt_upper(cls, v: Optional[float], info: Any) -> Optional[float]:
        """Validate that lower < upper."""
        lower = info.data.get("lower")
        if v is not None and lower is not None and lower >= v:
            raise ValueError("lower must be < upper")
        return v

    def contains(self, value: float) -> bool:
        if self.lower is not None:
            if value < self.lower or (value == self.lower and not self.lower_inclusive):
                return False
        if self.upper is not None:
            if value > self.upper or (value == self.upper and not self.upper_inclusive):
                return False
        return True


class BandTable(BaseModel):
    """Ordered, non-overlapping bands for one indicator."""

    name: str
    bands: List[Band]

    @field_validator("bands", mode="after")
    @classmethod
    def ordered_non_overlapping(cls, v: List[Band]) -> List[Band]:
        if not v:
            raise ValueError("At least one band required")
        for prev, nxt in zip(v, v[1:]):
            if prev.upper is None or nxt.lower is None:
                raise ValueError("Only the outermost bands may be unbounded")
            if prev.upper > nxt.lower:
                raise ValueError("Overlapping bands")
            if prev.upper == nxt.lower and prev.upper_inclusive and nxt.lower_inclusive:
                raise ValueError(f"Bands overlap at {prev.upper}")
        return v

    def categorize(self, value: float) -> str:
        """
        Label of the band containing value.

        Raises:
            CategorizationGapError: If value falls between bands or is NaN.
        """
        if not math.isnan(value):
            for band in self.bands:
                if band.contains(value):
                    return band.label
        raise CategorizationGapError(f"Invalid {self.name} value: {value}")


def _zscore_table(name: str, labels: List[str], cuts: List[float]) -> BandTable:
    # Severe band below the first cut, [-3, -2) next, everything above
    # closed on the upper side.
    bands = [Band(label=labels[0], upper=cuts[0], upper_inclusive=False)]
    bands.append(
        Band(label=labels[1], lower=cuts[0], upper=cuts[1], upper_inclusive=False)
    )
    for label, lower, upper in zip(labels[2:], cuts[1:], cuts[2:]):
        bands.append(
            Band(
                label=label,
                lower=lower,
                upper=upper,
                lower_inclusive=lower == cuts[1],
                upper_inclusive=True,
            )
        )
    bands.append(Band(label=labels[-1], lower=cuts[-1], lower_inclusive=False))
    return BandTable(name=name, bands=bands)


ZSCORE_BANDS: Dict[Indicator, BandTable] = {
    Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: _zscore_table(
        "head circumference for age z-score",
        [HCFA_LESS_NEG3, HCFA_NEG3_TO_NEG2, HCFA_NEG2_TO_3, HCFA_GREATER_3],
        [-3.0, -2.0, 3.0],
    ),
    Indicator.HEIGHT_FOR_AGE: _zscore_table(
        "height for age z-score",
        [HFA_LESS_NEG3, HFA_NEG3_TO_NEG2, HFA_NEG2_TO_3, HFA_GREATER_3],
        [-3.0, -2.0, 3.0],
    ),
    Indicator.WEIGHT_FOR_AGE: _zscore_table(
        "weight for age z-score",
        [WFA_LESS_NEG3, WFA_NEG3_TO_NEG2, WFA_NEG2_TO_1, WFA_GREATER_1],
        [-3.0, -2.0, 1.0],
    ),
    Indicator.WEIGHT_FOR_HEIGHT: _zscore_table(
        "weight for height z-score",
        [
            WFH_LESS_NEG3,
            WFH_NEG3_TO_NEG2,
            WFH_NEG2_TO_1,
            WFH_1_TO_2,
            WFH_2_TO_3,
            WFH_GREATER_3,
        ],
        [-3.0, -2.0, 1.0, 2.0, 3.0],
    ),
}

MUAC_BANDS = BandTable(
    name="mid upper arm circumference",
    bands=[
        Band(label=MUAC_LESS_11P5, upper=MUAC_SAM_CM),
        Band(label=MUAC_11P5_TO_12P5, lower=MUAC_SAM_CM, upper=MUAC_MAM_CM),
        # 12.5 itself is in neither band
        Band(label=MUAC_GREATER_12P5, lower=MUAC_MAM_CM, lower_inclusive=False),
    ],
)


def categorize_zscore(indicator: Any, zscore: float) -> str:
    """
    Map a rounded z-score to the indicator's category label.

    Raises:
        InvalidIndicatorError: If the indicator is not recognized.
        CategorizationGapError: If the score falls in no band.
    """
    return ZSCORE_BANDS[check_indicator(indicator)].categorize(zscore)


def categorize_muac(muac_cm: float, age_months: int) -> str:
    """
    Categorize a raw mid upper arm circumference (cm).

    MUAC cut-offs only apply from 6 months of age; younger children get the
    insufficient-evidence label regardless of the measurement.

    Raises:
        InvalidAgeError: If the age is outside 0-60 months.
        InvalidMeasurementError: If the measurement is not a positive finite number.
        CategorizationGapError: If the measurement falls in no band.
    """
    age_months = check_age_months(age_months)
    if age_months < MUAC_MIN_AGE_MONTHS:
        return MUAC_AGE_LESS_6
    return MUAC_BANDS.categorize(check_measurement(muac_cm))
