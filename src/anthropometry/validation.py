"""
Input validation gates for z-score computation.

Each check raises a specific InputValidationError subclass and otherwise
returns the normalized value. Checks are independent and side-effect free;
validate_inputs() runs them in order and stops at the first failure.
"""

import math
from numbers import Integral, Real
from typing import Any, Optional

from .config import (
    AGE_MONTHS_MAX,
    AGE_MONTHS_MIN,
    HEIGHT_BOUNDS_CM,
    LENGTH_AGE_LIMIT_MONTHS,
    LENGTH_BOUNDS_CM,
)
from .exceptions import (
    InvalidAgeError,
    InvalidGenderError,
    InvalidHeightError,
    InvalidIndicatorError,
    InvalidMeasurementError,
)
from .indicators import Gender, Indicator


def check_indicator(indicator: Any) -> Indicator:
    """Return the Indicator for a member or its string value."""
    if isinstance(indicator, Indicator):
        return indicator
    try:
        return Indicator(indicator)
    except (ValueError, TypeError):
        raise InvalidIndicatorError(f"invalid indicator: {indicator!r}") from None


def check_gender(gender: Any) -> Gender:
    """Gender must be 1 (female) or 2 (male)."""
    if isinstance(gender, Integral) and not isinstance(gender, bool):
        if gender in (Gender.FEMALE, Gender.MALE):
            return Gender(int(gender))
    raise InvalidGenderError(
        f"gender must be 1 (for females) or 2 (for males). Gender found: {gender!r}"
    )


def check_age_months(age_months: Any) -> int:
    """Age must be a whole number of months between 0 and 60 inclusive."""
    if not isinstance(age_months, Integral) or isinstance(age_months, bool):
        raise InvalidAgeError(
            f"Age in months must be an integer. Current age: {age_months!r}"
        )
    if not AGE_MONTHS_MIN <= age_months <= AGE_MONTHS_MAX:
        raise InvalidAgeError(
            f"Age must be between {AGE_MONTHS_MIN} and {AGE_MONTHS_MAX} months. "
            f"Current age: {age_months}"
        )
    return int(age_months)


def height_bounds(age_months: int) -> tuple[float, float]:
    """Valid (min, max) length/height in cm for an already validated age."""
    if age_months <= LENGTH_AGE_LIMIT_MONTHS:
        return LENGTH_BOUNDS_CM
    return HEIGHT_BOUNDS_CM


def check_height(height_cm: Any, age_months: int) -> float:
    """
    Length must be 45-110 cm up to 24 months, height 65-120 cm for 25-60 months.

    Raises:
        InvalidHeightError: If the height is missing, not finite or out of bounds.
    """
    if (
        height_cm is None
        or isinstance(height_cm, bool)
        or not isinstance(height_cm, Real)
        or not math.isfinite(height_cm)
    ):
        raise InvalidHeightError(f"Height must be a finite number. Height: {height_cm!r}")
    lower, upper = height_bounds(age_months)
    if not lower <= height_cm <= upper:
        raise InvalidHeightError(
            f"For age {age_months} months, length/height must be between "
            f"{lower:g} and {upper:g} cm. Height: {height_cm:g}"
        )
    return float(height_cm)


def check_measurement(value: Any) -> float:
    """Raw measurements must be finite and strictly positive."""
    if (
        isinstance(value, bool)
        or not isinstance(value, Real)
        or not math.isfinite(value)
        or value <= 0
    ):
        raise InvalidMeasurementError(
            f"Measurement must be a positive finite number. Value: {value!r}"
        )
    return float(value)


def validate_inputs(
    indicator: Any,
    gender: Any,
    age_months: Any,
    height_cm: Optional[float] = None,
) -> tuple[Indicator, Gender, int, Optional[float]]:
    """
    Run every gate that applies to the indicator.

    The height gate only runs for indicators whose reference row is keyed by
    height; for the others any supplied height is ignored and None is
    returned in its place.

    Returns:
        Normalized (indicator, gender, age_months, height_cm).
    """
    ind = check_indicator(indicator)
    sex = check_gender(gender)
    age = check_age_months(age_months)
    height = check_height(height_cm, age) if ind.requires_height else None
    return ind, sex, age, height
