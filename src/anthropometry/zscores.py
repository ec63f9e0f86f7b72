"""
Z-Score Calculation for WHO Growth Indicators

Head circumference-for-age and height-for-age are normally distributed and
scored as (X - M) / SD. Weight-for-age and weight-for-height are skewed and
scored with the LMS method (Cole, 1990):

    z = ((X/M)^L - 1) / (L * S)    for L != 0
    z = ln(X/M) / S                for L == 0

Scores are rounded once, to one decimal place, before categorization.
"""

from typing import Optional
import logging
import math

import numpy as np
from numba import jit
from scipy import stats

from .config import L_ZERO_THRESHOLD, ZSCORE_DECIMALS
from .exceptions import InvalidIndicatorError, ReferenceDataError
from .indicators import Gender, Indicator, ScoreFamily
from .reference import ReferenceDataProvider
from .validation import check_measurement, validate_inputs

logger = logging.getLogger(__name__)


@jit(nopython=True, cache=True)
def normal_zscore(X: np.ndarray, M: np.ndarray, SD: np.ndarray) -> np.ndarray:
    """
    Z-scores for normally distributed measures over 1-D arrays.

    Args:
        X: Observed values (cm)
        M: Reference means
        SD: Reference standard deviations

    Returns:
        (X - M) / SD, NaN where SD <= 0 or any input is not finite
    """
    z = np.full(X.shape[0], np.nan)
    for i in range(X.shape[0]):
        x, m, sd = X[i], M[i], SD[i]
        if np.isfinite(x) and np.isfinite(m) and np.isfinite(sd) and sd > 0:
            z[i] = (x - m) / sd
    return z


@jit(nopython=True, cache=True)
def lms_zscore(X: np.ndarray, L: np.ndarray, M: np.ndarray, S: np.ndarray) -> np.ndarray:
    """
    LMS z-scores (Box-Cox power transform) over 1-D arrays.

    Args:
        X: Observed values (kg)
        L: Box-Cox power
        M: Median
        S: Coefficient of variation

    Returns:
        Z-scores, NaN where X, M or S are not positive or any input is not finite
    """
    z = np.full(X.shape[0], np.nan)
    for i in range(X.shape[0]):
        x, l, m, s = X[i], L[i], M[i], S[i]
        if not (np.isfinite(x) and np.isfinite(l) and np.isfinite(m) and np.isfinite(s)):
            continue
        if x <= 0 or m <= 0 or s <= 0:
            continue
        if abs(l) < L_ZERO_THRESHOLD:
            z[i] = np.log(x / m) / s
        else:
            z[i] = ((x / m) ** l - 1.0) / (l * s)
    return z


def round_zscore(z: float, decimals: int = ZSCORE_DECIMALS) -> float:
    """
    Round to the nearest tenth, ties away from zero.

    Idempotent: rounding an already rounded score returns it unchanged.
    """
    if not math.isfinite(z):
        return z
    factor = 10.0**decimals
    scaled = abs(z) * factor
    whole = math.floor(scaled)
    if scaled - whole >= 0.5:
        whole += 1
    return math.copysign(whole / factor, z)


def zscore_to_percentile(z: float) -> float:
    """Percentile (0-100) of a z-score under the standard normal distribution."""
    return float(stats.norm.cdf(z) * 100.0)


class ZScoreCalculator:
    """
    Computes rounded z-scores against an injected reference data provider.

    Usage:
        calculator = ZScoreCalculator(ReferenceData.from_npz("who_reference.npz"))
        z = calculator.calculate(3.0, Indicator.WEIGHT_FOR_HEIGHT, Gender.FEMALE, 0, 50.0)
    """

    def __init__(self, reference: ReferenceDataProvider) -> None:
        self.reference = reference

    def raw_zscore(
        self,
        value: float,
        indicator: Indicator,
        gender: Gender,
        age_months: int,
        height_cm: Optional[float] = None,
    ) -> float:
        """
        Unrounded z-score for a validated measurement.

        Raises:
            InputValidationError: If any input fails validation.
            ReferenceDataError: If no usable reference row exists.
        """
        indicator, gender, age_months, height_cm = validate_inputs(
            indicator, gender, age_months, height_cm
        )
        x = check_measurement(value)

        row = self.reference.lookup(indicator, gender, age_months, height_cm)
        if indicator.family is ScoreFamily.NORMAL:
            z = normal_zscore(
                np.array([x]), np.array([row.value("M")]), np.array([row.value("SD")])
            )[0]
        elif indicator.family is ScoreFamily.LMS:
            z = lms_zscore(
                np.array([x]),
                np.array([row.value("L")]),
                np.array([row.value("M")]),
                np.array([row.value("S")]),
            )[0]
        else:
            raise InvalidIndicatorError(f"invalid indicator: {indicator!r}")

        if not math.isfinite(z):
            raise ReferenceDataError(
                f"Reference row {row.key:g} for {indicator.value} has unusable "
                f"parameters: {dict(row.values)}"
            )
        return float(z)

    def calculate(
        self,
        value: float,
        indicator: Indicator,
        gender: Gender,
        age_months: int,
        height_cm: Optional[float] = None,
    ) -> float:
        """Z-score rounded to one decimal place."""
        z = round_zscore(self.raw_zscore(value, indicator, gender, age_months, height_cm))
        logger.debug(
            f"{Indicator(indicator).short_name} z-score {z} for value={value}, "
            f"gender={gender}, age={age_months}, height={height_cm}"
        )
        return z
