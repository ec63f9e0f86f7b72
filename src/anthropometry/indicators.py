"""
Anthropometric indicators and gender codes.

Each indicator carries the capability flags the calculator needs: which
z-score formula family applies, whether the subject's height takes part in
the computation, and which reference table holds its rows.
"""

from enum import Enum, IntEnum
from typing import Any

from .config import LENGTH_AGE_LIMIT_MONTHS
from .exceptions import InvalidGenderError


class ScoreFamily(str, Enum):
    """Z-score formula family."""

    NORMAL = "normal"  # (X - M) / SD
    LMS = "lms"  # ((X/M)^L - 1) / (L * S)


class Indicator(str, Enum):
    """The four WHO growth indicators."""

    HEAD_CIRCUMFERENCE_FOR_AGE = "HeadCircumferenceForAge"
    HEIGHT_FOR_AGE = "HeightForAge"
    WEIGHT_FOR_AGE = "WeightForAge"
    WEIGHT_FOR_HEIGHT = "WeightForHeight"

    @property
    def family(self) -> ScoreFamily:
        if self in (Indicator.HEAD_CIRCUMFERENCE_FOR_AGE, Indicator.HEIGHT_FOR_AGE):
            return ScoreFamily.NORMAL
        return ScoreFamily.LMS

    @property
    def requires_height(self) -> bool:
        """True when the subject's height selects the reference row."""
        return self is Indicator.WEIGHT_FOR_HEIGHT

    @property
    def keyed_by_length(self) -> bool:
        return self is Indicator.WEIGHT_FOR_HEIGHT

    @property
    def short_name(self) -> str:
        return _SHORT_NAMES[self]

    def table_name(self, age_months: int) -> str:
        """
        Name of the reference table holding this indicator's rows.

        Weight-for-height switches from the recumbent length table to the
        standing height table after 24 months.
        """
        if self is Indicator.WEIGHT_FOR_HEIGHT:
            return "wfl" if age_months <= LENGTH_AGE_LIMIT_MONTHS else "wfh"
        return _AGE_TABLES[self]


_SHORT_NAMES = {
    Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: "hcfa",
    Indicator.HEIGHT_FOR_AGE: "hfa",
    Indicator.WEIGHT_FOR_AGE: "wfa",
    Indicator.WEIGHT_FOR_HEIGHT: "wfh",
}

_AGE_TABLES = {
    Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: "hcfa",
    Indicator.HEIGHT_FOR_AGE: "lhfa",
    Indicator.WEIGHT_FOR_AGE: "wfa",
}


class Gender(IntEnum):
    """Gender codes used by the reference tables."""

    FEMALE = 1
    MALE = 2

    @property
    def suffix(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: Any) -> "Gender":
        """
        Map a loosely formatted gender value onto a member.

        Accepts members, the integer codes 1 and 2, and the strings
        'F'/'M'/'female'/'male' in any case.

        Raises:
            InvalidGenderError: If the value names neither gender.
        """
        if isinstance(value, Gender):
            return value
        if isinstance(value, str):
            text = value.strip().upper()
            if text in ("F", "FEMALE"):
                return cls.FEMALE
            if text in ("M", "MALE"):
                return cls.MALE
        elif not isinstance(value, bool):
            try:
                return cls(value)
            except (ValueError, TypeError):
                pass
        raise InvalidGenderError(
            f"gender must be 1 (female) or 2 (male). Gender found: {value!r}"
        )
