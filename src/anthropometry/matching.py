"""
Reference row matching.

Selects the single reference row that applies to a subject: by exact age in
months for the "for age" indicators, or by length for weight-for-height.
No interpolation between neighbouring rows is performed.
"""

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

import numpy as np

from .config import KEY_EQUALITY_ATOL, MATCH_TOLERANCE_CM
from .exceptions import (
    EmptyRowError,
    InvalidHeightError,
    MissingColumnError,
    RowNotFoundError,
)
from .indicators import Indicator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceRow:
    """
    One age or length bucket of a reference table.

    Attributes:
        key: Age in months, or length/height in cm for weight-for-height.
        values: Statistical parameters by column name (L, M, S, SD).
    """

    key: float
    values: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    @classmethod
    def from_record(cls, record: np.void) -> "ReferenceRow":
        """Build a row from a structured array record, dropping NaN columns."""
        names = record.dtype.names
        values = {}
        for name in names:
            if name == "key":
                continue
            value = float(record[name])
            if not math.isnan(value):
                values[name] = value
        return cls(key=float(record["key"]), values=values)

    def value(self, column: str) -> float:
        """Return a parameter by column name."""
        try:
            return self.values[column]
        except KeyError:
            raise MissingColumnError(
                f"Column '{column}' not present in reference row with key {self.key:g}"
            ) from None


def _match_age(keys: np.ndarray, age_months: int) -> Optional[int]:
    matches = np.flatnonzero(
        np.isclose(keys, age_months, rtol=0.0, atol=KEY_EQUALITY_ATOL)
    )
    return int(matches[0]) if matches.size else None


def _match_length(keys: np.ndarray, height_cm: float) -> Optional[int]:
    """
    Index of the row for a length, or None.

    An exact key wins. Otherwise the first row in table order with
    height - key < 0.5 is used; the comparison is one-sided, so any row
    longer than the subject also qualifies.
    """
    exact = np.flatnonzero(np.isclose(keys, height_cm, rtol=0.0, atol=KEY_EQUALITY_ATOL))
    if exact.size:
        return int(exact[0])
    # TODO: confirm whether the tolerance should be symmetric (abs difference)
    within = np.flatnonzero((height_cm - keys) < MATCH_TOLERANCE_CM)
    return int(within[0]) if within.size else None


def match_row(
    indicator: Indicator,
    rows: Optional[np.ndarray],
    age_months: int,
    height_cm: Optional[float] = None,
) -> ReferenceRow:
    """
    Select the reference row for a subject.

    Args:
        indicator: Indicator whose table the rows come from.
        rows: Structured array with a 'key' field, in table order.
        age_months: Validated age in months.
        height_cm: Validated height; required for length-keyed indicators.

    Returns:
        The matching ReferenceRow.

    Raises:
        EmptyRowError: If no candidate rows were supplied.
        RowNotFoundError: If no row matches the age or length.
    """
    if rows is None or len(rows) == 0:
        raise EmptyRowError(
            f"Empty reference rows. Indicator: {indicator.value}, "
            f"age in months: {age_months}, length: {height_cm}"
        )
    if rows.dtype.names is None or "key" not in rows.dtype.names:
        raise MissingColumnError("Reference rows have no 'key' column")

    keys = np.asarray(rows["key"], dtype=np.float64)
    if indicator.keyed_by_length:
        if height_cm is None:
            raise InvalidHeightError(f"{indicator.value} requires a height")
        index = _match_length(keys, height_cm)
        target = f"length {height_cm:g} cm"
    else:
        index = _match_age(keys, age_months)
        target = f"age {age_months} months"

    if index is None:
        raise RowNotFoundError(f"No {indicator.value} reference row for {target}")

    row = ReferenceRow.from_record(rows[index])
    logger.debug(f"Matched {indicator.short_name} row key={row.key:g} for {target}")
    return row
