"""
WHO growth reference data.

Reference tables are NumPy structured arrays with fields
("key", "L", "M", "S", "SD"), stored one per table and sex under names such
as "wfa_female" or "wfl_male". Tables are frozen (non-writeable) once loaded,
so a single ReferenceData instance can be shared freely between callers.

The default instance is read lazily, exactly once, from the package resource
archive or from the path named by the ANTHROPOMETRY_REFERENCE_DATA
environment variable.
"""

from abc import ABC, abstractmethod
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Union
import logging
import threading

import numpy as np
import pandas as pd

from .config import (
    DATA_PACKAGE,
    REFERENCE_DATA_FILENAME,
    REFERENCE_FIELDS,
    SEX_SUFFIXES,
    TABLE_NAMES,
    reference_data_path,
)
from .exceptions import RowNotFoundError
from .indicators import Gender, Indicator
from .matching import ReferenceRow, match_row

logger = logging.getLogger(__name__)

REFERENCE_DTYPE = np.dtype([(name, "f8") for name in REFERENCE_FIELDS])


class ReferenceDataProvider(ABC):
    """
    Abstract source of reference rows.

    Subclasses supply the candidate rows for an indicator; lookup() applies
    the row matching rules on top of them.
    """

    @abstractmethod
    def rows(self, indicator: Indicator, gender: Gender, age_months: int) -> np.ndarray:
        """
        Candidate rows for an indicator and gender, in table order.

        Raises:
            RowNotFoundError: If the provider holds no such table.
        """
        pass

    def lookup(
        self,
        indicator: Indicator,
        gender: Gender,
        age_months: int,
        height_cm: Optional[float] = None,
    ) -> ReferenceRow:
        """Return the single reference row matching the subject."""
        return match_row(
            indicator, self.rows(indicator, gender, age_months), age_months, height_cm
        )


def table_key(table: str, gender: Gender) -> str:
    return f"{table}_{gender.suffix}"


def to_reference_array(data: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
    """
    Convert a DataFrame or structured array to the reference dtype.

    Missing parameter columns are filled with NaN; the key column is
    required.

    Raises:
        ValueError: If no 'key' column is present.
    """
    if isinstance(data, pd.DataFrame):
        columns = set(data.columns)
    else:
        columns = set(data.dtype.names or ())

    if "key" not in columns:
        raise ValueError("Reference table must have a 'key' column")

    out = np.full(len(data), np.nan, dtype=REFERENCE_DTYPE)
    for name in REFERENCE_FIELDS:
        if name in columns:
            out[name] = np.asarray(data[name], dtype=np.float64)
    return out


def validate_reference_tables(tables: Mapping[str, np.ndarray]) -> bool:
    """
    Check loaded reference tables for structural problems.

    Logs a warning for every issue found; does not raise.

    Returns:
        True if all tables pass, False otherwise.
    """
    if not tables:
        logger.warning("Loaded reference data is empty")
        return False

    ok = True
    expected = {f"{t}_{s}" for t in TABLE_NAMES for s in SEX_SUFFIXES}
    missing = sorted(expected - set(tables))
    if missing:
        logger.warning(f"Missing expected reference tables: {missing}")
        ok = False

    for name, table in tables.items():
        if table.dtype.names != REFERENCE_FIELDS:
            logger.warning(
                f"{name}: unexpected fields {table.dtype.names}, expected {REFERENCE_FIELDS}"
            )
            ok = False
            continue
        if table.size == 0:
            logger.warning(f"{name}: empty table")
            ok = False
            continue
        keys = table["key"]
        if np.any(~np.isfinite(keys)):
            logger.warning(f"{name}: non-finite keys")
            ok = False
        elif np.any(np.diff(keys) <= 0):
            logger.warning(f"{name}: keys not strictly increasing")
            ok = False
        if np.any(table["M"] <= 0) or np.any(np.isnan(table["M"])):
            logger.warning(f"{name}: missing or non-positive M values")
            ok = False
    return ok


class ReferenceData(ReferenceDataProvider):
    """
    Immutable, in-memory WHO reference tables.

    Args:
        tables: Mapping of table name ("wfa_female", "wfl_male", ...) to
            structured arrays or DataFrames with the reference columns.
    """

    def __init__(self, tables: Mapping[str, Union[np.ndarray, pd.DataFrame]]) -> None:
        frozen: Dict[str, np.ndarray] = {}
        for name, table in tables.items():
            array = to_reference_array(table)
            array.setflags(write=False)
            frozen[name] = array
        self._tables = MappingProxyType(frozen)
        validate_reference_tables(self._tables)

    @property
    def tables(self) -> Mapping[str, np.ndarray]:
        return self._tables

    def rows(self, indicator: Indicator, gender: Gender, age_months: int) -> np.ndarray:
        name = table_key(indicator.table_name(age_months), gender)
        try:
            return self._tables[name]
        except KeyError:
            raise RowNotFoundError(f"Reference table '{name}' not loaded") from None

    @classmethod
    def from_npz(cls, path: Union[str, Path]) -> "ReferenceData":
        """Load tables from a .npz archive written by scripts/download_data.py."""
        with np.load(path) as archive:
            tables = {
                key: archive[key]
                for key in archive.files
                if not key.startswith("metadata_")
            }
        return cls(tables)

    @classmethod
    def from_csv_dir(cls, directory: Union[str, Path]) -> "ReferenceData":
        """
        Load tables from a directory of CSV files named <table>_<sex>.csv.

        Raises:
            FileNotFoundError: If the directory holds no reference CSVs.
        """
        d = Path(directory)
        if not d.is_dir():
            raise FileNotFoundError(f"Reference data directory not found: {d}")
        tables = {path.stem: pd.read_csv(path) for path in sorted(d.glob("*.csv"))}
        if not tables:
            raise FileNotFoundError(f"No reference CSV files found in {d}")
        return cls(tables)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ReferenceData":
        """Load from a .npz file or a CSV directory."""
        p = Path(path)
        if p.is_dir():
            return cls.from_csv_dir(p)
        if not p.exists():
            raise FileNotFoundError(f"Reference data file not found: {p}")
        return cls.from_npz(p)


def _load_packaged_reference() -> ReferenceData:
    try:
        with resources.as_file(
            resources.files(DATA_PACKAGE).joinpath(REFERENCE_DATA_FILENAME)
        ) as path:
            return ReferenceData.from_path(path)
    except (FileNotFoundError, ModuleNotFoundError):
        raise FileNotFoundError(
            "WHO reference data not found. Run 'scripts/download_data.py' to build "
            f"{REFERENCE_DATA_FILENAME}, or set ANTHROPOMETRY_REFERENCE_DATA to an "
            ".npz file or CSV directory."
        ) from None


_default_reference: Optional[ReferenceData] = None
_default_lock = threading.Lock()


def load_default_reference() -> ReferenceData:
    """
    Return the process-wide reference data, loading it on first use.

    Loading happens at most once even with concurrent callers.
    """
    global _default_reference
    if _default_reference is None:
        with _default_lock:
            if _default_reference is None:
                override = reference_data_path()
                if override is not None:
                    logger.info(f"Loading WHO reference data from {override}")
                    _default_reference = ReferenceData.from_path(override)
                else:
                    _default_reference = _load_packaged_reference()
    return _default_reference


def reset_default_reference() -> None:
    """Forget the cached default reference data."""
    global _default_reference
    with _default_lock:
        _default_reference = None
