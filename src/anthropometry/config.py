"""
Configuration constants for WHO anthropometry z-scores.
"""

import os
from pathlib import Path
from typing import Optional

# Package paths
PACKAGE_ROOT = Path(__file__).parent
PROJECT_ROOT = PACKAGE_ROOT.parent.parent
DATA_PACKAGE = "anthropometry.data"
REFERENCE_DATA_FILENAME = "who_reference.npz"

# Environment override for the reference archive (.npz file or CSV directory)
REFERENCE_DATA_ENV = "ANTHROPOMETRY_REFERENCE_DATA"

# Subject bounds
AGE_MONTHS_MIN = 0
AGE_MONTHS_MAX = 60
LENGTH_AGE_LIMIT_MONTHS = 24  # recumbent length up to and including 24 months
LENGTH_BOUNDS_CM = (45.0, 110.0)
HEIGHT_BOUNDS_CM = (65.0, 120.0)

# Row matching
MATCH_TOLERANCE_CM = 0.5
KEY_EQUALITY_ATOL = 1e-6

# Z-scores
ZSCORE_DECIMALS = 1
L_ZERO_THRESHOLD = 1e-6

# MUAC
MUAC_MIN_AGE_MONTHS = 6
MUAC_SAM_CM = 11.5
MUAC_MAM_CM = 12.5

# Reference table layout
REFERENCE_FIELDS = ("key", "L", "M", "S", "SD")
TABLE_NAMES = ("hcfa", "lhfa", "wfa", "wfl", "wfh")
SEX_SUFFIXES = ("female", "male")


def reference_data_path() -> Optional[Path]:
    """Return the reference data path from the environment, if one is set."""
    value = os.environ.get(REFERENCE_DATA_ENV, "").strip()
    return Path(value).expanduser() if value else None
