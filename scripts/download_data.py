#!/usr/bin/env python3
"""
Download and process WHO child growth standards into NumPy .npz format.

This script downloads the WHO growth standard tables (as republished by the
CDC), parses the CSVs, and saves them as compressed structured arrays for the
anthropometry package's ReferenceData loader.

The CDC-hosted WHO files cover birth to 24 months (and 45-110 cm for weight
for length). Tables for 25-60 months and the 65-120 cm weight-for-height table
are read from local WHO files passed with --from-dir, named <table>_<sex>.csv
or <table>_<sex>.txt (comma or tab separated), e.g. wfh_female.txt.

Every array has fields ("key", "L", "M", "S", "SD"). For the normally
distributed indicators (L == 1) a missing SD column is derived as M * S.
"""

import argparse
import hashlib
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import requests
from requests.adapters import HTTPAdapter
from tqdm import tqdm
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

FIELDS = ("key", "L", "M", "S", "SD")
REFERENCE_DTYPE = np.dtype([(name, "f8") for name in FIELDS])
KEY_COLUMNS = ("Month", "Length", "Height")
TABLE_NAMES = ("hcfa", "lhfa", "wfa", "wfl", "wfh")

DEFAULT_OUTPUT = (
    Path(__file__).parent.parent / "src" / "anthropometry" / "data" / "who_reference.npz"
)

# WHO growth standards republished by the CDC, 0-24 months
DATA_SOURCES: List[Tuple[str, str]] = [
    (
        "wfa_male",
        "https://ftp.cdc.gov/pub/Health_Statistics/NCHS/growthcharts/WHO-Boys-Weight-for-age-Percentiles.csv",
    ),
    (
        "lhfa_male",
        "https://ftp.cdc.gov/pub/Health_Statistics/NCHS/growthcharts/WHO-Boys-Length-for-age-Percentiles.csv",
    ),
    (
        "hcfa_male",
        "https://ftp.cdc.gov/pub/Health_Statistics/NCHS/growthcharts/WHO-Boys-Head-Circumference-for-age-Percentiles.csv",
    ),
    (
        "wfl_male",
        "https://ftp.cdc.gov/pub/Health_Statistics/NCHS/growthcharts/WHO-Boys-Weight-for-length-Percentiles.csv",
    ),
    (
        "wfa_female",
        "https://ftp.cdc.gov/pub/Health_Statistics/NCHS/growthcharts/WHO-Girls-Weight-for-age%20Percentiles.csv",
    ),
    (
        "lhfa_female",
        "https://ftp.cdc.gov/pub/Health_Statistics/NCHS/growthcharts/WHO-Girls-Length-for-age-Percentiles.csv",
    ),
    (
        "hcfa_female",
        "https://ftp.cdc.gov/pub/Health_Statistics/NCHS/growthcharts/WHO-Girls-Head-Circumference-for-age-Percentiles.csv",
    ),
    (
        "wfl_female",
        "https://ftp.cdc.gov/pub/Health_Statistics/NCHS/growthcharts/WHO-Girls-Weight-for-length-Percentiles.csv",
    ),
]


def download_csv(url: str, timeout: int = 30) -> str:
    """Download CSV content from URL with retries."""
    try:
        retry_strategy = Retry(
            total=3,
            status_forcelist=[429, 500, 502, 503, 504],
            backoff_factor=2,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)

        with requests.Session() as session:
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            response = session.get(url, timeout=timeout, verify=True)
            response.raise_for_status()
            return response.text
    except Exception as e:
        logger.error(f"Failed to download {url}: {e}")
        raise


def compute_sha256(content: str) -> str:
    """Compute SHA-256 hash of content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def _clean_header(columns: List[str]) -> List[str]:
    return [
        col.replace("\ufeff", "").strip().replace(" ", "_").replace("(", "").replace(")", "")
        for col in columns
    ]


def parse_who_table(content: str, name: str) -> np.ndarray:
    """
    Parse a WHO table (comma or tab separated) into a reference array.

    Only the key column (Month, Length or Height) and L, M, S, SD are kept.

    Raises:
        ValueError: If the key column or M is missing.
    """
    lines = [line for line in content.strip().splitlines() if line.strip()]
    if not lines:
        raise ValueError(f"{name}: empty table")
    sep = "\t" if "\t" in lines[0] else ","
    header = _clean_header(lines[0].split(sep))

    key_col = next((col for col in KEY_COLUMNS if col in header), None)
    if key_col is None:
        raise ValueError(f"{name}: no key column, expected one of {KEY_COLUMNS}")
    if "M" not in header:
        raise ValueError(f"{name}: missing M column")

    wanted = {"key": key_col, "L": "L", "M": "M", "S": "S", "SD": "SD"}
    for col in wanted.values():
        if col not in header:
            logger.warning(f"Column {col} not found in {name} header")

    rows = []
    for line in lines[1:]:
        values = line.split(sep)
        row = []
        for field in FIELDS:
            col = wanted[field]
            pos = header.index(col) if col in header else None
            val = values[pos].strip() if pos is not None and pos < len(values) else ""
            try:
                row.append(float(val) if val else np.nan)
            except ValueError:
                row.append(np.nan)
        rows.append(tuple(row))

    table = np.array(rows, dtype=REFERENCE_DTYPE)

    # Normally distributed tables carry L == 1; SD follows from M * S
    derive = np.isnan(table["SD"]) & np.isclose(table["L"], 1.0)
    table["SD"][derive] = table["M"][derive] * table["S"][derive]

    validate_array(table, name)
    return table


def validate_array(arr: np.ndarray, array_name: str) -> None:
    """Validate a parsed reference array for common issues."""
    if arr.size == 0:
        logger.warning(f"{array_name}: empty array")
        return

    keys = arr["key"]
    if not np.all(np.isfinite(keys)):
        raise ValueError(f"{array_name}: non-finite key values")
    if len(keys) > 1 and not np.all(keys[:-1] < keys[1:]):
        raise ValueError(f"{array_name}: key not strictly increasing")

    for col in ("M", "S", "SD"):
        values = arr[col]
        if np.any((values <= 0) & ~np.isnan(values)):
            raise ValueError(f"{array_name}: non-positive {col} values")


def merge_tables(base: np.ndarray, extra: np.ndarray) -> np.ndarray:
    """Combine two tables, preferring rows of extra on duplicate keys."""
    keep = ~np.isin(base["key"], extra["key"])
    merged = np.concatenate([base[keep], extra])
    return merged[np.argsort(merged["key"], kind="stable")]


def load_local_tables(directory: Path) -> Dict[str, np.ndarray]:
    """Parse <table>_<sex>.csv/.txt files from a directory."""
    tables = {}
    for path in sorted(directory.iterdir()):
        if path.suffix not in (".csv", ".txt"):
            continue
        table, _, sex = path.stem.partition("_")
        if table not in TABLE_NAMES or sex not in ("female", "male"):
            logger.warning(f"Skipping unrecognised reference file {path.name}")
            continue
        tables[path.stem] = parse_who_table(path.read_text(), path.stem)
    return tables


def save_npz(data: Dict[str, np.ndarray], output_path: Path) -> None:
    """Save data dictionary as compressed NumPy .npz file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(output_path, **data)
    logger.info(f"Saved {len(data)} arrays to {output_path}")


def main(
    strict_mode: bool = False,
    from_dir: Optional[Path] = None,
    output_path: Path = DEFAULT_OUTPUT,
    offline: bool = False,
) -> Dict[str, np.ndarray]:
    """Download, merge and save all reference tables."""
    all_data: Dict[str, np.ndarray] = {}
    failed_sources = []

    if not offline:
        with tqdm(total=len(DATA_SOURCES), desc="Fetching WHO tables") as pbar:
            for name, url in DATA_SOURCES:
                pbar.set_postfix({"table": name})
                pbar.update(1)
                try:
                    content = download_csv(url)
                    all_data[name] = parse_who_table(content, name)
                    all_data[f"metadata_{name}_url"] = np.array([url], dtype="U256")
                    all_data[f"metadata_{name}_hash"] = np.array(
                        [compute_sha256(content)], dtype="U256"
                    )
                except Exception as e:
                    failed_sources.append(name)
                    logger.error(f"Failed to process {name}: {e}")

    if strict_mode and failed_sources:
        raise RuntimeError(
            f"Strict mode failed: Unable to process sources: {', '.join(failed_sources)}"
        )

    if from_dir is not None:
        for name, table in load_local_tables(from_dir).items():
            all_data[name] = merge_tables(all_data[name], table) if name in all_data else table
            logger.info(f"Loaded {name} from {from_dir} ({table.size} rows)")

    tables = [key for key in all_data if not key.startswith("metadata_")]
    if not tables:
        raise RuntimeError("No reference tables were loaded")
    missing = sorted(
        f"{t}_{s}" for t in TABLE_NAMES for s in ("female", "male")
        if f"{t}_{s}" not in all_data
    )
    if missing:
        logger.warning(f"Reference tables not available: {missing}")

    save_npz(all_data, output_path)
    return all_data


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
    )
    parser = argparse.ArgumentParser(
        description="Download WHO child growth standard tables and build the reference archive."
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Strict mode: exit on any download error instead of continuing with warnings",
    )
    parser.add_argument(
        "--from-dir",
        type=Path,
        help="Directory of local WHO tables (<table>_<sex>.csv/.txt) to merge in",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT,
        help=f"Output .npz path (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip downloads and build only from --from-dir",
    )
    args = parser.parse_args()

    main(
        strict_mode=args.strict,
        from_dir=args.from_dir,
        output_path=args.output,
        offline=args.offline,
    )
