import pytest
import pandas as pd

from anthropometry import Anthropometry, ReferenceData, reset_default_reference


def _table(rows: list[tuple]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=["key", "L", "M", "S", "SD"])


@pytest.fixture
def reference_tables() -> dict[str, pd.DataFrame]:
    """Small reference tables shaped like the WHO standards."""
    nan = float("nan")
    return {
        "hcfa_female": _table(
            [(0.0, 1.0, 34.0, nan, 1.0), (12.0, 1.0, 45.0, nan, 1.2)]
        ),
        "hcfa_male": _table([(0.0, 1.0, 34.5, nan, 1.25)]),
        "lhfa_female": _table(
            [
                (0.0, 1.0, 49.0, nan, 2.0),
                (24.0, 1.0, 86.0, nan, 3.0),
                (60.0, 1.0, 109.0, nan, 4.5),
            ]
        ),
        "lhfa_male": _table([(0.0, 1.0, 50.0, nan, 1.9)]),
        "wfa_female": _table(
            [
                (0.0, 0.3809, 3.2322, 0.14171, nan),
                (12.0, 1.0, 9.0, 0.1, nan),
                (24.0, 0.0, 12.0, 0.1, nan),
            ]
        ),
        "wfa_male": _table([(12.0, 1.0, 9.6, 0.1, nan)]),
        "wfl_female": _table(
            [
                (49.5, -0.3833, 3.1, 0.09, nan),
                (50.0, -0.3833, 3.2886, 0.09, nan),
                (50.5, -0.3833, 3.4, 0.09, nan),
            ]
        ),
        "wfl_male": _table([(60.0, 1.0, 6.0, 0.1, nan), (60.5, 1.0, 6.1, 0.1, nan)]),
        "wfh_female": _table([(65.0, 1.0, 7.0, 0.1, nan)]),
        "wfh_male": _table([(65.0, 1.0, 7.0, 0.1, nan), (90.0, 1.0, 13.0, 0.1, nan)]),
    }


@pytest.fixture
def reference(reference_tables: dict[str, pd.DataFrame]) -> ReferenceData:
    return ReferenceData(reference_tables)


@pytest.fixture
def anthro(reference: ReferenceData) -> Anthropometry:
    return Anthropometry(reference)


@pytest.fixture(autouse=True)
def _clean_default_reference(monkeypatch):
    """Keep the process-wide reference data out of individual tests."""
    monkeypatch.delenv("ANTHROPOMETRY_REFERENCE_DATA", raising=False)
    reset_default_reference()
    yield
    reset_default_reference()
