"""Shared fixtures for precipfreq tests."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from precipfreq.config import AnalysisConfig

# Annual maximum daily precipitation (mm) of a coastal station, 1977-2016
PMAX_VALUES = [
    62.4, 118.0, 45.2, 87.5, 140.3, 55.0, 73.8, 96.1, 51.7, 210.5,
    68.9, 80.2, 47.3, 131.6, 59.4, 102.8, 77.0, 64.5, 156.2, 90.7,
    53.1, 71.6, 124.9, 58.3, 85.4, 49.8, 110.2, 66.7, 95.3, 172.4,
    60.1, 79.9, 57.6, 135.8, 69.2, 100.5, 83.3, 48.9, 92.6, 74.1,
]
PMAX_YEARS = list(range(1977, 2017))


@pytest.fixture
def pmax_sample():
    """Forty annual maxima in mm."""
    return np.array(PMAX_VALUES)


@pytest.fixture
def ten_to_hundred():
    """The sample 10, 20, ..., 100."""
    return np.arange(10.0, 101.0, 10.0)


@pytest.fixture
def fast_config():
    """Analysis configuration with a small bootstrap."""
    return AnalysisConfig(simulations=30, seed=123)


def write_station_csv(path, code, values, years=None):
    """Write a station file with the AEMET column layout."""
    years = years if years is not None else list(range(1980, 1980 + len(values)))
    df = pd.DataFrame({"INDICATIVO": code, "AÑO": years, "PMAX77": values})
    df.to_csv(path, index=False, encoding="utf-8")
    return path


@pytest.fixture
def station_csv(tmp_path):
    """One station file, code 8416, with one missing value."""
    values = list(PMAX_VALUES)
    values[3] = None
    return write_station_csv(tmp_path / "CVppmax24_8416_anual.csv", "8416", values, PMAX_YEARS)


@pytest.fixture
def station_folder(tmp_path):
    """Folder with two valid station files and one file without PMAX77."""
    folder = tmp_path / "stations"
    folder.mkdir()
    write_station_csv(folder / "a_8416.csv", "8416", PMAX_VALUES, PMAX_YEARS)
    write_station_csv(folder / "b_8058X.csv", "8058X", [v * 0.8 + 5 for v in PMAX_VALUES])
    pd.DataFrame({"INDICATIVO": ["9999"], "PRECIP": [10.0]}).to_csv(
        folder / "c_broken.csv", index=False
    )
    (folder / "notes.txt").write_text("not a station file")
    return folder
