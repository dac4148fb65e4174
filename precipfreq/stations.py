"""
precipfreq.stations - Weather station data loading

Each station is stored as one CSV file with one row per year. The default
column names are those of the AEMET annual maximum series:

- INDICATIVO: climatological station code
- AÑO: year
- PMAX77: maximum daily precipitation of the year (mm)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_DMS_PATTERN = re.compile(r"^\s*(\d{6,7})\s*([NSEW])\s*$", re.IGNORECASE)


@dataclass
class StationRecord:
    """Annual maximum series of one station.

    ``values`` has missing entries removed; ``years`` (when available) is
    aligned with ``values``.
    """

    code: str
    values: np.ndarray
    years: Optional[np.ndarray] = None
    source: Optional[Path] = None

    @property
    def n(self) -> int:
        return len(self.values)

    def to_frame(self) -> pd.DataFrame:
        data = {"value": self.values}
        if self.years is not None:
            data = {"year": self.years, **data}
        return pd.DataFrame(data)


def read_station_csv(
    path: PathLike,
    value_column: str = "PMAX77",
    station_column: str = "INDICATIVO",
    year_column: Optional[str] = "AÑO",
) -> StationRecord:
    """
    Read the annual maximum series of one station.

    Parameters
    ----------
    path : str or Path
        CSV file.
    value_column : str
        Column with the precipitation values.
    station_column : str
        Column with the station code. The file stem is used when absent.
    year_column : str, optional
        Column with the years, if present.

    Returns
    -------
    StationRecord

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the value column is missing.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Station file not found: {path}")

    df = pd.read_csv(path, dtype=str)

    if value_column not in df.columns:
        raise ValueError(
            f"Column {value_column!r} not found in {path.name}. Available: {list(df.columns)}"
        )

    values = pd.to_numeric(df[value_column], errors="coerce")
    mask = values.notna().to_numpy()

    if station_column in df.columns and df[station_column].notna().any():
        code = str(df[station_column].dropna().iloc[0]).strip()
    else:
        code = path.stem

    years = None
    if year_column and year_column in df.columns:
        years = pd.to_numeric(df[year_column], errors="coerce").to_numpy()[mask]

    n_missing = int((~mask).sum())
    if n_missing:
        logger.debug("%s: dropped %d missing values", path.name, n_missing)

    return StationRecord(
        code=code,
        values=values.to_numpy(dtype=float)[mask],
        years=years,
        source=path,
    )


def list_station_files(folder: PathLike) -> List[Path]:
    """Return the CSV files in ``folder`` in alphabetical order."""
    folder = Path(folder)
    if not folder.is_dir():
        raise FileNotFoundError(f"Station folder not found: {folder}")
    return sorted(p for p in folder.iterdir() if p.is_file() and p.suffix.lower() == ".csv")


def read_station_folder(
    folder: PathLike,
    value_column: str = "PMAX77",
    station_column: str = "INDICATIVO",
    year_column: Optional[str] = "AÑO",
) -> Tuple[List[StationRecord], Dict[str, str]]:
    """
    Read every station CSV in a folder.

    Returns
    -------
    tuple
        (records, errors) where:
        - records: list of StationRecord in file order
        - errors: dict mapping file name to error message
    """
    records: List[StationRecord] = []
    errors: Dict[str, str] = {}

    for path in list_station_files(folder):
        try:
            records.append(read_station_csv(path, value_column, station_column, year_column))
        except (OSError, ValueError, pd.errors.ParserError) as e:
            logger.error("Error while reading %s: %s", path.name, e)
            errors[path.name] = str(e)

    logger.info("Read %d station files from %s (%d errors)", len(records), folder, len(errors))
    return records, errors


def dms_to_decimal(coord: str) -> float:
    """
    Convert a packed DDMMSS[H] coordinate into signed decimal degrees.

    The first two digits are degrees, then minutes and seconds; a trailing
    hemisphere letter W or S makes the result negative. A seven-digit form
    (DDDMMSS) is accepted for longitudes beyond 99 degrees.

    >>> round(dms_to_decimal("392829N"), 6)
    39.474722
    >>> round(dms_to_decimal("002225W"), 6)
    -0.373611
    """
    match = _DMS_PATTERN.match(str(coord))
    if match is None:
        raise ValueError(f"Invalid DMS coordinate: {coord!r}")
    digits, hemisphere = match.groups()
    deg_digits = len(digits) - 4

    degrees = int(digits[:deg_digits])
    minutes = int(digits[deg_digits : deg_digits + 2])
    seconds = int(digits[deg_digits + 2 :])
    if minutes >= 60 or seconds >= 60:
        raise ValueError(f"Invalid minutes/seconds in coordinate: {coord!r}")

    value = degrees + minutes / 60 + seconds / 3600
    if hemisphere.upper() in ("W", "S"):
        value = -value
    return value
