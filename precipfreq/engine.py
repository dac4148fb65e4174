"""
precipfreq.engine - Return level table construction

Turns goodness-of-fit results into return-level rows for the standard
return periods (5 to 500 years).
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

import numpy as np
import pandas as pd

from .core import STANDARD_RETURN_PERIODS, FitResult, ReturnLevelRow
from .distributions import get_family


def period_label(return_period: float) -> str:
    """Column label for a return period, e.g. 100 -> 'T100'."""
    T = float(return_period)
    return f"T{int(T)}" if T.is_integer() else f"T{T:g}"


class ReturnLevelTableBuilder:
    """
    Build return-level rows from fitted distributions.

    Examples
    --------
    >>> builder = ReturnLevelTableBuilder()
    >>> row = builder.row("8416", fit_result)
    >>> row.level(100)
    >>> builder.to_frame([row])
    """

    def __init__(self, return_periods: Sequence[float] = STANDARD_RETURN_PERIODS):
        if not return_periods:
            raise ValueError("At least one return period is required")
        self.return_periods = tuple(return_periods)

    def return_levels(self, result: FitResult) -> np.ndarray:
        """Return levels (data units) of a fit for the configured periods."""
        family = get_family(result.distribution)
        return np.asarray(family.return_levels(result.parameters, self.return_periods))

    def row(self, station: str, result: FitResult) -> ReturnLevelRow:
        """Build the table row of one (station, distribution) fit."""
        levels = self.return_levels(result)
        return ReturnLevelRow(
            station=str(station),
            distribution=result.distribution,
            return_levels={T: float(q) for T, q in zip(self.return_periods, levels)},
            p_value=result.p_value,
        )

    def rows(self, station: str, results: Iterable[FitResult]) -> List[ReturnLevelRow]:
        return [self.row(station, r) for r in results]

    def to_frame(self, rows: Iterable[ReturnLevelRow]) -> pd.DataFrame:
        """
        Tabulate rows with columns Code, distribution, T5 ... T500, KS_pvalue.
        """
        records = []
        for row in rows:
            record = {"Code": row.station, "distribution": row.distribution.name}
            for T in self.return_periods:
                record[period_label(T)] = row.return_levels.get(T, np.nan)
            record["KS_pvalue"] = np.nan if row.p_value is None else row.p_value
            records.append(record)

        columns = ["Code", "distribution"] + [period_label(T) for T in self.return_periods]
        columns.append("KS_pvalue")
        return pd.DataFrame(records, columns=columns)
