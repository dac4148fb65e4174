"""
precipfreq.batch - Multi-station return level analysis
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import AnalysisConfig
from .core import Distribution, EstimationError, FitResult, ReturnLevelRow
from .distributions import DistributionFamily, get_family
from .engine import ReturnLevelTableBuilder
from .goodness_of_fit import GoodnessOfFitEstimator
from .stations import StationRecord, read_station_folder

logger = logging.getLogger(__name__)

DEFAULT_FAMILIES = (Distribution.GEV, Distribution.LP3)

FamilySpec = Union[str, Distribution, DistributionFamily]


@dataclass(frozen=True)
class EstimateOutcome:
    """Result or error of one (station, distribution) estimation."""

    station: str
    distribution: Distribution
    result: Optional[FitResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass
class BatchReport:
    """Outcomes of a batch run, in station order then distribution order."""

    outcomes: List[EstimateOutcome] = field(default_factory=list)
    read_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def successes(self) -> List[EstimateOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failures(self) -> List[EstimateOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def stations(self) -> List[str]:
        return list(dict.fromkeys(o.station for o in self.outcomes))

    def rows(self, builder: Optional[ReturnLevelTableBuilder] = None) -> List[ReturnLevelRow]:
        """Return-level rows of the successful estimations."""
        builder = builder or ReturnLevelTableBuilder()
        return [builder.row(o.station, o.result) for o in self.successes]

    def to_frame(self, builder: Optional[ReturnLevelTableBuilder] = None) -> pd.DataFrame:
        builder = builder or ReturnLevelTableBuilder()
        return builder.to_frame(self.rows(builder))

    def summary_table(self) -> pd.DataFrame:
        """One row per outcome with fit diagnostics or the error message."""
        rows = []
        for o in self.outcomes:
            row = {"Station": o.station, "Distribution": o.distribution.name}
            if o.ok:
                r = o.result
                row.update(
                    {
                        "n": r.n,
                        "KS": r.ks_statistic,
                        "p-value": r.p_value,
                        "Simulations": r.simulations_used,
                        "Failed refits": r.simulations_failed,
                    }
                )
                row.update(r.parameters.as_dict())
            else:
                row["Error"] = o.error
            rows.append(row)
        for name, message in self.read_errors.items():
            rows.append({"Station": name, "Distribution": None, "Error": message})
        return pd.DataFrame(rows)


def _station_rng(seed: int, family: DistributionFamily) -> np.random.Generator:
    """Independent stream per distribution, identical for every station."""
    return np.random.default_rng(np.random.SeedSequence(seed, spawn_key=(family.kind.value,)))


def estimate_station(
    record: StationRecord,
    families: Sequence[FamilySpec] = DEFAULT_FAMILIES,
    config: Optional[AnalysisConfig] = None,
) -> List[EstimateOutcome]:
    """
    Fit every family to one station, catching recoverable errors.

    Parameters
    ----------
    record : StationRecord
        Station series.
    families : sequence
        Distributions to fit, in output order.
    config : AnalysisConfig, optional
        Bootstrap settings and seed.

    Returns
    -------
    list of EstimateOutcome
        One outcome per family, in the order given.
    """
    config = config or AnalysisConfig()
    estimator = GoodnessOfFitEstimator.from_config(config)
    outcomes = []

    for kind in families:
        family = get_family(kind)
        try:
            result = estimator.estimate(record.values, family, rng=_station_rng(config.seed, family))
            outcomes.append(EstimateOutcome(record.code, family.kind, result=result))
            logger.info(
                "%s %s: KS=%.4f p=%.4f", record.code, family.name, result.ks_statistic, result.p_value
            )
        except EstimationError as e:
            logger.warning("%s %s skipped: %s", record.code, family.name, e)
            outcomes.append(EstimateOutcome(record.code, family.kind, error=str(e)))

    return outcomes


def run_stations(
    records: Sequence[StationRecord],
    families: Sequence[FamilySpec] = DEFAULT_FAMILIES,
    config: Optional[AnalysisConfig] = None,
) -> BatchReport:
    """
    Run the goodness-of-fit analysis for several stations.

    With ``config.workers > 1`` stations are processed in parallel worker
    processes; the outcome order is the input order either way.
    """
    config = config or AnalysisConfig()
    families = tuple(get_family(f).kind for f in families)
    per_station: Dict[int, List[EstimateOutcome]] = {}

    if config.workers > 1 and len(records) > 1:
        from concurrent.futures import ProcessPoolExecutor, as_completed

        with ProcessPoolExecutor(max_workers=config.workers) as executor:
            future_to_index = {
                executor.submit(estimate_station, record, families, config): i
                for i, record in enumerate(records)
            }
            for future in as_completed(future_to_index):
                i = future_to_index[future]
                try:
                    per_station[i] = future.result()
                except Exception as e:
                    logger.exception("Station %s failed", records[i].code)
                    per_station[i] = _failed_station(records[i], families, e)
    else:
        for i, record in enumerate(records):
            try:
                per_station[i] = estimate_station(record, families, config)
            except Exception as e:
                logger.exception("Station %s failed", record.code)
                per_station[i] = _failed_station(record, families, e)

    outcomes = [o for i in range(len(records)) for o in per_station[i]]
    return BatchReport(outcomes=outcomes)


def _failed_station(
    record: StationRecord, families: Sequence[Distribution], error: Exception
) -> List[EstimateOutcome]:
    return [EstimateOutcome(record.code, kind, error=str(error)) for kind in families]


def analyze_folder(
    folder: Union[str, Path],
    families: Sequence[FamilySpec] = DEFAULT_FAMILIES,
    config: Optional[AnalysisConfig] = None,
) -> BatchReport:
    """
    Read every station CSV in ``folder`` and run the analysis.

    Files that cannot be read are listed in ``BatchReport.read_errors``.
    """
    config = config or AnalysisConfig()
    records, read_errors = read_station_folder(
        folder,
        value_column=config.value_column,
        station_column=config.station_column,
        year_column=config.year_column,
    )
    report = run_stations(records, families, config)
    report.read_errors = read_errors
    return report
