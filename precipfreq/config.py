"""
Analysis configuration.

Holds the bootstrap, batch and CSV settings shared by the estimator, the
batch runner and the command-line interface.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from .core import STANDARD_RETURN_PERIODS

logger = logging.getLogger(__name__)

# Environment variables read by AnalysisConfig.from_env
_ENV_VARS = {
    "simulations": ("PRECIPFREQ_SIMULATIONS", int),
    "seed": ("PRECIPFREQ_SEED", int),
    "workers": ("PRECIPFREQ_WORKERS", int),
    "time_budget": ("PRECIPFREQ_TIME_BUDGET", float),
}


@dataclass
class AnalysisConfig:
    """Configuration for a return-level analysis run.

    Parameters
    ----------
    simulations : int
        Number of parametric-bootstrap refits per (station, distribution).
    seed : int
        Seed of the random generator created for each station.
    min_success_fraction : float
        Minimum share of bootstrap refits that must succeed for a p-value
        to be reported.
    time_budget : float or None
        Wall-clock limit in seconds for one bootstrap. None means no limit.
    workers : int
        Number of processes used to analyse stations. 1 runs sequentially.
    return_periods : tuple of float
        Return periods (years) in the output table.
    value_column : str
        CSV column holding the annual daily-maximum precipitation (mm).
    station_column : str
        CSV column holding the station code.
    year_column : str
        CSV column holding the year.
    """

    simulations: int = 10000
    seed: int = 123
    min_success_fraction: float = 0.5
    time_budget: Optional[float] = None
    workers: int = 1
    return_periods: Tuple[float, ...] = field(default=STANDARD_RETURN_PERIODS)
    value_column: str = "PMAX77"
    station_column: str = "INDICATIVO"
    year_column: str = "AÑO"

    def __post_init__(self) -> None:
        self.return_periods = tuple(self.return_periods)

        errors = []
        if self.simulations < 1:
            errors.append(f"simulations must be >= 1, got {self.simulations}")
        if not 0.0 < self.min_success_fraction <= 1.0:
            errors.append(
                f"min_success_fraction must be in (0, 1], got {self.min_success_fraction}"
            )
        if self.time_budget is not None and self.time_budget <= 0:
            errors.append(f"time_budget must be positive, got {self.time_budget}")
        if self.workers < 1:
            errors.append(f"workers must be >= 1, got {self.workers}")
        if not self.return_periods or any(T <= 1 for T in self.return_periods):
            errors.append("return_periods must be non-empty and all greater than 1")
        if errors:
            raise ValueError("Invalid analysis configuration: " + "; ".join(errors))

    @classmethod
    def from_env(cls, **overrides) -> "AnalysisConfig":
        """Build a configuration from ``PRECIPFREQ_*`` environment variables.

        Keyword arguments take precedence over the environment.
        """
        values = {}
        for name, (var, cast) in _ENV_VARS.items():
            raw = os.environ.get(var)
            if raw:
                try:
                    values[name] = cast(raw)
                except ValueError:
                    raise ValueError(f"{var}={raw!r} is not a valid {cast.__name__}") from None
                logger.debug("%s set from %s=%s", name, var, raw)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_overrides(self, **overrides) -> "AnalysisConfig":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
