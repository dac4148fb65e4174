"""
precipfreq.core - Core data structures and utility functions
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

# Return periods (years) reported in the return level table
STANDARD_RETURN_PERIODS: Tuple[int, ...] = (5, 10, 25, 50, 100, 200, 500)


class Distribution(Enum):
    """Probability distribution fitted to the annual maxima."""

    GEV = auto()  # Generalized Extreme Value
    LP3 = auto()  # log-Pearson Type III

    @classmethod
    def parse(cls, value: "str | Distribution") -> "Distribution":
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise ValueError(
                f"Unknown distribution {value!r}. Available: {[d.name for d in cls]}"
            ) from None


class EstimationError(Exception):
    """Base class for recoverable fitting and goodness-of-fit errors."""


class InvalidInputError(EstimationError):
    """Raised when a sample cannot be used with the requested distribution."""


class FitFailureError(EstimationError):
    """Raised when L-moment inversion or the bootstrap cannot produce a result."""


@dataclass(frozen=True)
class LMoments:
    """Sample L-moments and L-moment ratios.

    Attributes
    ----------
    l1 : float
        L-location (sample mean).
    l2 : float
        L-scale.
    t3 : float
        L-skewness (NaN when n < 3).
    t4 : float
        L-kurtosis (NaN when n < 4).
    n : int
        Sample size.
    """

    l1: float
    l2: float
    t3: float
    t4: float
    n: int

    @property
    def l3(self) -> float:
        return self.t3 * self.l2

    @property
    def l4(self) -> float:
        return self.t4 * self.l2


def sample_lmoments(values: Sequence[float]) -> LMoments:
    """
    Compute unbiased sample L-moments from probability weighted moments.

    Hosking (1990). Ratios that need more points than available are NaN.
    """
    x = np.sort(np.asarray(values, dtype=float))
    n = len(x)
    if n == 0:
        raise InvalidInputError("Cannot compute L-moments of an empty sample")

    i = np.arange(n, dtype=float)
    b0 = x.mean()
    b1 = b2 = b3 = np.nan
    if n >= 2:
        b1 = np.sum(i / (n - 1) * x) / n
    if n >= 3:
        b2 = np.sum(i * (i - 1) / ((n - 1) * (n - 2)) * x) / n
    if n >= 4:
        b3 = np.sum(i * (i - 1) * (i - 2) / ((n - 1) * (n - 2) * (n - 3)) * x) / n

    l1 = b0
    l2 = 2 * b1 - b0
    l3 = 6 * b2 - 6 * b1 + b0
    l4 = 20 * b3 - 30 * b2 + 12 * b1 - b0

    # A constant sample has l2 = 0 up to rounding
    if n >= 2 and l2 > 0 and x[-1] > x[0]:
        t3 = l3 / l2
        t4 = l4 / l2
    else:
        t3 = t4 = np.nan

    return LMoments(l1=float(l1), l2=float(l2), t3=float(t3), t4=float(t4), n=n)


@dataclass(frozen=True)
class FitResult:
    """Result of fitting one distribution to one sample.

    ``p_value`` is the parametric-bootstrap estimate of the probability of a
    KS statistic at least as large as ``ks_statistic`` under the fitted model.
    """

    distribution: Distribution
    parameters: Any
    ks_statistic: float
    p_value: float
    n: int
    simulations_requested: int
    simulations_used: int
    simulations_failed: int = 0

    @property
    def simulations_attempted(self) -> int:
        return self.simulations_used + self.simulations_failed


@dataclass(frozen=True)
class ReturnLevelRow:
    """Return levels of one (station, distribution) pair."""

    station: str
    distribution: Distribution
    return_levels: Dict[float, float] = field(default_factory=dict)
    p_value: Optional[float] = None

    @property
    def return_periods(self) -> Tuple[float, ...]:
        return tuple(self.return_levels)

    def level(self, return_period: float) -> float:
        return self.return_levels[return_period]


def non_exceedance_probability(return_periods: Sequence[float]) -> np.ndarray:
    """Convert return periods T (years) to non-exceedance probabilities 1 - 1/T."""
    T = np.asarray(return_periods, dtype=float)
    if np.any(T <= 1):
        raise ValueError("Return periods must be greater than 1 year")
    return 1 - 1 / T


def plotting_positions(n: int) -> np.ndarray:
    """Weibull plotting positions i/(n+1) for i = 1..n."""
    return np.arange(1, n + 1) / (n + 1)
