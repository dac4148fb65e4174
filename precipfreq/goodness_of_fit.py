"""
precipfreq.goodness_of_fit - Kolmogorov-Smirnov test with parametric bootstrap

The distribution parameters are estimated from the data, so the classical
KS null distribution does not apply. The p-value is instead obtained by
simulating samples from the fitted model, refitting each one and comparing
the observed statistic with the statistics of the refitted simulations.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional, Sequence, Union

import numpy as np

from .config import AnalysisConfig
from .core import EstimationError, FitFailureError, FitResult
from .distributions import DistributionFamily, get_family

logger = logging.getLogger(__name__)

RandomState = Union[None, int, np.random.SeedSequence, np.random.Generator]


def ks_statistic(values: Sequence[float], cdf: Callable[[np.ndarray], np.ndarray]) -> float:
    """
    One-sample two-sided Kolmogorov-Smirnov statistic.

    D = max_i max(i/n - F(x_(i)), F(x_(i)) - (i-1)/n) over the sorted sample.
    No continuity correction is applied and ties are not treated specially.

    Parameters
    ----------
    values : sequence of float
        Sample, on the same scale as ``cdf``.
    cdf : callable
        Vectorized cumulative distribution function.

    Returns
    -------
    float
        The KS statistic D in [0, 1].
    """
    x = np.sort(np.asarray(values, dtype=float))
    n = len(x)
    F = np.asarray(cdf(x), dtype=float)
    if not np.all(np.isfinite(F)):
        raise FitFailureError("Fitted CDF is not finite at every sample value")
    i = np.arange(1, n + 1)
    d_plus = np.max(i / n - F)
    d_minus = np.max(F - (i - 1) / n)
    return float(max(d_plus, d_minus))


class GoodnessOfFitEstimator:
    """
    L-moment fit plus parametric-bootstrap KS p-value.

    Parameters
    ----------
    simulations : int
        Number of bootstrap refits (default 10000).
    min_success_fraction : float
        Minimum fraction of attempted refits that must succeed.
    time_budget : float, optional
        Wall-clock limit for the bootstrap loop, in seconds. When reached,
        the p-value is computed from the iterations completed so far.

    Examples
    --------
    >>> estimator = GoodnessOfFitEstimator(simulations=1000)
    >>> result = estimator.estimate(pmax, "gev", rng=123)
    >>> result.p_value
    """

    def __init__(
        self,
        simulations: int = 10000,
        min_success_fraction: float = 0.5,
        time_budget: Optional[float] = None,
    ):
        if simulations < 1:
            raise ValueError(f"simulations must be >= 1, got {simulations}")
        if not 0.0 < min_success_fraction <= 1.0:
            raise ValueError(
                f"min_success_fraction must be in (0, 1], got {min_success_fraction}"
            )
        self.simulations = int(simulations)
        self.min_success_fraction = float(min_success_fraction)
        self.time_budget = time_budget

    @classmethod
    def from_config(cls, config: AnalysisConfig) -> "GoodnessOfFitEstimator":
        return cls(
            simulations=config.simulations,
            min_success_fraction=config.min_success_fraction,
            time_budget=config.time_budget,
        )

    def estimate(
        self,
        sample: Sequence[float],
        family: Union[str, DistributionFamily],
        rng: RandomState = None,
    ) -> FitResult:
        """
        Fit ``family`` to ``sample`` and estimate the KS p-value.

        Parameters
        ----------
        sample : sequence of float
            Observations in data units (mm). Must not contain NaN.
        family : str or DistributionFamily
            'gev', 'lp3' or a family instance.
        rng : int, SeedSequence or Generator, optional
            Source of the uniform draws. The same seed always gives the
            same result.

        Returns
        -------
        FitResult

        Raises
        ------
        InvalidInputError
            Empty, too short or non-finite sample; non-positive values for LP3.
        FitFailureError
            L-moment inversion failed, or too many bootstrap refits failed.
        """
        family = get_family(family)
        rng = np.random.default_rng(rng)

        values = family.transform(family.validate(sample))
        n = len(values)
        params = family.fit_transformed(values)
        observed = ks_statistic(values, lambda x: family.cdf(x, params))

        entropy = int(rng.integers(np.iinfo(np.int64).max))
        simulated, failed = self._bootstrap(family, params, n, entropy)

        attempted = len(simulated) + failed
        required = math.ceil(self.min_success_fraction * attempted)
        if len(simulated) == 0 or len(simulated) < required:
            raise FitFailureError(
                f"{family.name} bootstrap degenerate: {len(simulated)} of {attempted} "
                f"refits succeeded (need {required})"
            )
        if failed:
            logger.debug("%s bootstrap: %d of %d refits failed", family.name, failed, attempted)

        p_value = float(np.mean(simulated >= observed))

        return FitResult(
            distribution=family.kind,
            parameters=params,
            ks_statistic=observed,
            p_value=p_value,
            n=n,
            simulations_requested=self.simulations,
            simulations_used=len(simulated),
            simulations_failed=failed,
        )

    def _bootstrap(self, family: DistributionFamily, params, n: int, entropy: int):
        """
        Refit each simulated sample and return (statistics, n_failed).

        Iteration i draws its ``n`` uniforms from a stream seeded by
        ``(entropy, i)``, so only one simulated sample is held at a time and
        the first k iterations are the same whatever ``simulations`` is.
        """
        start = time.perf_counter()
        statistics = []
        failed = 0

        for i in range(self.simulations):
            if self.time_budget is not None and time.perf_counter() - start > self.time_budget:
                logger.warning(
                    "%s bootstrap stopped by time budget after %d of %d iterations",
                    family.name,
                    i,
                    self.simulations,
                )
                break

            stream = np.random.default_rng(np.random.SeedSequence(entropy, spawn_key=(i,)))
            synthetic = family.ppf(stream.random(n), params)
            try:
                if not np.all(np.isfinite(synthetic)):
                    raise FitFailureError("Simulated sample is not finite")
                sim_params = family.fit_transformed(synthetic)
                statistics.append(ks_statistic(synthetic, lambda x: family.cdf(x, sim_params)))
            except EstimationError:
                failed += 1

        return np.asarray(statistics, dtype=float), failed


def estimate(
    sample: Sequence[float],
    family: Union[str, DistributionFamily],
    simulations: int = 10000,
    seed: RandomState = None,
    min_success_fraction: float = 0.5,
    time_budget: Optional[float] = None,
) -> FitResult:
    """Functional shortcut for :meth:`GoodnessOfFitEstimator.estimate`."""
    estimator = GoodnessOfFitEstimator(
        simulations=simulations,
        min_success_fraction=min_success_fraction,
        time_budget=time_budget,
    )
    return estimator.estimate(sample, family, rng=seed)
