"""
Parameter recovery benchmarks.

Each benchmark draws a large sample from a distribution with known
parameters, fits it by L-moments and checks that the fitted parameters and
return levels are close to the true ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Union

import numpy as np

from precipfreq.core import Distribution
from precipfreq.distributions import GEVParameters, LP3Parameters, get_family
from precipfreq.validation.comparisons import ComparisonResult, FitComparator

logger = logging.getLogger(__name__)


@dataclass
class Benchmark:
    """A single recovery test case.

    Parameters
    ----------
    name : str
        Short identifier for the benchmark.
    description : str
        Human-readable description.
    distribution : Distribution
        Family that generates and fits the sample.
    parameters : GEVParameters or LP3Parameters
        True parameters.
    n : int
        Sample size.
    seed : int
        Seed of the sample generator.
    return_periods : tuple of float
        Return periods whose levels are compared.
    tolerance_pct : float
        Return level tolerance.
    parameter_tolerance_pct : float
        Parameter tolerance.
    """

    name: str = ""
    description: str = ""
    distribution: Distribution = Distribution.GEV
    parameters: Union[GEVParameters, LP3Parameters, None] = None
    n: int = 10000
    seed: int = 123
    return_periods: tuple = field(default=(10, 50, 100))
    tolerance_pct: float = 5.0
    parameter_tolerance_pct: float = 15.0

    def sample(self) -> np.ndarray:
        """Draw the benchmark sample in data units."""
        family = get_family(self.distribution)
        rng = np.random.default_rng(self.seed)
        return family.data_ppf(rng.random(self.n), self.parameters)

    def expected(self) -> dict[str, Any]:
        """True parameters and return levels in comparison dict format."""
        return self._as_comparison_dict(self.parameters)

    def run_fit(self) -> dict[str, Any]:
        """Fit the benchmark sample.

        Returns
        -------
        dict
            Fitted parameters and return levels in comparison dict format.
        """
        fitted = get_family(self.distribution).fit(self.sample())
        return self._as_comparison_dict(fitted)

    def _as_comparison_dict(self, params) -> dict[str, Any]:
        family = get_family(self.distribution)
        levels = family.return_levels(params, self.return_periods)
        return {
            "parameters": params.as_dict(),
            "return_levels": {T: float(q) for T, q in zip(self.return_periods, levels)},
        }

    def validate_against_expected(self) -> ComparisonResult:
        """Compare the fit with the true parameters."""
        comparator = FitComparator(
            tolerance_pct=self.tolerance_pct,
            parameter_tolerance_pct=self.parameter_tolerance_pct,
        )
        return comparator.compare(self.run_fit(), self.expected())


def _default_benchmarks() -> list[Benchmark]:
    return [
        Benchmark(
            name="gev_heavy_tail",
            description="GEV loc=50, scale=15, shape=0.2 (Frechet type), n=10000",
            distribution=Distribution.GEV,
            parameters=GEVParameters(loc=50.0, scale=15.0, shape=0.2),
        ),
        Benchmark(
            name="gev_bounded_tail",
            description="GEV loc=40, scale=10, shape=-0.15 (Weibull type), n=10000",
            distribution=Distribution.GEV,
            parameters=GEVParameters(loc=40.0, scale=10.0, shape=-0.15),
            parameter_tolerance_pct=25.0,
        ),
        Benchmark(
            name="lp3_positive_skew",
            description="LP3 of ln(x): mean=3.8, std=0.35, skew=0.6, n=10000",
            distribution=Distribution.LP3,
            parameters=LP3Parameters(mean=3.8, std=0.35, skew=0.6),
        ),
        Benchmark(
            name="lp3_negative_skew",
            description="LP3 of ln(x): mean=3.5, std=0.4, skew=-0.4, n=10000",
            distribution=Distribution.LP3,
            parameters=LP3Parameters(mean=3.5, std=0.4, skew=-0.4),
            parameter_tolerance_pct=25.0,
        ),
    ]


# Registry of available benchmarks
BENCHMARKS: dict[str, Benchmark] = {}


def register_benchmarks() -> None:
    """Populate the BENCHMARKS registry with all available benchmarks."""
    for benchmark in _default_benchmarks():
        BENCHMARKS.setdefault(benchmark.name, benchmark)


def run_all_benchmarks() -> dict[str, ComparisonResult]:
    """Run all registered benchmarks against their true parameters.

    Returns
    -------
    dict[str, ComparisonResult]
        Benchmark name to comparison result mapping.
    """
    register_benchmarks()
    results: dict[str, ComparisonResult] = {}

    for name, benchmark in BENCHMARKS.items():
        logger.info("Running benchmark: %s", name)
        try:
            results[name] = benchmark.validate_against_expected()
        except Exception as e:
            logger.error("Benchmark '%s' failed: %s", name, e)
            results[name] = ComparisonResult(
                passed=False,
                summary=f"ERROR: {e}",
            )

    return results


def print_benchmark_report(results: dict[str, ComparisonResult]) -> None:
    """Print a formatted report of benchmark results.

    Parameters
    ----------
    results : dict[str, ComparisonResult]
        Results from run_all_benchmarks.
    """
    print("\n" + "=" * 60)
    print("  precipfreq Recovery Benchmarks")
    print("=" * 60)

    n_pass = sum(1 for r in results.values() if r.passed)

    for name, result in results.items():
        status = "PASS" if result.passed else "FAIL"
        print(f"\n  [{status}] {name}")
        if name in BENCHMARKS:
            print(f"         {BENCHMARKS[name].description}")
        print(f"         {result.summary}")

    print("\n" + "-" * 60)
    print(f"  Total: {n_pass}/{len(results)} passed")
    print("=" * 60 + "\n")
