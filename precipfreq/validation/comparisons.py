"""
Comparison engine for fitted vs reference distributions.

Compares fitted parameters and return levels against known reference values
with separate percent tolerances for parameters and return levels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class ComparisonResult:
    """Result of comparing a fitted distribution with reference values.

    Parameters
    ----------
    passed : bool
        True if all differences are within tolerance.
    tolerance_pct : float
        Return level tolerance used for the comparison.
    parameter_tolerance_pct : float
        Parameter tolerance used for the comparison.
    parameter_diffs : dict[str, float]
        Parameter name to percent difference mapping.
    quantile_diffs : dict[float, float]
        Return period to percent difference mapping for return levels.
    max_diff_pct : float
        Maximum percent difference across all comparisons.
    summary : str
        Human-readable one-line summary of comparison.
    """

    passed: bool = False
    tolerance_pct: float = 5.0
    parameter_tolerance_pct: float = 10.0
    parameter_diffs: dict[str, float] = field(default_factory=dict)
    quantile_diffs: dict[float, float] = field(default_factory=dict)
    max_diff_pct: float = 0.0
    summary: str = ""


def pct_diff(value: float, ref_val: float) -> float:
    """Absolute percent difference of ``value`` from ``ref_val``.

    Returns 0.0 if both values are zero and 100.0 if only the reference is.
    """
    if ref_val == 0.0:
        if value == 0.0:
            return 0.0
        return 100.0
    return abs((value - ref_val) / ref_val) * 100.0


class FitComparator:
    """Compare a fitted distribution against reference values.

    Both sides are dicts with a 'parameters' mapping (name -> value) and a
    'return_levels' mapping (return period -> level). Keys missing on the
    fitted side are skipped.

    Parameters
    ----------
    tolerance_pct : float
        Tolerance for return level comparisons.
    parameter_tolerance_pct : float
        Tolerance for parameter comparisons.
    """

    def __init__(self, tolerance_pct: float = 5.0, parameter_tolerance_pct: float = 10.0) -> None:
        self.tolerance_pct = tolerance_pct
        self.parameter_tolerance_pct = parameter_tolerance_pct

    def compare(self, fitted: dict[str, Any], reference: dict[str, Any]) -> ComparisonResult:
        """Compare fitted output against a reference.

        Returns
        -------
        ComparisonResult
            Detailed comparison with per-field differences.
        """
        param_diffs = self._compare(fitted, reference, "parameters")
        quant_diffs = self._compare(fitted, reference, "return_levels")

        all_diffs = list(param_diffs.values()) + list(quant_diffs.values())
        max_diff = max(all_diffs) if all_diffs else 0.0

        params_ok = all(d <= self.parameter_tolerance_pct for d in param_diffs.values())
        quants_ok = all(d <= self.tolerance_pct for d in quant_diffs.values())
        passed = params_ok and quants_ok

        status = "PASS" if passed else "FAIL"
        summary = (
            f"{status}: max diff {max_diff:.3f}% "
            f"(params={len(param_diffs)}, return levels={len(quant_diffs)})"
        )

        return ComparisonResult(
            passed=passed,
            tolerance_pct=self.tolerance_pct,
            parameter_tolerance_pct=self.parameter_tolerance_pct,
            parameter_diffs=param_diffs,
            quantile_diffs=quant_diffs,
            max_diff_pct=max_diff,
            summary=summary,
        )

    @staticmethod
    def _compare(fitted: dict[str, Any], reference: dict[str, Any], key: str) -> dict:
        diffs = {}
        fitted_values = fitted.get(key, {})
        for name, ref_val in reference.get(key, {}).items():
            if name in fitted_values:
                diffs[name] = pct_diff(fitted_values[name], ref_val)
            else:
                logger.debug("%s '%s' not in fitted output, skipping", key, name)
        return diffs
