"""
Report generation for validation results.

Produces text and JSON reports from benchmark comparison results.
"""

from __future__ import annotations

import json
from typing import Any

from precipfreq.validation.comparisons import ComparisonResult


def generate_text_report(results: dict[str, ComparisonResult]) -> str:
    """Generate a plain-text validation report.

    Parameters
    ----------
    results : dict[str, ComparisonResult]
        Benchmark name to comparison result mapping.

    Returns
    -------
    str
        Formatted text report.
    """
    n_pass = sum(1 for r in results.values() if r.passed)
    lines = [
        "precipfreq Validation Report",
        "=" * 40,
        f"Overall: {n_pass}/{len(results)} passed",
        "",
    ]

    for name, result in results.items():
        status = "PASS" if result.passed else "FAIL"
        lines.append(f"[{status}] {name}")
        lines.append(f"  Max diff: {result.max_diff_pct:.3f}%")
        lines.append(
            f"  Tolerance: {result.parameter_tolerance_pct}% (parameters), "
            f"{result.tolerance_pct}% (return levels)"
        )
        lines.append(f"  {result.summary}")

        if result.parameter_diffs:
            lines.append("  Parameters:")
            for param, diff in result.parameter_diffs.items():
                lines.append(f"    {param}: {diff:.4f}%")

        if result.quantile_diffs:
            lines.append("  Return levels:")
            for T, diff in sorted(result.quantile_diffs.items()):
                lines.append(f"    T={T:g}: {diff:.4f}%")

        lines.append("")

    return "\n".join(lines)


def generate_json_report(results: dict[str, ComparisonResult]) -> str:
    """Generate a JSON validation report."""
    report: dict[str, Any] = {}

    for name, result in results.items():
        report[name] = {
            "passed": result.passed,
            "max_diff_pct": result.max_diff_pct,
            "tolerance_pct": result.tolerance_pct,
            "parameter_tolerance_pct": result.parameter_tolerance_pct,
            "summary": result.summary,
            "parameter_diffs": result.parameter_diffs,
            "quantile_diffs": {str(k): v for k, v in result.quantile_diffs.items()},
        }

    return json.dumps(report, indent=2)
