"""
Validation module for precipfreq.

Provides parameter recovery benchmarks, comparisons and reporting for the
L-moment fits.
"""

from precipfreq.validation.comparisons import ComparisonResult, FitComparator

__all__ = [
    "ComparisonResult",
    "FitComparator",
]
