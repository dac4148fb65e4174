"""Tests for the recovery benchmark framework."""

from __future__ import annotations

import json

import pytest

from precipfreq.core import Distribution
from precipfreq.distributions import GEVParameters
from precipfreq.validation.benchmarks import (
    BENCHMARKS,
    Benchmark,
    register_benchmarks,
    run_all_benchmarks,
)
from precipfreq.validation.comparisons import ComparisonResult, FitComparator, pct_diff
from precipfreq.validation.reports import generate_json_report, generate_text_report


class TestPctDiff:
    def test_relative_difference(self) -> None:
        assert pct_diff(105.0, 100.0) == pytest.approx(5.0)
        assert pct_diff(95.0, 100.0) == pytest.approx(5.0)

    def test_zero_reference(self) -> None:
        assert pct_diff(0.0, 0.0) == 0.0
        assert pct_diff(1.0, 0.0) == 100.0


class TestFitComparator:
    def test_pass_within_tolerance(self) -> None:
        fitted = {"parameters": {"loc": 50.5}, "return_levels": {100: 101.0}}
        reference = {"parameters": {"loc": 50.0}, "return_levels": {100: 100.0}}
        result = FitComparator(tolerance_pct=2.0, parameter_tolerance_pct=2.0).compare(
            fitted, reference
        )
        assert result.passed
        assert result.max_diff_pct == pytest.approx(1.0)
        assert result.summary.startswith("PASS")

    def test_fail_on_parameter(self) -> None:
        fitted = {"parameters": {"shape": 0.3}, "return_levels": {}}
        reference = {"parameters": {"shape": 0.2}, "return_levels": {}}
        result = FitComparator(parameter_tolerance_pct=10.0).compare(fitted, reference)
        assert not result.passed
        assert result.parameter_diffs["shape"] == pytest.approx(50.0)

    def test_missing_keys_are_skipped(self) -> None:
        result = FitComparator().compare({}, {"parameters": {"loc": 1.0}})
        assert result.parameter_diffs == {}
        assert result.passed


class TestBenchmark:
    def test_register_benchmarks(self) -> None:
        register_benchmarks()
        assert set(BENCHMARKS) >= {
            "gev_heavy_tail",
            "gev_bounded_tail",
            "lp3_positive_skew",
            "lp3_negative_skew",
        }

    def test_sample_is_reproducible(self) -> None:
        bm = Benchmark(parameters=GEVParameters(50.0, 15.0, 0.2), n=100, seed=5)
        assert (bm.sample() == bm.sample()).all()

    def test_expected_uses_true_parameters(self) -> None:
        bm = Benchmark(parameters=GEVParameters(50.0, 15.0, 0.2), return_periods=(10,))
        expected = bm.expected()
        assert expected["parameters"] == {"loc": 50.0, "scale": 15.0, "shape": 0.2}
        assert list(expected["return_levels"]) == [10]

    def test_small_sample_fails_tight_tolerance(self) -> None:
        bm = Benchmark(
            distribution=Distribution.GEV,
            parameters=GEVParameters(50.0, 15.0, 0.2),
            n=15,
            seed=1,
            parameter_tolerance_pct=0.001,
        )
        assert not bm.validate_against_expected().passed

    def test_all_benchmarks_pass(self) -> None:
        results = run_all_benchmarks()
        failed = {name: r.summary for name, r in results.items() if not r.passed}
        assert not failed

    def test_broken_benchmark_reports_error(self) -> None:
        BENCHMARKS["broken"] = Benchmark(name="broken", parameters=None)
        try:
            results = run_all_benchmarks()
        finally:
            del BENCHMARKS["broken"]
        assert not results["broken"].passed
        assert results["broken"].summary.startswith("ERROR")


class TestReports:
    @pytest.fixture
    def results(self) -> dict:
        return {
            "ok": ComparisonResult(
                passed=True,
                parameter_diffs={"loc": 0.5},
                quantile_diffs={100: 1.2},
                max_diff_pct=1.2,
                summary="PASS",
            ),
            "bad": ComparisonResult(passed=False, summary="ERROR: boom"),
        }

    def test_text_report(self, results) -> None:
        text = generate_text_report(results)
        assert "Overall: 1/2 passed" in text
        assert "[PASS] ok" in text
        assert "T=100: 1.2000%" in text
        assert "[FAIL] bad" in text

    def test_json_report(self, results) -> None:
        report = json.loads(generate_json_report(results))
        assert report["ok"]["quantile_diffs"] == {"100": 1.2}
        assert report["bad"]["passed"] is False
