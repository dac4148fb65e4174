"""Tests for precipfreq.goodness_of_fit."""

import tracemalloc
from types import SimpleNamespace

import numpy as np
import pytest
from scipy import stats

import precipfreq.goodness_of_fit as gof
from precipfreq.config import AnalysisConfig
from precipfreq.core import Distribution, FitFailureError, InvalidInputError
from precipfreq.distributions import GEVFamily, GEVParameters
from precipfreq.goodness_of_fit import GoodnessOfFitEstimator, estimate, ks_statistic


class FlakyGEV(GEVFamily):
    """GEV family whose bootstrap refits fail on every ``fail_every``-th call.

    The first call (the fit of the observed sample) always succeeds.
    """

    def __init__(self, fail_every):
        self.fail_every = fail_every
        self.calls = 0

    def fit_transformed(self, values):
        self.calls += 1
        if self.calls > 1 and self.calls % self.fail_every == 0:
            raise FitFailureError("refit failed")
        return super().fit_transformed(values)


class TestKSStatistic:
    def test_matches_scipy(self):
        x = np.random.default_rng(5).normal(size=25)
        expected = stats.kstest(x, stats.norm.cdf).statistic
        assert ks_statistic(x, stats.norm.cdf) == pytest.approx(expected)

    def test_perfect_fit_lower_bound(self):
        """Points at the mid-steps of the ECDF give D = 1 / (2n)."""
        n = 10
        u = (np.arange(1, n + 1) - 0.5) / n
        assert ks_statistic(u, lambda x: x) == pytest.approx(1 / (2 * n))

    def test_non_finite_cdf_raises(self):
        with pytest.raises(FitFailureError):
            ks_statistic([1.0, 2.0], lambda x: np.full_like(x, np.nan))


class TestEstimator:
    def test_ten_to_hundred_gev(self, ten_to_hundred):
        result = estimate(ten_to_hundred, "gev", simulations=200, seed=42)
        assert result.distribution is Distribution.GEV
        assert 0.0 <= result.p_value <= 1.0
        assert result.ks_statistic >= 0.0
        assert result.n == 10
        assert result.simulations_requested == 200
        assert result.simulations_attempted == 200
        assert isinstance(result.parameters, GEVParameters)

    def test_same_seed_same_result(self, pmax_sample):
        a = estimate(pmax_sample, "gev", simulations=100, seed=7)
        b = estimate(pmax_sample, "gev", simulations=100, seed=7)
        assert a == b

    def test_generator_and_seed_are_equivalent(self, pmax_sample):
        estimator = GoodnessOfFitEstimator(simulations=50)
        a = estimator.estimate(pmax_sample, "lp3", rng=11)
        b = estimator.estimate(pmax_sample, "lp3", rng=np.random.default_rng(11))
        assert a.p_value == b.p_value

    def test_lp3_result(self, pmax_sample):
        result = estimate(pmax_sample, "lp3", simulations=100, seed=1)
        assert result.distribution is Distribution.LP3
        assert 0.0 <= result.p_value <= 1.0
        assert result.n == len(pmax_sample)

    def test_observed_statistic_is_on_fitting_scale(self, pmax_sample):
        family = GEVFamily()
        params = family.fit(pmax_sample)
        expected = ks_statistic(pmax_sample, lambda x: family.cdf(x, params))
        result = estimate(pmax_sample, family, simulations=20, seed=3)
        assert result.ks_statistic == pytest.approx(expected)

    @pytest.mark.parametrize(
        "sample,family",
        [([], "gev"), ([5.0], "gev"), ([12.0, np.nan, 30.0], "lp3"), ([12.0, 0.0, 30.0], "lp3")],
    )
    def test_invalid_input(self, sample, family):
        with pytest.raises(InvalidInputError):
            estimate(sample, family, simulations=10, seed=1)

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            GoodnessOfFitEstimator(simulations=0)
        with pytest.raises(ValueError):
            GoodnessOfFitEstimator(min_success_fraction=0.0)

    def test_from_config(self):
        config = AnalysisConfig(simulations=250, min_success_fraction=0.8, time_budget=5.0)
        estimator = GoodnessOfFitEstimator.from_config(config)
        assert estimator.simulations == 250
        assert estimator.min_success_fraction == 0.8
        assert estimator.time_budget == 5.0


class TestBootstrapFailures:
    def test_failed_refits_are_counted_and_excluded(self, pmax_sample):
        family = FlakyGEV(fail_every=2)
        result = GoodnessOfFitEstimator(simulations=20).estimate(pmax_sample, family, rng=4)
        assert result.simulations_failed == 10
        assert result.simulations_used == 10
        # p-value denominator is the successful refits only
        assert result.p_value * 10 == pytest.approx(round(result.p_value * 10))

    def test_too_many_failures_raise(self, pmax_sample):
        estimator = GoodnessOfFitEstimator(simulations=20, min_success_fraction=0.6)
        with pytest.raises(FitFailureError, match="10 of 20"):
            estimator.estimate(pmax_sample, FlakyGEV(fail_every=2), rng=4)

    def test_all_refits_failing_raise(self, pmax_sample):
        estimator = GoodnessOfFitEstimator(simulations=10, min_success_fraction=0.01)
        with pytest.raises(FitFailureError):
            estimator.estimate(pmax_sample, FlakyGEV(fail_every=1), rng=4)

    def test_time_budget_stops_loop(self, pmax_sample, monkeypatch):
        ticks = iter(range(1000))
        monkeypatch.setattr(gof, "time", SimpleNamespace(perf_counter=lambda: next(ticks)))
        estimator = GoodnessOfFitEstimator(simulations=50, time_budget=2.5)
        result = estimator.estimate(pmax_sample, "gev", rng=8)
        assert result.simulations_requested == 50
        assert result.simulations_attempted == 2

    def test_truncated_run_does_not_allocate_all_draws(self, monkeypatch):
        """Memory follows the sample size, not simulations x n."""
        sample = stats.gumbel_r.rvs(loc=40.0, scale=12.0, size=5000, random_state=1)
        ticks = iter(range(1000))
        monkeypatch.setattr(gof, "time", SimpleNamespace(perf_counter=lambda: next(ticks)))
        estimator = GoodnessOfFitEstimator(simulations=2000, time_budget=2.5)

        tracemalloc.start()
        try:
            result = estimator.estimate(sample, "gev", rng=1)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()

        assert result.simulations_attempted == 2
        assert peak < 20e6

    def test_truncated_run_matches_shorter_run(self, pmax_sample, monkeypatch):
        """The first k iterations do not depend on how many were requested."""
        short = GoodnessOfFitEstimator(simulations=2).estimate(pmax_sample, "gev", rng=8)

        ticks = iter(range(1000))
        monkeypatch.setattr(gof, "time", SimpleNamespace(perf_counter=lambda: next(ticks)))
        truncated = GoodnessOfFitEstimator(simulations=500, time_budget=2.5).estimate(
            pmax_sample, "gev", rng=8
        )

        assert truncated.simulations_used == short.simulations_used == 2
        assert truncated.p_value == short.p_value
        assert truncated.ks_statistic == short.ks_statistic


class TestStatisticalProperties:
    def test_recovers_gev_through_estimate(self):
        """n = 10000 draws from GEV(50, 15, 0.2): parameters recovered, fit accepted."""
        family = GEVFamily()
        true = GEVParameters(loc=50.0, scale=15.0, shape=0.2)
        accepted = 0
        for seed in (2024, 2025, 2026):
            sample = family.ppf(np.random.default_rng(seed).random(10000), true)
            result = estimate(sample, "gev", simulations=50, seed=seed)
            assert result.parameters.loc == pytest.approx(50.0, rel=0.05)
            assert result.parameters.scale == pytest.approx(15.0, rel=0.05)
            assert result.parameters.shape == pytest.approx(0.2, abs=0.02)
            accepted += result.p_value > 0.05
        assert accepted >= 2

    def test_heavy_two_sided_tails_are_rejected(self):
        """Student t (2 dof) has infinite variance and a heavy lower tail no GEV can follow."""
        sample = np.random.default_rng(3).standard_t(2, size=1000)
        result = estimate(sample, "gev", simulations=99, seed=1)
        assert result.p_value < 0.05

    def test_true_model_is_rarely_rejected(self):
        family = GEVFamily()
        true = GEVParameters(loc=50.0, scale=15.0, shape=0.1)
        accepted = 0
        for seed in range(10):
            sample = family.ppf(np.random.default_rng(seed).random(50), true)
            result = estimate(sample, family, simulations=99, seed=1000 + seed)
            accepted += result.p_value > 0.05
        assert accepted >= 7

    def test_bimodal_sample_is_rejected(self):
        """A two-component normal mixture is not unimodal like any GEV."""
        rng = np.random.default_rng(0)
        sample = np.concatenate([rng.normal(20.0, 2.0, 100), rng.normal(80.0, 2.0, 100)])
        result = estimate(sample, "gev", simulations=199, seed=1)
        assert result.p_value < 0.05

    def test_p_value_converges(self, ten_to_hundred):
        coarse = estimate(ten_to_hundred, "gev", simulations=100, seed=42)
        fine = estimate(ten_to_hundred, "gev", simulations=2000, seed=42)
        assert abs(coarse.p_value - fine.p_value) < 0.2
