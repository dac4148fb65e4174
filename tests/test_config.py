"""Tests for precipfreq.config."""

import pytest

from precipfreq.config import AnalysisConfig


class TestAnalysisConfig:
    def test_defaults(self):
        config = AnalysisConfig()
        assert config.simulations == 10000
        assert config.seed == 123
        assert config.min_success_fraction == 0.5
        assert config.time_budget is None
        assert config.workers == 1
        assert config.return_periods == (5, 10, 25, 50, 100, 200, 500)
        assert config.value_column == "PMAX77"

    def test_return_periods_become_tuple(self):
        assert AnalysisConfig(return_periods=[10, 100]).return_periods == (10, 100)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"simulations": 0},
            {"min_success_fraction": 0.0},
            {"min_success_fraction": 1.5},
            {"time_budget": -1.0},
            {"workers": 0},
            {"return_periods": ()},
            {"return_periods": (1, 10)},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError, match="Invalid analysis configuration"):
            AnalysisConfig(**kwargs)

    def test_all_errors_reported(self):
        with pytest.raises(ValueError) as excinfo:
            AnalysisConfig(simulations=0, workers=0)
        assert "simulations" in str(excinfo.value)
        assert "workers" in str(excinfo.value)


class TestFromEnv:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("PRECIPFREQ_SIMULATIONS", "500")
        monkeypatch.setenv("PRECIPFREQ_SEED", "7")
        monkeypatch.setenv("PRECIPFREQ_WORKERS", "3")
        monkeypatch.setenv("PRECIPFREQ_TIME_BUDGET", "12.5")
        config = AnalysisConfig.from_env()
        assert (config.simulations, config.seed, config.workers) == (500, 7, 3)
        assert config.time_budget == 12.5

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("PRECIPFREQ_SIMULATIONS", "500")
        config = AnalysisConfig.from_env(simulations=50, seed=None)
        assert config.simulations == 50
        assert config.seed == 123

    def test_unset_environment_gives_defaults(self, monkeypatch):
        for var in (
            "PRECIPFREQ_SIMULATIONS",
            "PRECIPFREQ_SEED",
            "PRECIPFREQ_WORKERS",
            "PRECIPFREQ_TIME_BUDGET",
        ):
            monkeypatch.delenv(var, raising=False)
        assert AnalysisConfig.from_env() == AnalysisConfig()

    def test_invalid_environment_value(self, monkeypatch):
        monkeypatch.setenv("PRECIPFREQ_WORKERS", "many")
        with pytest.raises(ValueError, match="PRECIPFREQ_WORKERS"):
            AnalysisConfig.from_env()

    def test_with_overrides(self):
        config = AnalysisConfig().with_overrides(simulations=99, workers=None)
        assert config.simulations == 99
        assert config.workers == 1
