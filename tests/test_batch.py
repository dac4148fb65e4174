"""Tests for precipfreq.batch."""

import numpy as np
import pytest

from precipfreq.batch import BatchReport, analyze_folder, estimate_station, run_stations
from precipfreq.config import AnalysisConfig
from precipfreq.core import Distribution
from precipfreq.engine import ReturnLevelTableBuilder
from precipfreq.stations import StationRecord


@pytest.fixture
def records(pmax_sample):
    return [
        StationRecord("8416", pmax_sample),
        StationRecord("8058X", pmax_sample * 0.8 + 5),
        StationRecord("7031", pmax_sample[:25] + 10),
    ]


class TestEstimateStation:
    def test_one_outcome_per_family_in_order(self, records, fast_config):
        outcomes = estimate_station(records[0], config=fast_config)
        assert [o.distribution for o in outcomes] == [Distribution.GEV, Distribution.LP3]
        assert all(o.ok for o in outcomes)
        assert all(o.station == "8416" for o in outcomes)

    def test_family_errors_are_isolated(self, pmax_sample, fast_config):
        values = pmax_sample.copy()
        values[0] = 0.0
        outcomes = estimate_station(StationRecord("0000", values), config=fast_config)
        gev, lp3 = outcomes
        assert gev.ok
        assert not lp3.ok
        assert "positive" in lp3.error

    def test_same_series_same_p_value(self, pmax_sample, fast_config):
        """Every station starts from the same seed."""
        a = estimate_station(StationRecord("A", pmax_sample), ["gev"], fast_config)
        b = estimate_station(StationRecord("B", pmax_sample), ["gev"], fast_config)
        assert a[0].result == b[0].result

    def test_families_use_independent_streams(self, pmax_sample, fast_config):
        only_lp3 = estimate_station(StationRecord("A", pmax_sample), ["lp3"], fast_config)
        both = estimate_station(StationRecord("A", pmax_sample), ["gev", "lp3"], fast_config)
        assert only_lp3[0].result == both[1].result


class TestRunStations:
    def test_output_order_matches_input(self, records, fast_config):
        report = run_stations(records, config=fast_config)
        assert report.stations == ["8416", "8058X", "7031"]
        assert len(report.outcomes) == 6

    def test_failed_station_does_not_abort(self, records, fast_config):
        bad = StationRecord("BAD", np.array([5.0]))
        report = run_stations([bad] + records, config=fast_config)
        assert len(report.failures) == 2
        assert len(report.successes) == 6
        assert report.stations[0] == "BAD"

    def test_parallel_matches_sequential(self, records):
        sequential = run_stations(records, config=AnalysisConfig(simulations=20, workers=1))
        parallel = run_stations(records, config=AnalysisConfig(simulations=20, workers=2))
        assert [o.result for o in parallel.outcomes] == [o.result for o in sequential.outcomes]


class TestBatchReport:
    def test_rows_skip_failures(self, records, fast_config):
        bad = StationRecord("BAD", np.array([5.0]))
        report = run_stations(records + [bad], config=fast_config)
        rows = report.rows(ReturnLevelTableBuilder([10, 100]))
        assert len(rows) == 6
        assert rows[0].return_periods == (10, 100)

    def test_to_frame(self, records, fast_config):
        df = run_stations(records[:1], config=fast_config).to_frame()
        assert list(df["Code"]) == ["8416", "8416"]
        assert "T500" in df.columns

    def test_summary_table(self, records, fast_config):
        bad = StationRecord("BAD", np.array([5.0]))
        report = run_stations([records[0], bad], config=fast_config)
        report.read_errors = {"broken.csv": "no PMAX77"}
        summary = report.summary_table()
        assert len(summary) == 5
        assert summary.loc[0, "Simulations"] == 30
        assert "loc" in summary.columns
        assert summary["Error"].notna().sum() == 3

    def test_empty_report(self):
        report = BatchReport()
        assert report.rows() == []
        assert report.stations == []


class TestAnalyzeFolder:
    def test_reads_and_estimates(self, station_folder, fast_config):
        report = analyze_folder(station_folder, config=fast_config)
        assert report.stations == ["8416", "8058X"]
        assert list(report.read_errors) == ["c_broken.csv"]
        assert len(report.successes) == 4

    def test_one_family(self, station_folder, fast_config):
        report = analyze_folder(station_folder, families=["lp3"], config=fast_config)
        assert {o.distribution for o in report.outcomes} == {Distribution.LP3}
