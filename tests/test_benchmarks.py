"""Tests for benchmark and distribution analytics."""

from lead_qualifier.analytics.benchmarks import (
    BenchmarkTracker,
    DEFAULT_BENCHMARK,
    score_distribution,
    stage_funnel,
)
from lead_qualifier.core.stages import DEFAULT_STAGES


class TestBenchmarkTracker:
    """Tests for BenchmarkTracker."""

    def setup_method(self):
        self.tracker = BenchmarkTracker()

    def test_empty_defaults(self):
        bench = self.tracker.compute([])
        assert (bench.average, bench.median, bench.p25, bench.p75) == (50, 50, 25, 75)
        assert bench.count == 0

    def test_percentiles(self):
        bench = self.tracker.compute([40, 10, 30, 20])
        assert bench.average == 25
        assert bench.median == 30
        assert bench.p25 == 20
        assert bench.p75 == 40
        assert bench.count == 4

    def test_single_score(self):
        bench = self.tracker.compute([72.5])
        assert bench.median == bench.p25 == bench.p75 == 72.5

    def test_defaults_not_shared(self):
        bench = self.tracker.compute([])
        assert bench is not DEFAULT_BENCHMARK
        assert "computed_at" in bench.to_dict()


class TestDistribution:
    """Tests for histogram and funnel helpers."""

    def test_bins(self):
        bins = score_distribution([0, 9.99, 10, 55, 100])
        assert len(bins) == 10
        assert bins[0]["count"] == 2
        assert bins[1]["count"] == 1
        assert bins[5]["count"] == 1
        assert bins[9]["label"] == "90-100"
        assert bins[9]["count"] == 1

    def test_stage_funnel(self):
        funnel = stage_funnel([5, 25, 55, 60, 99], DEFAULT_STAGES)
        counts = {row["stage"]: row["count"] for row in funnel}
        assert counts == {
            "new": 1, "contacted": 1, "qualified": 2,
            "opportunity": 0, "negotiation": 0, "closed": 1,
        }
        assert funnel[2]["percentage"] == 40.0

    def test_empty_funnel(self):
        funnel = stage_funnel([], DEFAULT_STAGES)
        assert all(row["count"] == 0 and row["percentage"] == 0 for row in funnel)
