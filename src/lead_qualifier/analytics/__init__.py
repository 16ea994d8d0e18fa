"""Population analytics over scored leads."""

from .benchmarks import Benchmark, BenchmarkTracker, score_distribution, stage_funnel

__all__ = [
    "Benchmark",
    "BenchmarkTracker",
    "score_distribution",
    "stage_funnel",
]
