"""
Metrics Module: Screening Run Storage and Reporting

Components:
    MetricsStore: Thread-safe in-memory aggregation of screening runs
    RunMetric: Individual run record
    ModelCall: One classifier call within a run
    AggregatedMetrics: Pre-computed aggregates for reporting
    MetricsReporter: Generate MetricsResponse for the API

Usage:
    from postguard.metrics import get_metrics_store, RunMetric, MetricsReporter

    get_metrics_store().record(
        RunMetric.from_report("rejected", result.report, result.latency_ms, "toxicity")
    )
    response = MetricsReporter().generate_report()
"""

from postguard.metrics.store import (
    AggregatedMetrics,
    MetricsStore,
    ModelCall,
    RunMetric,
    get_metrics_store,
)
from postguard.metrics.reporter import MetricsReporter

__all__ = [
    "AggregatedMetrics",
    "MetricsStore",
    "ModelCall",
    "RunMetric",
    "get_metrics_store",
    "MetricsReporter",
]
