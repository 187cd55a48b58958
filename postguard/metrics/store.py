"""
Metrics Store for Screening Runs

Aggregates per-run metrics for analysis and reporting.
Uses in-memory storage; production systems should export to Prometheus
or a time-series database.

The store is thread-safe using threading.Lock to handle
concurrent requests in FastAPI's async environment.
"""

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from postguard.pipeline.screening import ModerationReport

RunStatus = Literal["approved", "rejected", "failed"]


@dataclass
class ModelCall:
    """One classifier call within a run."""

    model_name: str
    flagged: bool
    failed: bool
    latency_ms: float


@dataclass
class RunMetric:
    """
    Individual screening run record.

    Attributes:
        timestamp: Unix timestamp when the run finished
        status: 'approved', 'rejected' or 'failed'
        latency_ms: Wall time of the run in milliseconds
        calls: Classifier calls made, in order
        decided_by: Rejecting classifier, or the failing one for failed runs
    """

    timestamp: float
    status: RunStatus
    latency_ms: float
    calls: list[ModelCall] = field(default_factory=list)
    decided_by: str | None = None

    @property
    def models_invoked(self) -> int:
        return len(self.calls)

    @classmethod
    def from_report(
        cls,
        status: RunStatus,
        report: "ModerationReport",
        latency_ms: float,
        decided_by: str | None = None,
    ) -> "RunMetric":
        """Build a run record from a pipeline report."""
        return cls(
            timestamp=time.time(),
            status=status,
            latency_ms=latency_ms,
            calls=[
                ModelCall(
                    model_name=outcome.model_name,
                    flagged=outcome.flagged,
                    failed=outcome.error is not None,
                    latency_ms=outcome.latency_ms,
                )
                for outcome in report
            ],
            decided_by=decided_by,
        )


@dataclass
class _ModelAggregate:
    """Internal aggregate for per-classifier metrics."""

    count: int = 0
    flagged: int = 0
    errors: int = 0
    latencies: list[float] = field(default_factory=list)


@dataclass
class AggregatedMetrics:
    """
    Aggregated metrics snapshot for reporting.

    All fields are snapshots captured at a specific moment.
    """

    total_requests: int = 0
    statuses: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    rejections_by_model: dict[str, int] = field(
        default_factory=lambda: defaultdict(int)
    )
    requests_by_model: dict[str, _ModelAggregate] = field(
        default_factory=lambda: defaultdict(_ModelAggregate)
    )
    run_latencies: list[float] = field(default_factory=list)
    total_model_calls: int = 0


class MetricsStore:
    """
    Thread-safe in-memory metrics storage.

    Designed for single-process deployment.

    Example:
        store = MetricsStore()
        store.record(RunMetric(timestamp=time.time(), status="approved", ...))
        aggregated = store.get_aggregated()
    """

    def __init__(self, max_history: int = 10000):
        """
        Initialize the metrics store.

        Args:
            max_history: Maximum individual runs (and latency samples) to
                         retain. Counters are preserved regardless.
        """
        self._lock = threading.Lock()
        self._runs: list[RunMetric] = []
        self._max_history = max_history

        self._total_requests: int = 0
        self._total_model_calls: int = 0
        self._statuses: dict[str, int] = defaultdict(int)
        self._rejections: dict[str, int] = defaultdict(int)
        self._by_model: dict[str, _ModelAggregate] = defaultdict(_ModelAggregate)
        self._run_latencies: list[float] = []

    def record(self, metric: RunMetric) -> None:
        """
        Record a finished screening run.

        Args:
            metric: The run metric to record
        """
        with self._lock:
            self._runs.append(metric)
            if len(self._runs) > self._max_history:
                self._runs = self._runs[-self._max_history :]

            self._total_requests += 1
            self._total_model_calls += metric.models_invoked
            self._statuses[metric.status] += 1
            if metric.status == "rejected" and metric.decided_by:
                self._rejections[metric.decided_by] += 1

            for call in metric.calls:
                model_agg = self._by_model[call.model_name]
                model_agg.count += 1
                model_agg.flagged += int(call.flagged)
                model_agg.errors += int(call.failed)
                model_agg.latencies.append(call.latency_ms)
                if len(model_agg.latencies) > self._max_history:
                    model_agg.latencies = model_agg.latencies[-self._max_history :]

            self._run_latencies.append(metric.latency_ms)
            if len(self._run_latencies) > self._max_history:
                self._run_latencies = self._run_latencies[-self._max_history :]

    def get_aggregated(self) -> AggregatedMetrics:
        """
        Get current aggregated metrics.

        Returns:
            AggregatedMetrics snapshot, safe to use outside the lock
        """
        with self._lock:
            by_model_copy = {
                name: _ModelAggregate(
                    count=agg.count,
                    flagged=agg.flagged,
                    errors=agg.errors,
                    latencies=list(agg.latencies),
                )
                for name, agg in self._by_model.items()
            }

            return AggregatedMetrics(
                total_requests=self._total_requests,
                statuses=dict(self._statuses),
                rejections_by_model=dict(self._rejections),
                requests_by_model=by_model_copy,
                run_latencies=list(self._run_latencies),
                total_model_calls=self._total_model_calls,
            )

    def get_recent(self, count: int = 100) -> list[RunMetric]:
        """Get the most recent run records."""
        with self._lock:
            return list(self._runs[-count:])

    def reset(self) -> None:
        """
        Reset all metrics.

        Primarily used for testing.
        """
        with self._lock:
            self._runs.clear()
            self._total_requests = 0
            self._total_model_calls = 0
            self._statuses.clear()
            self._rejections.clear()
            self._by_model.clear()
            self._run_latencies.clear()


_store: MetricsStore | None = None


def get_metrics_store() -> MetricsStore:
    """
    Get the global metrics store instance.

    Returns:
        Singleton MetricsStore instance
    """
    global _store
    if _store is None:
        _store = MetricsStore()
    return _store
