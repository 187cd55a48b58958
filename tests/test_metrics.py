"""
Metrics Tests

Validates run recording, aggregation and the /metrics report.

Test Categories:
1. TestRunMetric - RunMetric construction from pipeline reports
2. TestMetricsStore - Aggregation, history bound, reset
3. TestMetricsReporter - Report generation and rejection rate
"""

import time

import pytest

from postguard.metrics import (
    MetricsReporter,
    MetricsStore,
    ModelCall,
    RunMetric,
    get_metrics_store,
)
from postguard.pipeline import ClassificationOutcome, ModerationReport


def _report(*outcomes: tuple[str, bool, str | None]) -> ModerationReport:
    report = ModerationReport()
    for name, flagged, error in outcomes:
        report.append(
            ClassificationOutcome(
                model_name=name, flagged=flagged, error=error, latency_ms=100.0
            )
        )
    return report


def _run(status, calls, decided_by=None, latency_ms=200.0) -> RunMetric:
    return RunMetric(
        timestamp=time.time(),
        status=status,
        latency_ms=latency_ms,
        calls=[ModelCall(name, flagged, failed, 100.0) for name, flagged, failed in calls],
        decided_by=decided_by,
    )


class TestRunMetric:
    """Tests for RunMetric."""

    def test_from_report(self):
        report = _report(("hate-speech", False, None), ("toxicity", True, None))

        metric = RunMetric.from_report("rejected", report, 250.0, decided_by="toxicity")

        assert metric.status == "rejected"
        assert metric.models_invoked == 2
        assert metric.decided_by == "toxicity"
        assert [c.model_name for c in metric.calls] == ["hate-speech", "toxicity"]
        assert metric.calls[1].flagged is True

    def test_from_failed_report_marks_failed_call(self):
        report = _report(("hate-speech", False, "Model failed: overloaded"))

        metric = RunMetric.from_report("failed", report, 50.0, decided_by="hate-speech")

        assert metric.calls[0].failed is True


class TestMetricsStore:
    """Tests for MetricsStore aggregation."""

    def test_empty_store(self):
        agg = MetricsStore().get_aggregated()

        assert agg.total_requests == 0
        assert agg.statuses == {}
        assert agg.requests_by_model == {}

    def test_counts_by_status_and_model(self):
        store = MetricsStore()
        store.record(_run("approved", [("hate-speech", False, False), ("toxicity", False, False)]))
        store.record(_run("rejected", [("hate-speech", True, False)], decided_by="hate-speech"))
        store.record(_run("failed", [("hate-speech", False, True)], decided_by="hate-speech"))

        agg = store.get_aggregated()

        assert agg.total_requests == 3
        assert agg.statuses == {"approved": 1, "rejected": 1, "failed": 1}
        assert agg.rejections_by_model == {"hate-speech": 1}
        assert agg.requests_by_model["hate-speech"].count == 3
        assert agg.requests_by_model["hate-speech"].flagged == 1
        assert agg.requests_by_model["hate-speech"].errors == 1
        assert agg.requests_by_model["toxicity"].count == 1
        assert agg.total_model_calls == 4

    def test_snapshot_is_a_copy(self):
        store = MetricsStore()
        store.record(_run("approved", [("toxicity", False, False)]))

        agg = store.get_aggregated()
        agg.requests_by_model["toxicity"].latencies.append(9999.0)

        assert store.get_aggregated().requests_by_model["toxicity"].latencies == [100.0]

    def test_history_is_bounded(self):
        store = MetricsStore(max_history=3)
        for _ in range(5):
            store.record(_run("approved", [("toxicity", False, False)]))

        assert len(store.get_recent(10)) == 3
        assert store.get_aggregated().total_requests == 5
        assert len(store.get_aggregated().run_latencies) == 3

    def test_reset(self):
        store = MetricsStore()
        store.record(_run("approved", [("toxicity", False, False)]))
        store.reset()

        assert store.get_aggregated().total_requests == 0
        assert store.get_recent() == []

    def test_global_store_is_singleton(self):
        assert get_metrics_store() is get_metrics_store()


class TestMetricsReporter:
    """Tests for MetricsReporter."""

    def test_empty_report(self):
        report = MetricsReporter(MetricsStore()).generate_report()

        assert report.total_requests == 0
        assert report.avg_models_per_request == 0.0
        assert report.avg_screening_latency_ms == 0.0

    def test_report_values(self):
        store = MetricsStore()
        store.record(
            _run("approved", [("hate-speech", False, False), ("toxicity", False, False)],
                 latency_ms=300.0)
        )
        store.record(
            _run("rejected", [("hate-speech", True, False)], decided_by="hate-speech",
                 latency_ms=100.0)
        )

        report = MetricsReporter(store).generate_report()

        assert report.total_requests == 2
        assert report.approved == 1
        assert report.rejected == 1
        assert report.failed == 0
        assert report.rejections_by_model == {"hate-speech": 1}
        assert report.requests_by_model["hate-speech"].invocation_count == 2
        assert report.requests_by_model["hate-speech"].flagged_count == 1
        assert report.requests_by_model["toxicity"].avg_latency_ms == 100.0
        assert report.avg_screening_latency_ms == 200.0
        assert report.avg_models_per_request == 1.5

    @pytest.mark.parametrize(
        "statuses, expected",
        [
            ([], 0.0),
            (["approved", "approved", "rejected", "approved"], 25.0),
            (["rejected", "failed"], 100.0),
        ],
    )
    def test_rejection_rate_ignores_failed_runs(self, statuses, expected):
        store = MetricsStore()
        for status in statuses:
            store.record(_run(status, [("hate-speech", status == "rejected", False)]))

        assert MetricsReporter(store).get_rejection_rate() == expected
