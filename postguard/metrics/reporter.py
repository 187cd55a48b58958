"""
Metrics Reporter for API Responses

Transforms raw aggregated metrics into the /metrics response with
computed averages.
"""

from postguard.metrics.store import get_metrics_store, MetricsStore
from postguard.schemas.moderation import ClassifierMetrics, MetricsResponse


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class MetricsReporter:
    """
    Generate metrics reports from aggregated data.

    Example:
        reporter = MetricsReporter()
        return reporter.generate_report()  # Ready for JSON serialization
    """

    def __init__(self, store: MetricsStore | None = None):
        """
        Initialize the reporter.

        Args:
            store: MetricsStore instance to report from.
                   If None, uses the global singleton.
        """
        self._store = store or get_metrics_store()

    def generate_report(self) -> MetricsResponse:
        """
        Generate a complete metrics report.

        Returns:
            MetricsResponse ready for API serialization
        """
        agg = self._store.get_aggregated()

        models: dict[str, ClassifierMetrics] = {
            name: ClassifierMetrics(
                model=name,
                invocation_count=data.count,
                flagged_count=data.flagged,
                error_count=data.errors,
                avg_latency_ms=round(_mean(data.latencies), 2),
            )
            for name, data in agg.requests_by_model.items()
        }

        avg_models = (
            agg.total_model_calls / agg.total_requests if agg.total_requests else 0.0
        )

        return MetricsResponse(
            total_requests=agg.total_requests,
            approved=agg.statuses.get("approved", 0),
            rejected=agg.statuses.get("rejected", 0),
            failed=agg.statuses.get("failed", 0),
            rejections_by_model=dict(agg.rejections_by_model),
            requests_by_model=models,
            avg_screening_latency_ms=round(_mean(agg.run_latencies), 2),
            avg_models_per_request=round(avg_models, 2),
        )

    def get_rejection_rate(self) -> float:
        """
        Percentage of decided runs (approved + rejected) that were rejected.
        """
        agg = self._store.get_aggregated()
        rejected = agg.statuses.get("rejected", 0)
        decided = rejected + agg.statuses.get("approved", 0)
        return round(rejected / decided * 100, 1) if decided else 0.0
