"""
Prometheus Metrics

Defines and exports metrics for monitoring the relay.
"""

from prometheus_client import Counter, Histogram

# Singleton metrics instance
_metrics: "Metrics | None" = None


class Metrics:
    """
    Prometheus metrics for the relay.

    Tracks:
    - Inbound Slack events by outcome
    - Assistant runs by terminal status and duration
    - Web search escalations
    - Reply deliveries
    - Outbound HTTP retries
    """

    def __init__(self):
        self.events_total = Counter(
            "assistant_relay_events_total",
            "Inbound Slack message events by handling outcome",
            ["outcome"],
        )

        self.assistant_runs_total = Counter(
            "assistant_relay_assistant_runs_total",
            "Assistant runs by final status",
            ["status"],
        )

        self.assistant_run_duration_seconds = Histogram(
            "assistant_relay_assistant_run_duration_seconds",
            "Time from run start to terminal status",
            ["status"],
            buckets=[0.5, 1, 2, 5, 10, 20, 30, 60, 120, 300],
        )

        self.escalations_total = Counter(
            "assistant_relay_escalations_total",
            "Web search escalations by outcome",
            ["outcome"],
        )

        self.replies_total = Counter(
            "assistant_relay_replies_total",
            "Reply delivery attempts by status",
            ["status"],
        )

        self.http_retries_total = Counter(
            "assistant_relay_http_retries_total",
            "Outbound HTTP retries by operation and reason",
            ["operation", "reason"],
        )

    def record_event(self, outcome: str) -> None:
        self.events_total.labels(outcome=outcome).inc()

    def record_run(self, status: str, duration_seconds: float) -> None:
        self.assistant_runs_total.labels(status=status).inc()
        self.assistant_run_duration_seconds.labels(status=status).observe(duration_seconds)

    def record_escalation(self, outcome: str) -> None:
        self.escalations_total.labels(outcome=outcome).inc()

    def record_reply(self, delivered: bool) -> None:
        self.replies_total.labels(status="delivered" if delivered else "failed").inc()

    def record_http_retry(self, operation: str, reason: str) -> None:
        self.http_retries_total.labels(operation=operation, reason=reason).inc()


def get_metrics() -> Metrics:
    """Get or create the singleton metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = Metrics()
    return _metrics
