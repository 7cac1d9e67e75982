"""Prometheus metrics for the application."""

from prometheus_client import Counter, Info, generate_latest
from starlette.responses import Response

APP_INFO = Info("ai_visibility", "AI visibility tracker application info")
APP_INFO.info({"version": "1.0.0", "name": "ai_visibility"})

PROVIDER_CALLS = Counter(
    "provider_calls_total",
    "AI provider calls by outcome",
    ["platform", "outcome"],  # outcome: success | empty | error
)

PROCESSING_RUNS = Counter(
    "processing_runs_total",
    "Batch processing runs",
    ["status"],  # completed | no_results
)

RELAY_REQUESTS = Counter(
    "relay_requests_total",
    "Requests forwarded through the relay endpoint",
    ["status"],
)


def metrics_response() -> Response:
    """Generate Prometheus /metrics response."""
    return Response(
        content=generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
