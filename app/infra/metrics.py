"""Prometheus metrics export."""

from prometheus_client import Counter, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Request metrics
chat_requests_total = Counter(
    "chat_requests_total",
    "Total chat requests",
    ["status"],  # completed, errored, rejected
)

# LLM metrics
llm_calls_total = Counter(
    "llm_calls_total",
    "Total LLM API calls",
    ["model", "status"],
)

# Tool metrics
tool_calls_total = Counter(
    "tool_calls_total",
    "Total tool calls",
    ["tool_name", "provider", "status"],
)

# Provider metrics
provider_connections_total = Counter(
    "provider_connections_total",
    "Tool provider connection attempts",
    ["provider", "status"],
)

tool_discovery_total = Counter(
    "tool_discovery_total",
    "Tool catalog discovery calls",
    ["provider", "status"],
)


def get_metrics_response() -> Response:
    """Get Prometheus metrics as HTTP response."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
