"""Prometheus metrics for the relay."""

from prometheus_client import CollectorRegistry, Counter

# Registry for isolated metric collection
CUSTOM_REGISTRY = CollectorRegistry()

REQUESTS = Counter("chat_requests_total", "Total chat relay requests", registry=CUSTOM_REGISTRY)
ERRORS = Counter("chat_errors_total", "Chat requests failed before streaming", registry=CUSTOM_REGISTRY)
FRAMES = Counter("relay_frames_total", "Frames written to the outbound stream", registry=CUSTOM_REGISTRY)
MALFORMED_FRAMES = Counter(
    "relay_malformed_frames_total", "Upstream frames skipped as unparseable", registry=CUSTOM_REGISTRY
)
