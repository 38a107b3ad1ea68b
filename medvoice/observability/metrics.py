# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Observability - Metrics Module

Prometheus metrics for:
- Request latency and throughput
- LLM provider performance and token usage
- Text-to-speech synthesis
- Conversation traffic

Each registry owns its own CollectorRegistry so that re-initialising
(tests, app factory reloads) never collides with previously registered
collectors.
"""

import logging

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

logger = logging.getLogger(__name__)


# ============================================================
# METRIC DEFINITIONS
# ============================================================

# Default buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
    30.0,
    60.0,
    120.0,
)

# Token count buckets
TOKEN_BUCKETS = (10, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 25000)


class MetricsRegistry:
    """Central metrics registry for MedVoice."""

    def __init__(self, namespace: str = "medvoice"):
        self.namespace = namespace
        self.registry = CollectorRegistry()
        self._init_prometheus_metrics()

    def _init_prometheus_metrics(self):
        ns = self.namespace
        reg = self.registry

        # ============================================================
        # HTTP REQUEST METRICS
        # ============================================================

        self.http_requests_total = Counter(
            f"{ns}_http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=reg,
        )

        self.http_request_duration_seconds = Histogram(
            f"{ns}_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=LATENCY_BUCKETS,
            registry=reg,
        )

        # ============================================================
        # LLM PROVIDER METRICS
        # ============================================================

        self.provider_requests_total = Counter(
            f"{ns}_provider_requests_total",
            "Total LLM provider requests",
            ["provider", "model", "status"],
            registry=reg,
        )

        self.provider_duration_seconds = Histogram(
            f"{ns}_provider_duration_seconds",
            "LLM provider request duration in seconds",
            ["provider", "model"],
            buckets=LATENCY_BUCKETS,
            registry=reg,
        )

        self.provider_errors_total = Counter(
            f"{ns}_provider_errors_total",
            "Total LLM provider errors",
            ["provider", "error_type"],
            registry=reg,
        )

        self.provider_tokens = Histogram(
            f"{ns}_provider_tokens",
            "Tokens per LLM request",
            ["provider", "direction"],
            buckets=TOKEN_BUCKETS,
            registry=reg,
        )

        # ============================================================
        # VOICE / CONVERSATION METRICS
        # ============================================================

        self.tts_syntheses_total = Counter(
            f"{ns}_tts_syntheses_total",
            "Total text-to-speech synthesis attempts",
            ["provider", "status"],
            registry=reg,
        )

        self.conversation_messages_total = Counter(
            f"{ns}_conversation_messages_total",
            "Total conversation messages processed",
            ["outcome"],
            registry=reg,
        )

        self.app_info = Info(
            f"{ns}_app",
            "Application information",
            registry=reg,
        )

    def set_app_info(self, version: str, environment: str, **kwargs):
        """Set application info."""
        self.app_info.info({"version": version, "environment": environment, **kwargs})

    # ============================================================
    # RECORDING METHODS
    # ============================================================

    def record_http_request(
        self,
        method: str,
        endpoint: str,
        status_code: int,
        duration_seconds: float,
    ):
        """Record an HTTP request."""
        self.http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code),
        ).inc()
        self.http_request_duration_seconds.labels(
            method=method,
            endpoint=endpoint,
        ).observe(duration_seconds)

    def record_provider_request(
        self,
        provider: str,
        model: str,
        status: str,
        duration_seconds: float,
        tokens_input: int = 0,
        tokens_output: int = 0,
    ):
        """Record an LLM provider request."""
        self.provider_requests_total.labels(
            provider=provider,
            model=model,
            status=status,
        ).inc()
        self.provider_duration_seconds.labels(
            provider=provider,
            model=model,
        ).observe(duration_seconds)

        if tokens_input > 0:
            self.provider_tokens.labels(provider=provider, direction="input").observe(tokens_input)
        if tokens_output > 0:
            self.provider_tokens.labels(provider=provider, direction="output").observe(
                tokens_output
            )

    def record_provider_error(self, provider: str, error_type: str):
        """Record an LLM provider error."""
        self.provider_errors_total.labels(provider=provider, error_type=error_type).inc()

    def record_tts_synthesis(self, provider: str, success: bool):
        self.tts_syntheses_total.labels(
            provider=provider,
            status="success" if success else "error",
        ).inc()

    def record_conversation_message(self, outcome: str):
        # outcome: "ai", "fallback"
        self.conversation_messages_total.labels(outcome=outcome).inc()

    # ============================================================
    # EXPOSITION
    # ============================================================

    def generate_latest(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST


# ============================================================
# GLOBAL REGISTRY
# ============================================================

_metrics: MetricsRegistry | None = None


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics


def init_metrics(
    namespace: str = "medvoice",
    app_version: str = "0.0.0",
    environment: str = "development",
) -> MetricsRegistry:
    """Initialize the global metrics registry."""
    global _metrics
    _metrics = MetricsRegistry(namespace=namespace)
    _metrics.set_app_info(version=app_version, environment=environment)
    logger.info(f"Metrics initialized (namespace={namespace})")
    return _metrics


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "MetricsRegistry",
    "get_metrics",
    "init_metrics",
    "LATENCY_BUCKETS",
    "TOKEN_BUCKETS",
]
