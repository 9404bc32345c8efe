"""
OpenTelemetry setup for the timelens pipeline.

Tracing and metrics are exported over OTLP only when OTEL_ENABLED is set.
Until setup_telemetry installs providers, the OpenTelemetry API hands out
no-op tracers and meters, so instrumented code runs unchanged in tests.
"""

import logging
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from .config import settings

logger = logging.getLogger(__name__)

_INSTRUMENTATION_NAME = "timelens"


def setup_telemetry(service_name: str, service_version: str = "1.0.0"):
    """
    Set up OpenTelemetry tracing and metrics.

    Args:
        service_name: Name of the service (e.g., 'timelens-cli')
        service_version: Version of the service
    """
    if not settings.otel_enabled:
        logger.info("OpenTelemetry is disabled")
        return

    resource = Resource.create(
        {
            SERVICE_NAME: service_name,
            SERVICE_VERSION: service_version,
            "deployment.environment": settings.environment,
        }
    )

    try:
        tracer_provider = TracerProvider(resource=resource)
        span_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))
        trace.set_tracer_provider(tracer_provider)
        logger.info(
            "Tracing enabled, exporting to %s", settings.otel_exporter_otlp_endpoint
        )
    except Exception as e:
        logger.warning("Failed to set up tracing: %s", e)

    try:
        metric_reader = PeriodicExportingMetricReader(
            OTLPMetricExporter(
                endpoint=settings.otel_exporter_otlp_endpoint,
                insecure=True,
            ),
            export_interval_millis=60000,
        )
        metrics.set_meter_provider(
            MeterProvider(resource=resource, metric_readers=[metric_reader])
        )
        logger.info("Metrics enabled")
    except Exception as e:
        logger.warning("Failed to set up metrics: %s", e)


def get_tracer():
    """Get a tracer from the current provider (no-op until one is installed)."""
    return trace.get_tracer(_INSTRUMENTATION_NAME)


def get_meter():
    """Get a meter from the current provider (no-op until one is installed)."""
    return metrics.get_meter(_INSTRUMENTATION_NAME)


class PipelineMetrics:
    """Upload/poll/query metrics."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        meter = get_meter()

        # Counters
        self.uploads = meter.create_counter(
            name="timelens.uploads",
            description="Number of media uploads submitted",
            unit="1",
        )

        self.status_polls = meter.create_counter(
            name="timelens.status_polls",
            description="Number of processing status fetches",
            unit="1",
        )

        self.processing_failures = meter.create_counter(
            name="timelens.processing_failures",
            description="Assets the backend reported as FAILED",
            unit="1",
        )

        self.schema_violations = meter.create_counter(
            name="timelens.schema_violations",
            description="Model responses rejected by function-call validation",
            unit="1",
        )

        # Histograms
        self.processing_wait = meter.create_histogram(
            name="timelens.processing_wait",
            description="Time from first poll until READY",
            unit="ms",
        )

        self._initialized = True

    def record_upload(self, mime_type: str):
        self.uploads.add(1, {"mime_type": mime_type})

    def record_poll(self, state: str):
        self.status_polls.add(1, {"state": state})

    def record_processing_failure(self):
        self.processing_failures.add(1)

    def record_schema_violation(self, reason: str):
        """Record a rejected model response."""
        self.schema_violations.add(1, {"reason": reason})

    def record_processing_wait(self, duration_ms: float, attributes: dict[str, Any] | None = None):
        self.processing_wait.record(duration_ms, attributes or {})
