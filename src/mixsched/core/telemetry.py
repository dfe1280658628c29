# src/mixsched/core/telemetry.py
"""Initializes OpenTelemetry metrics for the admission webhook."""

import logging
import os

from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource

logger = logging.getLogger(__name__)

# Default: http://localhost:4318. In k8s, this would be http://otel-collector.<ns>.svc.cluster.local:4318
OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318")


def initialize_telemetry():
    """
    Configures the MeterProvider so admission counters are exported via OTLP/HTTP.
    Until this is called the counters below record into a no-op meter.
    """
    resource = Resource(attributes={SERVICE_NAME: "mixsched-webhook"})
    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=f"{OTEL_EXPORTER_OTLP_ENDPOINT}/v1/metrics")
    )
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[metric_reader]))
    logger.info(f"OpenTelemetry initialized. Exporting to: {OTEL_EXPORTER_OTLP_ENDPOINT}")


meter = metrics.get_meter("mixsched.meter")

admission_counter = meter.create_counter(
    "mixsched.admission.requests",
    unit="1",
    description="Admission requests handled, by kind, operation and verdict.",
)
