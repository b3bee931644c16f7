"""OpenTelemetry configuration for the Restore Log application."""

import sys

from fastapi import FastAPI
from opentelemetry import metrics, trace
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from prometheus_client import start_http_server

from .config import settings
from .logging_config import get_logger

logger = get_logger(__name__)

tracer = trace.get_tracer(__name__)


def setup_telemetry(app: FastAPI) -> None:
    """Configure OpenTelemetry tracing and metrics for the FastAPI application."""
    if not settings.enable_telemetry:
        return

    # Exporters hold sockets and background threads open across tests
    if "pytest" in sys.modules:
        logger.info("Skipping OpenTelemetry setup during tests")
        return

    try:
        prometheus_reader = PrometheusMetricReader()
        metrics.set_meter_provider(MeterProvider(metric_readers=[prometheus_reader]))

        start_http_server(settings.metrics_port)
        logger.info("Prometheus metrics server started", port=settings.metrics_port)

        tracer_provider = TracerProvider()
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        trace.set_tracer_provider(tracer_provider)

        FastAPIInstrumentor.instrument_app(app)
        SQLAlchemyInstrumentor().instrument()

        logger.info("OpenTelemetry tracing and metrics setup completed")

    except OSError as e:
        # Don't fail the application if the metrics port is taken
        logger.error("Failed to setup OpenTelemetry", error=str(e))
