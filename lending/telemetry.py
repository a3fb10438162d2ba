"""OpenTelemetry configuration for the lending service."""

import os
import sys
from typing import Final

from opentelemetry import metrics, trace
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from prometheus_client import start_http_server

from .infrastructure.database.database import get_main_engine
from .logging_config import get_logger

logger = get_logger(__name__)

METRICS_PORTS: Final = (8080, 8081)


def telemetry_enabled() -> bool:
    """Telemetry is opt-in via ENABLE_TELEMETRY and never active under pytest."""
    if not os.getenv("ENABLE_TELEMETRY"):
        return False
    return not ("pytest" in sys.modules or os.getenv("TESTING"))


def _start_metrics_server() -> int | None:
    for port in METRICS_PORTS:
        try:
            start_http_server(port)
        except OSError:
            logger.warning("Metrics port busy", port=port)
            continue
        return port
    return None


def setup_telemetry(app) -> None:
    """Configure OpenTelemetry tracing and metrics for the FastAPI application."""
    if not telemetry_enabled():
        logger.debug("OpenTelemetry disabled")
        return

    try:
        prometheus_reader = PrometheusMetricReader()
        metrics.set_meter_provider(MeterProvider(metric_readers=[prometheus_reader]))

        port = _start_metrics_server()
        if port is None:
            logger.error("No free port for the Prometheus metrics server")
        else:
            logger.info("Prometheus metrics server started", port=port)

        # Console exporter until an OTLP collector is deployed
        tracer_provider = TracerProvider()
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        trace.set_tracer_provider(tracer_provider)

        FastAPIInstrumentor.instrument_app(app)
        SQLAlchemyInstrumentor().instrument(engine=get_main_engine())

        logger.info("OpenTelemetry tracing and metrics setup completed")
    except Exception as e:
        # The service keeps running without telemetry
        logger.error("Failed to setup OpenTelemetry", error=str(e), exc_info=True)
