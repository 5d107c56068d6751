"""Logging and OpenTelemetry configuration."""

import logging
import os
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

SERVICE_NAME = "menu-svc"
METRIC_EXPORT_INTERVAL_MS = 60_000

# Libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def _otlp_endpoint() -> str:
    return os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318").rstrip("/")


def get_service_resource() -> Resource:
    """Create the OpenTelemetry resource identifying this service.

    Returns:
        Resource with service name and environment attributes
    """
    return Resource.create(
        {
            "service.name": os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME),
            "deployment.environment": os.getenv("ENVIRONMENT", "development"),
        }
    )


def build_providers(resource: Resource, export: bool) -> tuple[TracerProvider, MeterProvider]:
    """Build tracer and meter providers, optionally exporting over OTLP/HTTP.

    Args:
        resource: Service resource attached to every span and metric
        export: Whether to attach OTLP exporters

    Returns:
        Tuple of (tracer provider, meter provider)
    """
    tracer_provider = TracerProvider(resource=resource)
    if not export:
        return tracer_provider, MeterProvider(resource=resource)

    endpoint = _otlp_endpoint()
    tracer_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces"))
    )
    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=f"{endpoint}/v1/metrics"),
        export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
    )
    logger.info(f"Exporting traces and metrics to {endpoint}")
    return tracer_provider, MeterProvider(resource=resource, metric_readers=[reader])


def setup_observability(app: Any = None, enable_exporters: bool = True) -> None:
    """Install global providers and instrument httpx, redis and FastAPI.

    Exporters are never enabled when ENVIRONMENT is "test".

    Args:
        app: Optional FastAPI application to instrument
        enable_exporters: Whether to export over OTLP
    """
    export = enable_exporters and os.getenv("ENVIRONMENT", "development") != "test"

    tracer_provider, meter_provider = build_providers(get_service_resource(), export)
    trace.set_tracer_provider(tracer_provider)
    metrics.set_meter_provider(meter_provider)

    HTTPXClientInstrumentor().instrument()
    RedisInstrumentor().instrument()

    if app is not None:
        FastAPIInstrumentor.instrument_app(app)

    logger.info(f"OpenTelemetry configured (export={export}, app={app is not None})")


def configure_logging(log_level: str = "INFO") -> None:
    """Route all logging through one JSON handler on the root logger.

    LOG_LEVEL in the environment wins over ``log_level``. Request logs from
    httpx are capped at WARNING since Square calls are already traced.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()

    handler = logging.StreamHandler()
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            timestamp=True,
            static_fields={"service": SERVICE_NAME},
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(f"JSON logging configured at {level_name}")
