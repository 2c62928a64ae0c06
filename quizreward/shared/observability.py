import logging
import os

# --- OTel & Observability Imports ---
from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

# --- Prometheus Import ---
from prometheus_client import start_http_server

from quizreward.config import RewardConfig

logger = logging.getLogger(__name__)


def configure_observability(metrics_port: int | None = None) -> bool:
    """
    Configures OpenTelemetry to send Traces and Logs via OTLP and starts a
    background Prometheus server for Metrics.

    Returns True when the OTLP exporters were installed.
    """
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    headers = os.getenv("OTEL_EXPORTER_OTLP_HEADERS")

    exporters_installed = False
    if not endpoint or not headers:
        logger.warning(
            "⚠️ OTEL env vars not set. Traces and logs stay local."
        )
    else:
        resource = Resource.create({"service.name": RewardConfig.SERVICE_NAME})

        # --- A. TRACING ---
        trace_provider = TracerProvider(resource=resource)
        otlp_trace_exporter = OTLPSpanExporter(endpoint=endpoint, headers=headers)
        trace_provider.add_span_processor(BatchSpanProcessor(otlp_trace_exporter))
        trace.set_tracer_provider(trace_provider)

        # --- B. LOGGING ---
        logger_provider = LoggerProvider(resource=resource)
        otlp_log_exporter = OTLPLogExporter(endpoint=endpoint, headers=headers)
        logger_provider.add_log_record_processor(
            BatchLogRecordProcessor(otlp_log_exporter)
        )
        set_logger_provider(logger_provider)

        handler = LoggingHandler(level=logging.INFO, logger_provider=logger_provider)
        logging.getLogger().addHandler(handler)
        exporters_installed = True

    # --- C. METRICS (Prometheus) ---
    port = RewardConfig.METRICS_PORT if metrics_port is None else metrics_port
    if port > 0:
        try:
            start_http_server(port)
            logger.info(f"✅ Prometheus metrics server started on port {port}")
        except OSError:
            logger.warning(f"⚠️ Prometheus port {port} already in use. Skipping.")

    return exporters_installed
