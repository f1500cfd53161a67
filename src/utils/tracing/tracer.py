"""
Tracer initialization and configuration for OpenTelemetry.

Tracing is a no-op until initialize_tracing() is called with an exporter;
spans created through get_tracer() before that go to the default
(non-recording) provider.
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

TRACER_NAME = "automerge"

_is_initialized = False


def initialize_tracing(
    service_name: str = "automerge",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Initialize distributed tracing with OpenTelemetry.

    Args:
        service_name: Name of the service for identification
        otlp_endpoint: OTLP collector endpoint (default: $OTLP_ENDPOINT, unset disables OTLP)
        console_export: If True, also export traces to console (debug)

    Returns:
        Configured tracer instance
    """
    global _is_initialized

    if _is_initialized:
        logger.warning("Tracing already initialized, returning existing tracer")
        return get_tracer()

    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    exporters = []

    otlp_endpoint = otlp_endpoint or os.getenv("OTLP_ENDPOINT")
    if otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
        exporters.append("OTLP")
        logger.info("OTLP exporter configured: %s", otlp_endpoint)

    if console_export or os.getenv("TRACE_CONSOLE", "").lower() == "true":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        exporters.append("Console")

    if not exporters:
        logger.warning("No trace exporters configured, tracing will be a no-op")

    trace.set_tracer_provider(provider)
    _is_initialized = True

    logger.info(
        "Tracing initialized: %s (exporters: %s)",
        service_name, ", ".join(exporters) or "none",
    )
    return get_tracer()


def get_tracer() -> trace.Tracer:
    """Get the package tracer from the current global provider."""
    return trace.get_tracer(TRACER_NAME)


def shutdown_tracing() -> None:
    """Flush pending spans and shut the provider down."""
    global _is_initialized

    if not _is_initialized:
        return

    provider = trace.get_tracer_provider()
    if hasattr(provider, "shutdown"):
        provider.shutdown()
    _is_initialized = False
    logger.info("Tracing shutdown complete")
