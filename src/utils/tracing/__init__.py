"""
Distributed tracing using OpenTelemetry.

Spans wrap precondition checks, statement generation and statement
execution so a merge run can be followed end to end.
"""

from .context import add_span_attributes, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
]
