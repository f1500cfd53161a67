"""
Context managers for span management.
"""

from contextlib import contextmanager

from opentelemetry import trace

from .tracer import get_tracer


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Context manager for tracing operations.

    Creates a span, stringifies the given attributes onto it, records
    any exception raised inside the block and re-raises it. A MergeError's
    SQLSTATE is kept as ``error.sqlstate``.

    Args:
        operation_name: Name of the operation being traced
        kind: Span kind (INTERNAL, CLIENT, SERVER, etc.)
        **attributes: Custom attributes to add to the span

    Yields:
        Span instance for adding custom events/attributes

    Example:
        >>> with trace_operation("automerge.build_merge", destination="public.t") as span:
        ...     statement = build_merge(...)
        ...     span.set_attribute("payload_columns", 3)
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(operation_name, kind=kind) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            sqlstate = getattr(e, "sqlstate", None)
            if sqlstate:
                span.set_attribute("error.sqlstate", sqlstate)
            span.record_exception(e)
            raise


def add_span_attributes(**attributes):
    """
    Add attributes to the current span, if one is recording.

    Args:
        **attributes: Attributes to add to current span
    """
    current_span = trace.get_current_span()
    if current_span.is_recording():
        for key, value in attributes.items():
            current_span.set_attribute(key, str(value))
