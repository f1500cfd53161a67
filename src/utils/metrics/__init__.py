"""
Prometheus metrics for statement generation and execution

Usage:
    from utils.metrics import STATEMENTS_EXECUTED

    STATEMENTS_EXECUTED.labels(kind="MERGE", status="success").inc()
"""

import logging
from typing import Callable, TypeVar

from prometheus_client import CollectorRegistry, REGISTRY

logger = logging.getLogger(__name__)

# Type variable for metric types
T = TypeVar("T")


def get_or_create_metric(
    metric_factory: Callable[[], T],
    metric_name: str,
    registry: CollectorRegistry = REGISTRY,
) -> T:
    """
    Create a metric or return the one already registered under the same name.

    Re-importing a module (test reloads, interactive sessions) would otherwise
    fail with "Duplicated timeseries in CollectorRegistry".

    Args:
        metric_factory: Callable that creates the metric (e.g., lambda: Counter(...))
        metric_name: Name of the metric for lookup if already registered
        registry: Prometheus registry to use (default: global REGISTRY)

    Returns:
        The metric instance (either newly created or existing)
    """
    try:
        return metric_factory()
    except ValueError:
        existing = registry._names_to_collectors.get(metric_name)
        if existing is not None:
            return existing
        raise


from .merge import (  # noqa: E402
    EXECUTION_SECONDS,
    PRECONDITION_FAILURES,
    STATEMENTS_EXECUTED,
    STATEMENTS_GENERATED,
)

__all__ = [
    "get_or_create_metric",
    "STATEMENTS_GENERATED",
    "STATEMENTS_EXECUTED",
    "PRECONDITION_FAILURES",
    "EXECUTION_SECONDS",
]
