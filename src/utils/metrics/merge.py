"""
Metrics for generated MERGE / DELETE statements.
"""

from prometheus_client import Counter, Histogram

from . import get_or_create_metric

STATEMENTS_GENERATED = get_or_create_metric(
    lambda: Counter(
        "automerge_statements_generated_total",
        "Statements rendered by the statement builders",
        ["kind", "dialect"],
    ),
    "automerge_statements_generated",
)

STATEMENTS_EXECUTED = get_or_create_metric(
    lambda: Counter(
        "automerge_statements_executed_total",
        "Statements handed to the database",
        ["kind", "status"],
    ),
    "automerge_statements_executed",
)

PRECONDITION_FAILURES = get_or_create_metric(
    lambda: Counter(
        "automerge_precondition_failures_total",
        "Merge/delete requests rejected before any statement was built",
        ["error_type"],
    ),
    "automerge_precondition_failures",
)

EXECUTION_SECONDS = get_or_create_metric(
    lambda: Histogram(
        "automerge_execution_seconds",
        "Time spent executing generated statements",
        ["kind"],
        buckets=[0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 300, 900],
    ),
    "automerge_execution_seconds",
)
