"""
Execution of generated statements on a caller-supplied connection.

The executor never commits or rolls back: the statement runs inside whatever
transaction the caller has open, and transaction boundaries stay the
caller's decision.
"""

import logging
import time
from typing import Any

from opentelemetry import trace

from utils.metrics import EXECUTION_SECONDS, STATEMENTS_EXECUTED
from utils.tracing import trace_operation

from .errors import ExecutionError
from .models import GeneratedStatement

logger = logging.getLogger(__name__)


class StatementExecutor:
    """Runs generated DML on a DB-API connection."""

    def __init__(self, connection: Any):
        """
        Args:
            connection: psycopg2 or pyodbc connection
        """
        self.connection = connection

    def execute(self, statement: GeneratedStatement | str) -> int:
        """
        Execute one statement.

        Args:
            statement: Generated statement (or raw SQL text)

        Returns:
            Number of rows affected as reported by the driver (-1 if unknown)

        Raises:
            ExecutionError: If the database rejects the statement; the driver
                exception is chained as the cause
        """
        text = str(statement)
        kind = statement.kind.value if isinstance(statement, GeneratedStatement) else "RAW"

        with trace_operation(
            f"db.{kind.lower()}",
            kind=trace.SpanKind.CLIENT,
            **{"db.operation": kind, "component": "database"},
        ) as span:
            start = time.perf_counter()
            cursor = None
            try:
                cursor = self.connection.cursor()
                cursor.execute(text)
                rowcount = cursor.rowcount
            except Exception as e:
                STATEMENTS_EXECUTED.labels(kind=kind, status="failure").inc()
                logger.error("%s failed: %s", kind, e)
                raise ExecutionError(text, e) from e
            finally:
                if cursor is not None:
                    cursor.close()
                EXECUTION_SECONDS.labels(kind=kind).observe(time.perf_counter() - start)

            STATEMENTS_EXECUTED.labels(kind=kind, status="success").inc()
            span.set_attribute("db.rowcount", rowcount)

        logger.info("%s affected %s row(s)", kind, rowcount)
        return rowcount
