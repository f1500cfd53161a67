"""
Error taxonomy for automatic merge / delete generation.

Every failure carries a SQLSTATE. ExecutionError copies the driver's state;
the precondition errors use fixed codes.
"""

from typing import Any


class MergeError(Exception):
    """Base exception for automerge errors."""

    sqlstate: str | None = None

    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        if sqlstate is not None:
            self.sqlstate = sqlstate


class TableNotFoundError(MergeError):
    """Raised when the source or destination table is absent from the catalog."""

    sqlstate = "42704"

    def __init__(self, schema: str, table: str):
        super().__init__(f"Table {schema}.{table} does not exist")
        self.schema = schema
        self.table = table


class NoKeyError(MergeError):
    """Raised when a destination table has no primary key to default to."""

    sqlstate = "90010"

    def __init__(self, schema: str, table: str):
        super().__init__(f"Table {schema}.{table} has no primary key")
        self.schema = schema
        self.table = table


class PartialKeyError(MergeError):
    """Raised when the key's columns do not all exist in source and destination."""

    sqlstate = "90011"

    def __init__(self, constraint: str, missing: list[str] | None = None):
        message = (
            f"All fields of constraint {constraint} must exist in the source "
            f"and the target tables"
        )
        if missing:
            message += f" (missing: {', '.join(missing)})"
        super().__init__(message)
        self.constraint = constraint
        self.missing = list(missing or [])


class SameTableError(MergeError):
    """Raised when source and destination are the same table."""

    sqlstate = "90012"

    def __init__(self, schema: str, table: str):
        super().__init__("Source and destination tables cannot be the same")
        self.schema = schema
        self.table = table


class NoCurrentSchemaError(MergeError):
    """Raised when a schema must be defaulted but the session has none."""

    sqlstate = "3F000"

    def __init__(self):
        super().__init__("Session has no current schema to default to")


class ExecutionError(MergeError):
    """
    Raised when the database rejects a generated statement.

    The driver exception is chained as ``__cause__`` and its SQLSTATE (psycopg2
    ``pgcode``, pyodbc ``args[0]``) is copied when available.
    """

    def __init__(self, statement: str, cause: BaseException):
        super().__init__(
            f"Statement failed: {cause}", sqlstate=_driver_sqlstate(cause)
        )
        self.statement = statement
        self.cause = cause


def _driver_sqlstate(exc: BaseException) -> str | None:
    pgcode: Any = getattr(exc, "pgcode", None)
    if pgcode:
        return str(pgcode)
    # pyodbc errors are raised as (sqlstate, message)
    args = getattr(exc, "args", ())
    if len(args) >= 2 and isinstance(args[0], str) and len(args[0]) == 5:
        return args[0]
    return None
