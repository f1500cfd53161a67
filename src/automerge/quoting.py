"""
SQL identifier quoting for generated statements.

Catalog-supplied names are always emitted as delimited identifiers with the
delimiter character doubled, so mixed-case names, names with spaces and names
containing quote characters round-trip exactly and cannot break out of the
identifier. Nothing is rejected except names no database can hold.
"""

from typing import Any

from psycopg2 import sql

from utils.database_types import DatabaseType

from .models import TableRef


def validate_identifier(identifier: str) -> None:
    """
    Validate a raw (unquoted) SQL identifier.

    Args:
        identifier: The identifier to validate

    Raises:
        ValueError: If the identifier is empty or contains a NUL character
    """
    if not isinstance(identifier, str):
        raise ValueError(f"SQL identifier must be a string, got {type(identifier).__name__}")
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")
    if "\x00" in identifier:
        raise ValueError(f"Invalid SQL identifier: {identifier!r} contains NUL")


def _quote_postgres_identifier(identifier: str, connection: Any = None) -> str:
    """
    Quote a PostgreSQL identifier.

    Uses psycopg2.sql.Identifier when a connection (or cursor) is available so
    quoting follows the server's own rules; otherwise doubles embedded quotes.
    """
    if connection is not None:
        return sql.Identifier(identifier).as_string(connection)
    escaped = identifier.replace('"', '""')
    return f'"{escaped}"'


def _quote_sqlserver_identifier(identifier: str) -> str:
    """Quote a SQL Server identifier with brackets, doubling any closing bracket."""
    escaped = identifier.replace("]", "]]")
    return f"[{escaped}]"


def quote_identifier(
    identifier: str,
    dialect: DatabaseType | str = DatabaseType.POSTGRESQL,
    connection: Any = None,
) -> str:
    """
    Safely quote a single SQL identifier.

    Args:
        identifier: Column, table or schema name exactly as stored in the catalog
        dialect: Target SQL dialect
        connection: Optional psycopg2 connection/cursor for server-side quoting rules

    Returns:
        Delimited identifier safe for interpolation into SQL text

    Raises:
        ValueError: If the identifier is invalid
    """
    validate_identifier(identifier)
    dialect = DatabaseType.parse(dialect)

    if dialect == DatabaseType.SQLSERVER:
        return _quote_sqlserver_identifier(identifier)
    return _quote_postgres_identifier(identifier, connection)


def quote_table(
    table: TableRef,
    dialect: DatabaseType | str = DatabaseType.POSTGRESQL,
    connection: Any = None,
) -> str:
    """
    Quote a schema-qualified table reference, e.g. ``"public"."customers"``.

    Args:
        table: Table reference
        dialect: Target SQL dialect
        connection: Optional psycopg2 connection/cursor

    Returns:
        Quoted ``schema.table`` string
    """
    return (
        f"{quote_identifier(table.schema, dialect, connection)}."
        f"{quote_identifier(table.name, dialect, connection)}"
    )
