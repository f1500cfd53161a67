"""
System catalog readers.

- PostgresCatalog: information_schema over a psycopg2 connection
- SQLServerCatalog: INFORMATION_SCHEMA over a pyodbc connection
- StaticCatalog: in-memory table definitions
"""

from typing import Any

from utils.database_types import DatabaseType

from .base import Catalog, ConnectionCatalog
from .postgres import PostgresCatalog
from .sqlserver import SQLServerCatalog
from .static import StaticCatalog, TableDefinition


def catalog_for_connection(
    connection: Any, dialect: DatabaseType | str | None = None
) -> ConnectionCatalog:
    """
    Build the catalog reader matching a DB-API connection.

    Args:
        connection: psycopg2 or pyodbc connection
        dialect: Explicit dialect (detected from the connection when None)

    Returns:
        PostgresCatalog or SQLServerCatalog
    """
    if dialect is None:
        dialect = DatabaseType.from_connection(connection)
    dialect = DatabaseType.parse(dialect)

    if dialect == DatabaseType.SQLSERVER:
        return SQLServerCatalog(connection)
    return PostgresCatalog(connection)


__all__ = [
    "Catalog",
    "ConnectionCatalog",
    "PostgresCatalog",
    "SQLServerCatalog",
    "StaticCatalog",
    "TableDefinition",
    "catalog_for_connection",
]
