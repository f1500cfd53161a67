"""SQL Server catalog reader."""

import logging

from utils.database_types import DatabaseType

from ..errors import NoCurrentSchemaError
from ..models import TableRef
from ..quoting import quote_table
from .base import ConnectionCatalog

logger = logging.getLogger(__name__)


class SQLServerCatalog(ConnectionCatalog):
    """Reads SQL Server metadata through INFORMATION_SCHEMA views."""

    dialect = DatabaseType.SQLSERVER

    def table_exists(self, table: TableRef) -> bool:
        row = self._fetchone(
            """
            SELECT COUNT(*)
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
            """,
            (table.schema, table.name),
        )
        exists = bool(row and row[0])
        logger.debug("Table %s exists: %s", table, exists)
        return exists

    def columns(self, table: TableRef) -> list[str]:
        return self._fetchcolumn(
            """
            SELECT COLUMN_NAME
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
            ORDER BY ORDINAL_POSITION
            """,
            (table.schema, table.name),
        )

    def key_columns(self, table: TableRef, constraint: str) -> list[str]:
        return self._fetchcolumn(
            """
            SELECT kcu.COLUMN_NAME
            FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS AS tc
            JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE AS kcu
              ON  tc.CONSTRAINT_SCHEMA = kcu.CONSTRAINT_SCHEMA
              AND tc.CONSTRAINT_NAME   = kcu.CONSTRAINT_NAME
              AND tc.TABLE_SCHEMA      = kcu.TABLE_SCHEMA
              AND tc.TABLE_NAME        = kcu.TABLE_NAME
            WHERE tc.TABLE_SCHEMA = ?
              AND tc.TABLE_NAME = ?
              AND tc.CONSTRAINT_NAME = ?
              AND tc.CONSTRAINT_TYPE IN ('PRIMARY KEY', 'UNIQUE')
            ORDER BY kcu.ORDINAL_POSITION
            """,
            (table.schema, table.name, constraint),
        )

    def find_primary_key(self, table: TableRef) -> str | None:
        row = self._fetchone(
            """
            SELECT CONSTRAINT_NAME
            FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS
            WHERE TABLE_SCHEMA = ?
              AND TABLE_NAME = ?
              AND CONSTRAINT_TYPE = 'PRIMARY KEY'
            """,
            (table.schema, table.name),
        )
        return row[0] if row else None

    def same_table(self, first: TableRef, second: TableRef) -> bool:
        # Name comparison follows the database collation (case-insensitive by default)
        row = self._fetchone(
            "SELECT CASE WHEN OBJECT_ID(?) = OBJECT_ID(?) THEN 1 ELSE 0 END",
            (
                quote_table(first, DatabaseType.SQLSERVER),
                quote_table(second, DatabaseType.SQLSERVER),
            ),
        )
        return bool(row and row[0])

    def current_schema(self) -> str:
        row = self._fetchone("SELECT SCHEMA_NAME()")
        if not row or row[0] is None:
            raise NoCurrentSchemaError()
        return row[0]
