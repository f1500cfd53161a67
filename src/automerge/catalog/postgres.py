"""PostgreSQL catalog reader."""

import logging

from utils.database_types import DatabaseType

from ..errors import NoCurrentSchemaError
from ..models import TableRef
from .base import ConnectionCatalog

logger = logging.getLogger(__name__)


class PostgresCatalog(ConnectionCatalog):
    """Reads PostgreSQL metadata through information_schema."""

    dialect = DatabaseType.POSTGRESQL

    def table_exists(self, table: TableRef) -> bool:
        row = self._fetchone(
            """
            SELECT EXISTS (
              SELECT 1 FROM information_schema.tables
              WHERE table_schema = %s AND table_name = %s
            )
            """,
            (table.schema, table.name),
        )
        exists = bool(row and row[0])
        logger.debug("Table %s exists: %s", table, exists)
        return exists

    def columns(self, table: TableRef) -> list[str]:
        return self._fetchcolumn(
            """
            SELECT column_name
            FROM information_schema.columns
            WHERE table_schema = %s AND table_name = %s
            ORDER BY ordinal_position
            """,
            (table.schema, table.name),
        )

    def key_columns(self, table: TableRef, constraint: str) -> list[str]:
        return self._fetchcolumn(
            """
            SELECT kcu.column_name
            FROM information_schema.table_constraints AS tc
            JOIN information_schema.key_column_usage AS kcu
              ON  tc.constraint_schema = kcu.constraint_schema
              AND tc.constraint_name   = kcu.constraint_name
              AND tc.table_schema      = kcu.table_schema
              AND tc.table_name        = kcu.table_name
            WHERE tc.table_schema = %s
              AND tc.table_name = %s
              AND tc.constraint_name = %s
              AND tc.constraint_type IN ('PRIMARY KEY', 'UNIQUE')
            ORDER BY kcu.ordinal_position
            """,
            (table.schema, table.name, constraint),
        )

    def find_primary_key(self, table: TableRef) -> str | None:
        row = self._fetchone(
            """
            SELECT constraint_name
            FROM information_schema.table_constraints
            WHERE table_schema = %s
              AND table_name = %s
              AND constraint_type = 'PRIMARY KEY'
            """,
            (table.schema, table.name),
        )
        return row[0] if row else None

    def current_schema(self) -> str:
        row = self._fetchone("SELECT current_schema()")
        if not row or row[0] is None:
            raise NoCurrentSchemaError()
        return row[0]
