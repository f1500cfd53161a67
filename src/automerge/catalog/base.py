"""
Base class for system catalog readers.

A catalog reader answers the handful of metadata questions the checker and
the statement builders ask. Every call goes to the database; nothing is
cached, so schema changes between calls are picked up on the next call.
"""

import logging
from typing import Any

from utils.database_types import DatabaseType

from ..errors import NoKeyError
from ..models import TableRef

logger = logging.getLogger(__name__)


class Catalog:
    """
    Base class for catalog readers.

    Subclasses implement the primitive lookups; shared_columns() is derived.
    """

    dialect: DatabaseType = DatabaseType.POSTGRESQL

    def table_exists(self, table: TableRef) -> bool:
        """Return True if the table (or view) exists. Must be implemented by subclasses."""
        raise NotImplementedError

    def columns(self, table: TableRef) -> list[str]:
        """Return the table's columns in ordinal order. Must be implemented by subclasses."""
        raise NotImplementedError

    def key_columns(self, table: TableRef, constraint: str) -> list[str]:
        """
        Return the columns of a PRIMARY KEY or UNIQUE constraint in key order.

        Returns an empty list when the constraint does not exist on the table
        or is some other kind of constraint. Must be implemented by subclasses.
        """
        raise NotImplementedError

    def find_primary_key(self, table: TableRef) -> str | None:
        """Return the primary key constraint name, or None. Must be implemented by subclasses."""
        raise NotImplementedError

    def current_schema(self) -> str:
        """
        Return the session's current/default schema. Must be implemented by subclasses.

        Raises:
            NoCurrentSchemaError: If the session has no current schema
        """
        raise NotImplementedError

    def same_table(self, first: TableRef, second: TableRef) -> bool:
        """
        Return True if both references name the same relation.

        Exact comparison; catalogs with case-insensitive collations override it.
        """
        return first == second

    def primary_key_name(self, table: TableRef) -> str:
        """
        Return the name of the table's primary key constraint.

        Raises:
            NoKeyError: If the table has no primary key
        """
        name = self.find_primary_key(table)
        if name is None:
            raise NoKeyError(table.schema, table.name)
        return name

    def shared_columns(self, source: TableRef, destination: TableRef) -> list[str]:
        """Columns present by name in both tables, in destination order."""
        source_columns = set(self.columns(source))
        return [c for c in self.columns(destination) if c in source_columns]


class ConnectionCatalog(Catalog):
    """
    Catalog reader backed by a DB-API connection.

    Queries run on short-lived cursors of the caller's connection and never
    commit, so they take part in whatever transaction the caller has open.
    """

    def __init__(self, connection: Any):
        self.connection = connection

    def _fetchall(self, query: str, params: tuple = ()) -> list[tuple]:
        # pyodbc cursors commit on __exit__, so no `with` block here
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, params)
            return [tuple(row) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def _fetchone(self, query: str, params: tuple = ()) -> tuple | None:
        rows = self._fetchall(query, params)
        return rows[0] if rows else None

    def _fetchcolumn(self, query: str, params: tuple = ()) -> list[Any]:
        return [row[0] for row in self._fetchall(query, params)]
