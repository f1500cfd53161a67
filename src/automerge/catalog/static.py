"""
In-memory catalog for synthetic schemas.

Lets the checker, builders and orchestrator run without a database: unit
tests, property tests and offline statement previews describe tables here
instead of creating them.
"""

from dataclasses import dataclass, field

from utils.database_types import DatabaseType

from ..models import TableRef
from .base import Catalog


@dataclass
class TableDefinition:
    """Columns and key constraints of one synthetic table."""

    columns: list[str]
    primary_key: str | None = None
    constraints: dict[str, list[str]] = field(default_factory=dict)


class StaticCatalog(Catalog):
    """Catalog reader over table definitions registered with add_table()."""

    def __init__(
        self,
        current_schema: str = "public",
        dialect: DatabaseType | str = DatabaseType.POSTGRESQL,
    ):
        self._current_schema = current_schema
        self.dialect = DatabaseType.parse(dialect)
        self.tables: dict[TableRef, TableDefinition] = {}

    def add_table(
        self,
        schema: str,
        name: str,
        columns: list[str],
        primary_key: tuple[str, list[str]] | None = None,
        unique: dict[str, list[str]] | None = None,
    ) -> TableRef:
        """
        Register a table.

        Args:
            schema: Schema name
            name: Table name
            columns: Column names in ordinal order
            primary_key: Optional (constraint name, columns)
            unique: Optional mapping of unique constraint name to columns

        Returns:
            TableRef of the registered table
        """
        table = TableRef(schema, name)
        definition = TableDefinition(columns=list(columns))
        if primary_key is not None:
            pk_name, pk_columns = primary_key
            definition.primary_key = pk_name
            definition.constraints[pk_name] = list(pk_columns)
        for constraint, key_columns in (unique or {}).items():
            definition.constraints[constraint] = list(key_columns)
        self.tables[table] = definition
        return table

    def drop_table(self, schema: str, name: str) -> None:
        del self.tables[TableRef(schema, name)]

    def table_exists(self, table: TableRef) -> bool:
        return table in self.tables

    def columns(self, table: TableRef) -> list[str]:
        definition = self.tables.get(table)
        return list(definition.columns) if definition else []

    def key_columns(self, table: TableRef, constraint: str) -> list[str]:
        definition = self.tables.get(table)
        if definition is None:
            return []
        return list(definition.constraints.get(constraint, []))

    def find_primary_key(self, table: TableRef) -> str | None:
        definition = self.tables.get(table)
        return definition.primary_key if definition else None

    def current_schema(self) -> str:
        return self._current_schema
