"""
Automatic upsert and delete between two tables sharing a key.

AutoMerger ties the pieces together: precondition checks, statement
generation from the live catalog, and execution on the caller's connection.

The full forms, auto_merge() and auto_delete(), take every argument
explicitly. upsert() and reconcile_deletes() accept the same arguments with
schemas and key optional; a single resolver fills them in (current schema,
destination primary key) and hands over to the full form.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any

from utils.database_types import DatabaseType
from utils.logging import ContextLogger
from utils.tracing import trace_operation

from .builder import StatementBuilder
from .catalog import Catalog, catalog_for_connection
from .checks import check_merge_preconditions
from .errors import TableNotFoundError
from .executor import StatementExecutor
from .models import GeneratedStatement, TableRef

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Outcome of one executed statement."""

    statement: GeneratedStatement
    rows_affected: int
    duration_seconds: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.statement.kind.value,
            "source": str(self.statement.source),
            "destination": str(self.statement.destination),
            "key": self.statement.key.name,
            "key_columns": list(self.statement.key.columns),
            "rows_affected": self.rows_affected,
            "duration_seconds": round(self.duration_seconds, 3),
            "statement": self.statement.text,
        }


class AutoMerger:
    """
    Generates and runs key-based MERGE / DELETE statements.

    Example:
        >>> merger = AutoMerger.for_connection(conn)
        >>> merger.upsert("staging_customers", "customers")
        >>> merger.reconcile_deletes("staging_customers", "customers")
        >>> conn.commit()
    """

    def __init__(
        self,
        catalog: Catalog,
        executor: StatementExecutor,
        dialect: DatabaseType | str | None = None,
    ):
        """
        Args:
            catalog: Catalog reader for the database holding both tables
            executor: Executor bound to the same database
            dialect: SQL dialect (defaults to the catalog's)
        """
        self.catalog = catalog
        self.executor = executor
        self.builder = StatementBuilder(catalog, dialect)
        self.log = ContextLogger(__name__, dialect=self.builder.dialect.value)

    @classmethod
    def for_connection(
        cls, connection: Any, dialect: DatabaseType | str | None = None
    ) -> "AutoMerger":
        """Build an AutoMerger whose catalog and executor share one connection."""
        catalog = catalog_for_connection(connection, dialect)
        return cls(catalog, StatementExecutor(connection), catalog.dialect)

    @property
    def dialect(self) -> DatabaseType:
        return self.builder.dialect

    # Full forms

    def auto_merge(
        self,
        source_schema: str,
        source_table: str,
        dest_schema: str,
        dest_table: str,
        dest_key: str,
    ) -> MergeResult:
        """
        Upsert every row of the source table into the destination table.

        Rows are matched on the columns of ``dest_key``; matched rows get
        their payload columns overwritten from source, unmatched source rows
        are inserted.

        Raises:
            TableNotFoundError, PartialKeyError, SameTableError: before any SQL runs
            ExecutionError: If the database rejects the MERGE
        """
        statement = self.preview_merge(
            source_schema, source_table, dest_schema, dest_table, dest_key
        )
        return self._run(statement)

    def auto_delete(
        self,
        source_schema: str,
        source_table: str,
        dest_schema: str,
        dest_table: str,
        dest_key: str,
    ) -> MergeResult:
        """
        Delete destination rows whose key no longer exists in the source.

        Intended to follow auto_merge() over the same pair of tables.

        Raises:
            TableNotFoundError, PartialKeyError, SameTableError: before any SQL runs
            ExecutionError: If the database rejects the DELETE
        """
        statement = self.preview_delete(
            source_schema, source_table, dest_schema, dest_table, dest_key
        )
        return self._run(statement)

    def preview_merge(
        self,
        source_schema: str,
        source_table: str,
        dest_schema: str,
        dest_table: str,
        dest_key: str,
    ) -> GeneratedStatement:
        """Check preconditions and return the MERGE auto_merge() would run."""
        source = TableRef(source_schema, source_table)
        destination = TableRef(dest_schema, dest_table)
        key = check_merge_preconditions(self.catalog, source, destination, dest_key)
        return self.builder.merge(source, destination, key)

    def preview_delete(
        self,
        source_schema: str,
        source_table: str,
        dest_schema: str,
        dest_table: str,
        dest_key: str,
    ) -> GeneratedStatement:
        """Check preconditions and return the DELETE auto_delete() would run."""
        source = TableRef(source_schema, source_table)
        destination = TableRef(dest_schema, dest_table)
        key = check_merge_preconditions(self.catalog, source, destination, dest_key)
        return self.builder.delete(source, destination, key)

    # Defaulting forms

    def upsert(
        self,
        source_table: str,
        dest_table: str,
        dest_key: str | None = None,
        *,
        source_schema: str | None = None,
        dest_schema: str | None = None,
    ) -> MergeResult:
        """
        auto_merge() with the schemas defaulting to the current schema and
        the key defaulting to the destination's primary key.

        Raises:
            NoKeyError: If no key was given and the destination has no primary key
        """
        return self.auto_merge(
            *self.resolve(source_table, dest_table, dest_key, source_schema, dest_schema)
        )

    def reconcile_deletes(
        self,
        source_table: str,
        dest_table: str,
        dest_key: str | None = None,
        *,
        source_schema: str | None = None,
        dest_schema: str | None = None,
    ) -> MergeResult:
        """
        auto_delete() with the same defaulting as upsert().

        Raises:
            NoKeyError: If no key was given and the destination has no primary key
        """
        return self.auto_delete(
            *self.resolve(source_table, dest_table, dest_key, source_schema, dest_schema)
        )

    def synchronize(
        self,
        source_table: str,
        dest_table: str,
        dest_key: str | None = None,
        *,
        source_schema: str | None = None,
        dest_schema: str | None = None,
    ) -> list[MergeResult]:
        """
        Upsert then delete, making the destination's key set and payload match
        the source. Both statements run in the caller's transaction; commit
        once afterwards for an atomic refresh.
        """
        args = self.resolve(source_table, dest_table, dest_key, source_schema, dest_schema)
        with trace_operation("automerge.synchronize", destination=f"{args[2]}.{args[3]}"):
            return [self.auto_merge(*args), self.auto_delete(*args)]

    def resolve(
        self,
        source_table: str,
        dest_table: str,
        dest_key: str | None = None,
        source_schema: str | None = None,
        dest_schema: str | None = None,
    ) -> tuple[str, str, str, str, str]:
        """
        Fill in defaulted arguments.

        Returns:
            (source_schema, source_table, dest_schema, dest_table, dest_key)

        Raises:
            TableNotFoundError: If the key must be looked up and the destination is missing
            NoKeyError: If the key must be looked up and the destination has no primary key
            NoCurrentSchemaError: If a schema must be defaulted and the session has none
        """
        if source_schema is None or dest_schema is None:
            current = self.catalog.current_schema()
            source_schema = source_schema if source_schema is not None else current
            dest_schema = dest_schema if dest_schema is not None else current

        if dest_key is None:
            destination = TableRef(dest_schema, dest_table)
            if not self.catalog.table_exists(destination):
                raise TableNotFoundError(dest_schema, dest_table)
            dest_key = self.catalog.primary_key_name(destination)
            logger.debug("Defaulted key for %s to primary key %s", destination, dest_key)

        return source_schema, source_table, dest_schema, dest_table, dest_key

    def _run(self, statement: GeneratedStatement) -> MergeResult:
        log = self.log.bind(
            source=str(statement.source),
            destination=str(statement.destination),
            key=statement.key.name,
        )
        log.info("Executing %s", statement.kind.value)

        start = time.perf_counter()
        rows = self.executor.execute(statement)
        duration = time.perf_counter() - start

        log.info(
            "%s complete: %s row(s) in %.3fs",
            statement.kind.value, rows, duration,
            rows_affected=rows,
        )
        return MergeResult(statement=statement, rows_affected=rows, duration_seconds=duration)
