"""
MERGE and DELETE statement generation.

Generation happens in two steps. Planning classifies the shared columns of
source and destination into key and payload lists (MergePlan / DeletePlan);
rendering turns a plan into dialect-specific SQL text. Planning knows
nothing about syntax and rendering makes no decisions about columns.

Generated MERGE (PostgreSQL)::

    MERGE INTO "d"."t" AS T USING "s"."t" AS S ON S."id" = T."id"
    WHEN MATCHED THEN UPDATE SET ("a", "b") = (S."a", S."b")
    WHEN NOT MATCHED THEN INSERT ("id", "a", "b") VALUES (S."id", S."a", S."b")

Generated DELETE (PostgreSQL)::

    DELETE FROM "d"."t" WHERE ("id") IN (
        SELECT "id" FROM "d"."t" EXCEPT SELECT "id" FROM "s"."t")
"""

import logging
from collections.abc import Iterable
from typing import Any

from utils.database_types import DatabaseType
from utils.metrics import STATEMENTS_GENERATED
from utils.tracing import trace_operation

from .catalog import Catalog
from .errors import PartialKeyError
from .models import (
    ColumnClassification,
    DeletePlan,
    GeneratedStatement,
    KeyConstraint,
    MergePlan,
    StatementKind,
    TableRef,
)
from .quoting import quote_identifier, quote_table

logger = logging.getLogger(__name__)

SOURCE_ALIAS = "S"
TARGET_ALIAS = "T"


def plan_merge(
    source: TableRef,
    destination: TableRef,
    key: KeyConstraint,
    dest_columns: Iterable[str],
    source_columns: Iterable[str],
) -> MergePlan:
    """
    Work out which columns the MERGE joins on, updates and inserts.

    Args:
        source: Source table
        destination: Destination table
        key: Key constraint on the destination
        dest_columns: Destination columns in catalog order
        source_columns: Source columns

    Returns:
        MergePlan over the shared columns

    Raises:
        PartialKeyError: If a key column is not shared by both tables
    """
    classification = ColumnClassification.classify(dest_columns, source_columns, key)
    _require_full_key(classification)

    return MergePlan(
        source=source,
        destination=destination,
        key=key,
        join_columns=tuple(classification.key_columns),
        update_columns=tuple(classification.payload_columns),
        insert_columns=tuple(classification.shared_columns),
    )


def plan_delete(
    source: TableRef,
    destination: TableRef,
    key: KeyConstraint,
    dest_columns: Iterable[str],
    source_columns: Iterable[str],
) -> DeletePlan:
    """
    Work out the key columns projected by the set-difference DELETE.

    Raises:
        PartialKeyError: If a key column is not shared by both tables
    """
    classification = ColumnClassification.classify(dest_columns, source_columns, key)
    _require_full_key(classification)

    return DeletePlan(
        source=source,
        destination=destination,
        key=key,
        key_columns=tuple(classification.key_columns),
    )


def _require_full_key(classification: ColumnClassification) -> None:
    # A partial key would yield a join that silently matches too many rows
    missing = classification.missing_key_columns
    if missing:
        raise PartialKeyError(classification.key.name, missing)


def render_merge(
    plan: MergePlan,
    dialect: DatabaseType | str = DatabaseType.POSTGRESQL,
    connection: Any = None,
) -> str:
    """
    Render a MergePlan as a single MERGE statement.

    When the plan has no payload columns the WHEN MATCHED clause is left out:
    matched rows would be unchanged anyway and an empty SET list is a syntax
    error on every supported server.

    Args:
        plan: Merge plan
        dialect: Target SQL dialect
        connection: Optional psycopg2 connection used for identifier quoting

    Returns:
        MERGE statement text
    """
    dialect = DatabaseType.parse(dialect)

    def q(column: str) -> str:
        return quote_identifier(column, dialect, connection)

    def src(column: str) -> str:
        return f"{SOURCE_ALIAS}.{q(column)}"

    join_clause = " AND ".join(
        f"{src(c)} = {TARGET_ALIAS}.{q(c)}" for c in plan.join_columns
    )
    insert_cols = ", ".join(q(c) for c in plan.insert_columns)
    insert_vals = ", ".join(src(c) for c in plan.insert_columns)

    parts = [
        f"MERGE INTO {quote_table(plan.destination, dialect, connection)} AS {TARGET_ALIAS}",
        f"USING {quote_table(plan.source, dialect, connection)} AS {SOURCE_ALIAS}",
        f"ON {join_clause}",
    ]

    if plan.update_columns:
        if dialect == DatabaseType.SQLSERVER or len(plan.update_columns) == 1:
            # T-SQL has no row assignment; PostgreSQL wants ROW() for a single column
            assignments = ", ".join(f"{q(c)} = {src(c)}" for c in plan.update_columns)
        else:
            update_cols = ", ".join(q(c) for c in plan.update_columns)
            update_vals = ", ".join(src(c) for c in plan.update_columns)
            assignments = f"({update_cols}) = ({update_vals})"
        parts.append(f"WHEN MATCHED THEN UPDATE SET {assignments}")

    parts.append(f"WHEN NOT MATCHED THEN INSERT ({insert_cols}) VALUES ({insert_vals})")

    statement = " ".join(parts)
    if dialect == DatabaseType.SQLSERVER:
        # T-SQL requires MERGE to be terminated
        statement += ";"
    return statement


def render_delete(
    plan: DeletePlan,
    dialect: DatabaseType | str = DatabaseType.POSTGRESQL,
    connection: Any = None,
) -> str:
    """
    Render a DeletePlan as a single set-difference DELETE statement.

    Destination key tuples not found among source key tuples are deleted;
    payload columns never take part.

    Args:
        plan: Delete plan
        dialect: Target SQL dialect
        connection: Optional psycopg2 connection used for identifier quoting

    Returns:
        DELETE statement text

    Raises:
        PartialKeyError: If the plan has no key columns
    """
    if not plan.key_columns:
        raise PartialKeyError(plan.key.name, list(plan.key.columns))

    dialect = DatabaseType.parse(dialect)
    dest = quote_table(plan.destination, dialect, connection)
    source = quote_table(plan.source, dialect, connection)
    quoted = [quote_identifier(c, dialect, connection) for c in plan.key_columns]
    key_cols = ", ".join(quoted)
    difference = f"SELECT {key_cols} FROM {dest} EXCEPT SELECT {key_cols} FROM {source}"

    if dialect == DatabaseType.SQLSERVER:
        # No row-value IN in T-SQL: join the difference back on the key instead
        on_clause = " AND ".join(f"{TARGET_ALIAS}.{c} = X.{c}" for c in quoted)
        return (
            f"DELETE {TARGET_ALIAS} FROM {dest} AS {TARGET_ALIAS} "
            f"INNER JOIN ({difference}) AS X ON {on_clause};"
        )

    return f"DELETE FROM {dest} WHERE ({key_cols}) IN ({difference})"


def build_merge(
    source: TableRef,
    destination: TableRef,
    key: KeyConstraint,
    dest_columns: Iterable[str],
    source_columns: Iterable[str],
    dialect: DatabaseType | str = DatabaseType.POSTGRESQL,
    connection: Any = None,
) -> GeneratedStatement:
    """Plan and render a MERGE from explicit column lists."""
    dialect = DatabaseType.parse(dialect)
    plan = plan_merge(source, destination, key, dest_columns, source_columns)
    text = render_merge(plan, dialect, connection)
    STATEMENTS_GENERATED.labels(kind=StatementKind.MERGE.value, dialect=dialect.value).inc()
    return GeneratedStatement(StatementKind.MERGE, text, source, destination, key)


def build_delete(
    source: TableRef,
    destination: TableRef,
    key: KeyConstraint,
    dest_columns: Iterable[str],
    source_columns: Iterable[str],
    dialect: DatabaseType | str = DatabaseType.POSTGRESQL,
    connection: Any = None,
) -> GeneratedStatement:
    """Plan and render a set-difference DELETE from explicit column lists."""
    dialect = DatabaseType.parse(dialect)
    plan = plan_delete(source, destination, key, dest_columns, source_columns)
    text = render_delete(plan, dialect, connection)
    STATEMENTS_GENERATED.labels(kind=StatementKind.DELETE.value, dialect=dialect.value).inc()
    return GeneratedStatement(StatementKind.DELETE, text, source, destination, key)


class StatementBuilder:
    """
    Reads the shared columns from a catalog and builds statements from them.

    For PostgreSQL a connection-backed catalog also lends its connection to
    identifier quoting, so psycopg2 applies the server's quoting rules.
    """

    def __init__(self, catalog: Catalog, dialect: DatabaseType | str | None = None):
        self.catalog = catalog
        self.dialect = DatabaseType.parse(dialect or catalog.dialect)
        self.connection = (
            getattr(catalog, "connection", None)
            if self.dialect == DatabaseType.POSTGRESQL
            else None
        )

    def merge(
        self, source: TableRef, destination: TableRef, key: KeyConstraint
    ) -> GeneratedStatement:
        with trace_operation(
            "automerge.build_merge", source=source, destination=destination, key=key.name
        ) as span:
            shared = self.catalog.shared_columns(source, destination)
            statement = build_merge(
                source, destination, key, shared, shared, self.dialect, self.connection
            )
            span.set_attribute("statement.length", len(statement.text))
        logger.debug("Generated MERGE for %s -> %s: %s", source, destination, statement.text)
        return statement

    def delete(
        self, source: TableRef, destination: TableRef, key: KeyConstraint
    ) -> GeneratedStatement:
        with trace_operation(
            "automerge.build_delete", source=source, destination=destination, key=key.name
        ) as span:
            shared = self.catalog.shared_columns(source, destination)
            statement = build_delete(
                source, destination, key, shared, shared, self.dialect, self.connection
            )
            span.set_attribute("statement.length", len(statement.text))
        logger.debug("Generated DELETE for %s -> %s: %s", source, destination, statement.text)
        return statement
