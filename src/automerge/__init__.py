"""
Catalog-driven MERGE / DELETE generation.

Given a source table and a destination table sharing the columns of a
unique or primary key on the destination, automerge reads the system
catalog and builds (and optionally runs) an upsert MERGE and a
set-difference DELETE, so the verbose MERGE syntax never has to be
written by hand.

Components:
- catalog: system catalog readers (PostgreSQL, SQL Server, in-memory)
- checks: preconditions run before any statement is built
- builder: MERGE / DELETE planning and rendering
- executor: statement execution in the caller's transaction
- merger: AutoMerger orchestrating all of the above

Usage:
    from automerge import AutoMerger

    merger = AutoMerger.for_connection(conn)
    merger.upsert("customers_staging", "customers")
    merger.reconcile_deletes("customers_staging", "customers")
    conn.commit()
"""

from .builder import StatementBuilder, build_delete, build_merge
from .catalog import PostgresCatalog, SQLServerCatalog, StaticCatalog
from .checks import check_merge_preconditions
from .errors import (
    ExecutionError,
    MergeError,
    NoCurrentSchemaError,
    NoKeyError,
    PartialKeyError,
    SameTableError,
    TableNotFoundError,
)
from .executor import StatementExecutor
from .merger import AutoMerger, MergeResult
from .models import GeneratedStatement, KeyConstraint, StatementKind, TableRef

__version__ = "1.0.0"
__all__ = [
    "AutoMerger",
    "MergeResult",
    "StatementBuilder",
    "StatementExecutor",
    "build_merge",
    "build_delete",
    "check_merge_preconditions",
    "PostgresCatalog",
    "SQLServerCatalog",
    "StaticCatalog",
    "TableRef",
    "KeyConstraint",
    "GeneratedStatement",
    "StatementKind",
    "MergeError",
    "TableNotFoundError",
    "NoKeyError",
    "NoCurrentSchemaError",
    "PartialKeyError",
    "SameTableError",
    "ExecutionError",
]
