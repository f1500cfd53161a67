"""
Preconditions for generated MERGE / DELETE statements.

Runs before any SQL text is built; every failure is raised as a MergeError
subclass and nothing is written to the database.
"""

import logging

from utils.metrics import PRECONDITION_FAILURES
from utils.tracing import trace_operation

from .catalog import Catalog
from .errors import MergeError, PartialKeyError, SameTableError, TableNotFoundError
from .models import KeyConstraint, TableRef

logger = logging.getLogger(__name__)


def check_merge_preconditions(
    catalog: Catalog,
    source: TableRef,
    destination: TableRef,
    key_name: str,
) -> KeyConstraint:
    """
    Validate a source/destination/key combination.

    Checks, in order:
    - both tables exist (source first)
    - the key constraint exists on the destination and every one of its
      columns is present in the source
    - source and destination are different tables

    Args:
        catalog: Catalog reader
        source: Source table
        destination: Destination table
        key_name: Name of a PRIMARY KEY or UNIQUE constraint on destination

    Returns:
        The destination key constraint with its columns in key order

    Raises:
        TableNotFoundError: If either table does not exist
        PartialKeyError: If the key is absent or not fully present in source
        SameTableError: If source and destination are the same table
    """
    with trace_operation(
        "automerge.check",
        source=source,
        destination=destination,
        key=key_name,
    ):
        try:
            return _check(catalog, source, destination, key_name)
        except MergeError as e:
            PRECONDITION_FAILURES.labels(error_type=type(e).__name__).inc()
            logger.debug("Precondition failed for %s -> %s: %s", source, destination, e)
            raise


def _check(
    catalog: Catalog, source: TableRef, destination: TableRef, key_name: str
) -> KeyConstraint:
    for table in (source, destination):
        if not catalog.table_exists(table):
            raise TableNotFoundError(table.schema, table.name)

    key_columns = catalog.key_columns(destination, key_name)
    if not key_columns:
        raise PartialKeyError(key_name)

    source_columns = set(catalog.columns(source))
    present = [c for c in key_columns if c in source_columns]
    if len(present) != len(key_columns):
        missing = [c for c in key_columns if c not in source_columns]
        raise PartialKeyError(key_name, missing)

    if catalog.same_table(source, destination):
        raise SameTableError(source.schema, source.name)

    return KeyConstraint(destination, key_name, tuple(key_columns))
