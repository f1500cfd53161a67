"""
CLI command implementations.

- merge: upsert source into destination
- delete: remove destination rows missing from source
- sync: merge then delete

Each command owns its transaction: commit after every statement succeeded,
roll back on any failure.
"""

import argparse
import json
import logging
from typing import Any

from ..errors import MergeError
from ..merger import AutoMerger
from .settings import ConnectionSettings, connect

logger = logging.getLogger(__name__)

COMMANDS = {
    "merge": ("upsert", "preview_merge"),
    "delete": ("reconcile_deletes", "preview_delete"),
}


def _table_kwargs(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "source_schema": args.source_schema,
        "dest_schema": args.dest_schema,
    }


def _write_summary(path: str, summary: dict[str, Any]) -> None:
    with open(path, "w") as f:
        json.dump(summary, f, indent=2, default=str)
    logger.info("Summary written to %s", path)


def run_command(args: argparse.Namespace, connection: Any = None) -> int:
    """
    Run merge / delete / sync against one connection.

    Args:
        args: Parsed command-line arguments
        connection: Existing connection (opened from settings when None)

    Returns:
        Process exit code
    """
    owns_connection = connection is None
    if owns_connection:
        try:
            connection = connect(ConnectionSettings.from_args(args))
        except Exception as e:
            logger.error("Could not connect: %s", e)
            return 1

    try:
        merger = AutoMerger.for_connection(connection, args.dialect)
        if args.dry_run:
            summary = _preview(merger, args)
        else:
            summary = _execute(merger, args)
            connection.commit()
            logger.info("Transaction committed")
    except MergeError as e:
        connection.rollback()
        logger.error("%s failed (SQLSTATE %s): %s", args.command, e.sqlstate, e)
        return 1
    except Exception:
        connection.rollback()
        logger.exception("%s failed", args.command)
        return 1
    finally:
        if owns_connection:
            connection.close()

    if args.output:
        _write_summary(args.output, summary)
    return 0


def _steps(command: str) -> list[str]:
    return ["merge", "delete"] if command == "sync" else [command]


def _preview(merger: AutoMerger, args: argparse.Namespace) -> dict[str, Any]:
    resolved = merger.resolve(args.source, args.dest, args.key, **_table_kwargs(args))
    statements = []
    for step in _steps(args.command):
        statement = getattr(merger, COMMANDS[step][1])(*resolved)
        print(f"{statement.text}{'' if statement.text.endswith(';') else ';'}")
        statements.append({"kind": statement.kind.value, "statement": statement.text})
    return {"command": args.command, "dry_run": True, "statements": statements}


def _execute(merger: AutoMerger, args: argparse.Namespace) -> dict[str, Any]:
    if args.command == "sync":
        results = merger.synchronize(args.source, args.dest, args.key, **_table_kwargs(args))
    else:
        method = getattr(merger, COMMANDS[args.command][0])
        results = [method(args.source, args.dest, args.key, **_table_kwargs(args))]

    for result in results:
        logger.info(
            "%s %s -> %s: %s row(s)",
            result.statement.kind.value,
            result.statement.source,
            result.statement.destination,
            result.rows_affected,
        )
    return {
        "command": args.command,
        "dry_run": False,
        "results": [result.to_dict() for result in results],
    }
