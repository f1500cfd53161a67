"""
Command-line interface for automatic MERGE / DELETE.

Available commands:
- merge: upsert source rows into the destination table
- delete: delete destination rows whose key is absent from the source
- sync: merge followed by delete, committed together
"""

import os
import sys

from utils.logging import configure_from_env
from utils.tracing import initialize_tracing, shutdown_tracing

from .commands import run_command
from .parser import create_parser
from .settings import ConnectionSettings, connect


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the automerge CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_from_env(level=args.log_level, json_format=args.log_json)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if os.getenv("OTLP_ENDPOINT") or os.getenv("TRACE_CONSOLE", "").lower() == "true":
        initialize_tracing(service_name="automerge")

    try:
        exit_code = run_command(args)
    finally:
        shutdown_tracing()

    sys.exit(exit_code)


__all__ = [
    'main',
    'run_command',
    'create_parser',
    'ConnectionSettings',
    'connect',
]


if __name__ == '__main__':
    main()
