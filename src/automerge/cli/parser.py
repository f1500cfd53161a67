"""
Command-line argument parser for the automerge CLI.
"""

import argparse

from utils.database_types import DatabaseType


def _add_table_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('source', help='Source table name')
    parser.add_argument('dest', help='Destination table name')
    parser.add_argument(
        '--key',
        help='Unique or primary key constraint on the destination '
             '(default: destination primary key)'
    )
    parser.add_argument(
        '--source-schema',
        help='Schema of the source table (default: current schema)'
    )
    parser.add_argument(
        '--dest-schema',
        help='Schema of the destination table (default: current schema)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Print the generated statement(s) without executing them'
    )
    parser.add_argument(
        '--output',
        help='Write a JSON summary of the run to this file'
    )


def _add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--dialect',
        choices=[d.value for d in DatabaseType],
        default=DatabaseType.POSTGRESQL.value,
        help='Database type (default: postgresql)'
    )
    parser.add_argument('--host', help='Database host')
    parser.add_argument('--port', type=int, help='Database port')
    parser.add_argument('--database', help='Database name')
    parser.add_argument('--user', help='Database username')
    parser.add_argument('--password', help='Database password')


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='automerge',
        description="Generate and run key-based MERGE / DELETE statements from the system catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Upsert staging.customers into public.customers on its primary key
  automerge merge customers customers --source-schema staging --dest-schema public

  # Use a unique constraint instead of the primary key
  automerge merge customers_stage customers --key customers_email_key

  # Remove destination rows that no longer exist in the source
  automerge delete customers_stage customers

  # Upsert then delete in one transaction
  automerge sync customers_stage customers

  # Show the generated SQL only
  automerge merge customers_stage customers --dry-run

  # SQL Server
  automerge --log-json merge Orders_Stage Orders --dialect sqlserver --source-schema dbo
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Logging level (default: LOG_LEVEL or INFO)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        default=None,
        help='Emit JSON log lines (default: LOG_JSON)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    for name, help_text in (
        ('merge', 'Upsert source rows into the destination'),
        ('delete', 'Delete destination rows whose key is missing from the source'),
        ('sync', 'Run merge then delete in a single transaction'),
    ):
        command_parser = subparsers.add_parser(name, help=help_text)
        _add_table_arguments(command_parser)
        _add_connection_arguments(command_parser)

    return parser
