"""
Connection settings for the CLI.

Values given on the command line win; anything missing is read from the
environment (the same variables the test suite and deployment use).
"""

import argparse
import logging
import os
from dataclasses import dataclass
from typing import Any

import psycopg2

from utils.database_types import DatabaseType

logger = logging.getLogger(__name__)


@dataclass
class ConnectionSettings:
    """Where and as whom to connect."""

    dialect: DatabaseType
    host: str
    port: int
    database: str
    user: str
    password: str | None
    driver: str = "ODBC Driver 18 for SQL Server"

    @classmethod
    def from_env(cls, dialect: DatabaseType | str) -> "ConnectionSettings":
        """
        Read settings from environment variables.

        PostgreSQL: POSTGRES_HOST, POSTGRES_PORT, POSTGRES_DB, POSTGRES_USER, POSTGRES_PASSWORD
        SQL Server: SQLSERVER_HOST, SQLSERVER_PORT, SQLSERVER_DATABASE, SQLSERVER_USER,
                    SQLSERVER_PASSWORD, SQLSERVER_DRIVER
        """
        dialect = DatabaseType.parse(dialect)

        if dialect == DatabaseType.SQLSERVER:
            return cls(
                dialect=dialect,
                host=os.getenv("SQLSERVER_HOST", "localhost"),
                port=int(os.getenv("SQLSERVER_PORT", "1433")),
                database=os.getenv("SQLSERVER_DATABASE", "master"),
                user=os.getenv("SQLSERVER_USER", "sa"),
                password=os.getenv("SQLSERVER_PASSWORD"),
                driver=os.getenv("SQLSERVER_DRIVER", "ODBC Driver 18 for SQL Server"),
            )

        return cls(
            dialect=dialect,
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", "postgres"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD"),
        )

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ConnectionSettings":
        """Environment settings overridden by any connection options on the command line."""
        settings = cls.from_env(args.dialect)
        for name in ("host", "port", "database", "user", "password"):
            value = getattr(args, name, None)
            if value is not None:
                setattr(settings, name, value)
        return settings

    def odbc_connection_string(self) -> str:
        return (
            f"DRIVER={{{self.driver}}};"
            f"SERVER={self.host},{self.port};"
            f"DATABASE={self.database};"
            f"UID={self.user};"
            f"PWD={self.password};"
            f"TrustServerCertificate=yes;"
        )

    def redacted(self) -> dict[str, Any]:
        """Settings safe to log."""
        return {
            "dialect": self.dialect.value,
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
        }


def connect(settings: ConnectionSettings) -> Any:
    """
    Open a DB-API connection with autocommit off.

    Args:
        settings: Connection settings

    Returns:
        psycopg2 or pyodbc connection

    Raises:
        ValueError: If no password is configured
    """
    if not settings.password:
        raise ValueError(f"No password configured for {settings.dialect.value} connection")

    logger.info("Connecting to %s", settings.redacted())

    if settings.dialect == DatabaseType.SQLSERVER:
        # Imported here: pyodbc needs the system ODBC library at import time
        import pyodbc

        return pyodbc.connect(settings.odbc_connection_string(), autocommit=False)

    return psycopg2.connect(
        host=settings.host,
        port=settings.port,
        database=settings.database,
        user=settings.user,
        password=settings.password,
        connect_timeout=10,
    )
