"""
Database dialect enumeration for type-safe dialect identification.

Statement rendering, identifier quoting and catalog selection all switch on
this enum rather than on raw 'postgresql' / 'sqlserver' strings.
"""

from enum import Enum


class DatabaseType(str, Enum):
    """
    Enumeration of supported SQL dialects.

    Inherits from str for JSON serialization compatibility and
    easy comparison with string values.
    """

    POSTGRESQL = "postgresql"
    SQLSERVER = "sqlserver"

    @classmethod
    def from_connection(cls, connection) -> "DatabaseType":
        """
        Detect dialect from a DB-API connection or cursor.

        Args:
            connection: psycopg2 or pyodbc connection (or cursor)

        Returns:
            DatabaseType enum value

        Raises:
            ValueError: If the driver is not recognised
        """
        module = type(connection).__module__.lower()
        class_name = type(connection).__name__.lower()

        if "psycopg" in module or "psycopg" in class_name:
            return cls.POSTGRESQL
        if "pyodbc" in module or "pyodbc" in class_name:
            return cls.SQLSERVER
        raise ValueError(
            f"Cannot detect SQL dialect from {type(connection).__module__}."
            f"{type(connection).__name__}"
        )

    @classmethod
    def parse(cls, value: "str | DatabaseType") -> "DatabaseType":
        """
        Parse a dialect name, accepting a few common aliases.

        Args:
            value: Dialect name or DatabaseType

        Returns:
            DatabaseType enum value
        """
        if isinstance(value, DatabaseType):
            return value

        aliases = {
            "postgres": cls.POSTGRESQL,
            "pg": cls.POSTGRESQL,
            "mssql": cls.SQLSERVER,
            "tsql": cls.SQLSERVER,
        }
        normalized = value.strip().lower()
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unsupported SQL dialect: {value!r}") from None
