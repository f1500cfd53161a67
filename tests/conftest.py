"""
Pytest configuration and shared fixtures for automerge tests.
"""

import os

import pytest

from automerge.catalog import StaticCatalog


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: requires a live PostgreSQL database")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True)
def set_test_env_vars() -> None:
    """Set default connection environment variables if not already set."""
    defaults = {
        "POSTGRES_HOST": "localhost",
        "POSTGRES_PORT": "5432",
        "POSTGRES_DB": "automerge_test",
        "POSTGRES_USER": "postgres",
        "POSTGRES_PASSWORD": "postgres",
    }

    for key, value in defaults.items():
        if key not in os.environ:
            os.environ[key] = value


@pytest.fixture
def catalog() -> StaticCatalog:
    """
    Synthetic schema used across unit tests.

    staging.customers -> public.customers share id, name, email; the source
    has an extra loaded_at column and the destination an extra updated_at.
    """
    cat = StaticCatalog(current_schema="public")
    cat.add_table(
        "staging", "customers",
        ["id", "name", "email", "loaded_at"],
        primary_key=("customers_stage_pkey", ["id"]),
    )
    cat.add_table(
        "public", "customers",
        ["id", "name", "email", "updated_at"],
        primary_key=("customers_pkey", ["id"]),
        unique={"customers_email_key": ["email"]},
    )
    cat.add_table(
        "public", "customers_stage",
        ["id", "name", "email"],
    )
    cat.add_table(
        "public", "audit_log",
        ["event_id", "payload"],
    )
    return cat
