"""
Unit tests for AutoMerger.

The catalog is a StaticCatalog from conftest; the executor is mocked so each
test can see exactly which statements would have reached the database.
"""

import logging
from unittest.mock import Mock

import pytest

from automerge.catalog import PostgresCatalog, SQLServerCatalog, StaticCatalog
from automerge.errors import (
    ExecutionError,
    NoKeyError,
    PartialKeyError,
    SameTableError,
    TableNotFoundError,
)
from automerge.executor import StatementExecutor
from automerge.merger import AutoMerger, MergeResult
from automerge.models import StatementKind, TableRef
from utils.database_types import DatabaseType


@pytest.fixture
def executor():
    executor = Mock(spec=StatementExecutor)
    executor.execute.return_value = 2
    return executor


@pytest.fixture
def merger(catalog, executor):
    return AutoMerger(catalog, executor)


def _executed(executor):
    return [c.args[0] for c in executor.execute.call_args_list]


class TestAutoMerge:
    """Test the fully specified MERGE entry point."""

    def test_runs_one_merge(self, merger, executor):
        result = merger.auto_merge("staging", "customers", "public", "customers", "customers_pkey")

        assert isinstance(result, MergeResult)
        assert result.rows_affected == 2
        assert result.duration_seconds >= 0

        (statement,) = _executed(executor)
        assert statement.kind is StatementKind.MERGE
        assert statement.source == TableRef("staging", "customers")
        assert statement.destination == TableRef("public", "customers")
        assert 'ON S."id" = T."id"' in statement.text

    def test_unique_key(self, merger, executor):
        merger.auto_merge("staging", "customers", "public", "customers", "customers_email_key")

        (statement,) = _executed(executor)
        assert 'ON S."email" = T."email"' in statement.text
        assert 'UPDATE SET ("id", "name") = (S."id", S."name")' in statement.text

    @pytest.mark.parametrize(
        "args,error",
        [
            (("staging", "missing", "public", "customers", "customers_pkey"), TableNotFoundError),
            (("public", "customers", "public", "customers", "customers_pkey"), SameTableError),
            (("public", "audit_log", "public", "customers", "customers_pkey"), PartialKeyError),
        ],
    )
    def test_precondition_failure_executes_nothing(self, merger, executor, args, error):
        with pytest.raises(error):
            merger.auto_merge(*args)
        executor.execute.assert_not_called()

    def test_execution_error_propagates(self, merger, executor):
        executor.execute.side_effect = ExecutionError("MERGE ...", RuntimeError("boom"))

        with pytest.raises(ExecutionError):
            merger.auto_merge("staging", "customers", "public", "customers", "customers_pkey")

    def test_logs_carry_statement_context(self, merger, caplog):
        with caplog.at_level(logging.INFO, logger="automerge.merger"):
            merger.auto_merge("staging", "customers", "public", "customers", "customers_pkey")

        records = [r for r in caplog.records if r.name == "automerge.merger"]
        assert records
        for record in records:
            assert record.dialect == "postgresql"
            assert record.source == "staging.customers"
            assert record.destination == "public.customers"
            assert record.key == "customers_pkey"
        assert records[-1].rows_affected == 2
        assert merger.log.get_context() == {"dialect": "postgresql"}


class TestAutoDelete:
    """Test the fully specified DELETE entry point."""

    def test_runs_one_delete(self, merger, executor):
        result = merger.auto_delete("staging", "customers", "public", "customers", "customers_pkey")

        (statement,) = _executed(executor)
        assert statement.kind is StatementKind.DELETE
        assert "EXCEPT" in statement.text
        assert result.to_dict()["rows_affected"] == 2

    def test_same_table(self, merger, executor):
        with pytest.raises(SameTableError):
            merger.auto_delete("public", "customers", "public", "customers", "customers_pkey")
        executor.execute.assert_not_called()


class TestPreview:
    """Test statement previews."""

    def test_preview_merge_does_not_execute(self, merger, executor):
        statement = merger.preview_merge(
            "staging", "customers", "public", "customers", "customers_pkey"
        )

        assert statement.kind is StatementKind.MERGE
        executor.execute.assert_not_called()

    def test_preview_delete_checks_preconditions(self, merger):
        with pytest.raises(TableNotFoundError):
            merger.preview_delete("staging", "customers", "public", "nope", "customers_pkey")


class TestResolve:
    """Test defaulting of schemas and key."""

    def test_defaults_to_current_schema_and_primary_key(self, merger):
        assert merger.resolve("customers_stage", "customers") == (
            "public", "customers_stage", "public", "customers", "customers_pkey"
        )

    def test_explicit_values_kept(self, merger):
        resolved = merger.resolve(
            "customers", "customers", "customers_email_key",
            source_schema="staging", dest_schema="public",
        )
        assert resolved == ("staging", "customers", "public", "customers", "customers_email_key")

    def test_current_schema_not_read_when_both_given(self, executor):
        catalog = Mock(spec=StaticCatalog)
        catalog.dialect = DatabaseType.POSTGRESQL
        merger = AutoMerger(catalog, executor)

        merger.resolve("a", "b", "b_pkey", source_schema="s", dest_schema="d")

        catalog.current_schema.assert_not_called()

    def test_no_primary_key(self, merger):
        with pytest.raises(NoKeyError) as exc_info:
            merger.resolve("customers", "audit_log")
        assert exc_info.value.sqlstate == "90010"

    def test_missing_destination_reported_before_key_lookup(self, merger):
        with pytest.raises(TableNotFoundError):
            merger.resolve("customers_stage", "nope")


class TestDefaultingForms:
    """Test upsert / reconcile_deletes / synchronize."""

    def test_upsert(self, merger, executor):
        merger.upsert("customers_stage", "customers")

        (statement,) = _executed(executor)
        assert statement.kind is StatementKind.MERGE
        assert statement.source == TableRef("public", "customers_stage")
        assert statement.key.name == "customers_pkey"

    def test_upsert_no_key_executes_nothing(self, merger, executor):
        with pytest.raises(NoKeyError):
            merger.upsert("customers_stage", "audit_log")
        executor.execute.assert_not_called()

    def test_reconcile_deletes(self, merger, executor):
        merger.reconcile_deletes("customers", "customers", source_schema="staging")

        (statement,) = _executed(executor)
        assert statement.kind is StatementKind.DELETE
        assert statement.destination == TableRef("public", "customers")

    def test_synchronize_merges_then_deletes(self, merger, executor):
        results = merger.synchronize("customers_stage", "customers")

        assert [r.statement.kind for r in results] == [StatementKind.MERGE, StatementKind.DELETE]
        assert [s.kind for s in _executed(executor)] == [StatementKind.MERGE, StatementKind.DELETE]

    def test_synchronize_stops_after_failed_merge(self, merger, executor):
        executor.execute.side_effect = ExecutionError("MERGE ...", RuntimeError("boom"))

        with pytest.raises(ExecutionError):
            merger.synchronize("customers_stage", "customers")

        assert executor.execute.call_count == 1


class TestForConnection:
    """Test construction from a live connection."""

    def test_shares_connection(self):
        connection = Mock()
        merger = AutoMerger.for_connection(connection, "postgresql")

        assert merger.executor.connection is connection
        assert merger.catalog.connection is connection
        assert isinstance(merger.catalog, PostgresCatalog)
        assert merger.dialect is DatabaseType.POSTGRESQL

    def test_sqlserver(self):
        merger = AutoMerger.for_connection(Mock(), "sqlserver")
        assert merger.dialect is DatabaseType.SQLSERVER


class TestMergeResult:
    """Test result serialization."""

    def test_to_dict(self, merger):
        result = merger.auto_merge("staging", "customers", "public", "customers", "customers_pkey")
        data = result.to_dict()

        assert data["kind"] == "MERGE"
        assert data["source"] == "staging.customers"
        assert data["destination"] == "public.customers"
        assert data["key"] == "customers_pkey"
        assert data["key_columns"] == ["id"]
        assert data["statement"] == result.statement.text


class _CaseInsensitiveCursor:
    """DB-API cursor over a SQL Server catalog with a case-insensitive collation."""

    TABLES = {("dbo", "orders"): ["OrderId", "Amount"]}
    KEYS = {("dbo", "orders", "pk_orders"): ["OrderId"]}

    def __init__(self):
        self._rows = []

    def execute(self, query, params=()):
        folded = tuple(p.lower() for p in params)
        if "OBJECT_ID" in query:
            first, second = (p.replace("[", "").replace("]", "") for p in folded)
            self._rows = [(1 if first == second else 0,)]
        elif "KEY_COLUMN_USAGE" in query:
            self._rows = [(c,) for c in self.KEYS.get(folded, [])]
        elif "INFORMATION_SCHEMA.COLUMNS" in query:
            self._rows = [(c,) for c in self.TABLES.get(folded, [])]
        elif "INFORMATION_SCHEMA.TABLES" in query:
            self._rows = [(1 if folded in self.TABLES else 0,)]
        else:
            raise AssertionError(f"unexpected query: {query}")

    def fetchall(self):
        return self._rows

    def close(self):
        pass


class TestCaseInsensitiveCatalog:
    """Test identity checks on a case-insensitive SQL Server catalog."""

    @pytest.fixture
    def sqlserver_merger(self, executor):
        connection = Mock()
        connection.cursor.side_effect = _CaseInsensitiveCursor
        return AutoMerger(SQLServerCatalog(connection), executor)

    def test_merge_names_differing_in_case(self, sqlserver_merger, executor):
        with pytest.raises(SameTableError):
            sqlserver_merger.auto_merge("dbo", "Orders", "dbo", "orders", "pk_orders")

        executor.execute.assert_not_called()

    def test_delete_names_differing_in_case(self, sqlserver_merger, executor):
        with pytest.raises(SameTableError):
            sqlserver_merger.auto_delete("DBO", "ORDERS", "dbo", "orders", "pk_orders")

        executor.execute.assert_not_called()
