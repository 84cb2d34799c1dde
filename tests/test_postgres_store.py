"""
Tests for PostgresReportStore against a scripted connection

No database is needed: the fake connection records the SQL it receives
and replays canned results or driver errors.
"""

import psycopg2
import psycopg2.errors
import pytest

from corruptionwatch.db.store import PostgresReportStore, ReportFilter, StoreError, StoreTimeoutError


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = conn.rowcount
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.conn.executed.append((sql, params))
        if sql.startswith("SET LOCAL"):
            return
        if self.conn.error is not None:
            raise self.conn.error
        self._rows = list(self.conn.rows)

    def fetchall(self):
        return self._rows

    def fetchone(self):
        return self._rows[0] if self._rows else None


class FakeConnection:
    def __init__(self, rows=(), error=None, rowcount=0):
        self.rows = rows
        self.error = error
        self.rowcount = rowcount
        self.executed = []
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, cursor_factory=None):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


def _store(conn, timeout_ms=2500):
    return PostgresReportStore(lambda: conn, statement_timeout_ms=timeout_ms)


class TestPostgresReportStore:

    def test_statement_timeout_set_per_transaction(self):
        conn = FakeConnection(rows=[{"n": 7}])
        assert _store(conn).count_reports() == 7
        assert conn.executed[0][0] == "SET LOCAL statement_timeout = '2500ms'"
        assert conn.committed and conn.closed

    def test_filter_becomes_parameters(self):
        conn = FakeConnection(rows=[])
        _store(conn).fetch_reports(ReportFilter(region="Pune", status="verified", limit=5, offset=10))

        sql, params = conn.executed[1]
        assert "status = %s" in sql
        assert "area_region ILIKE %s" in sql
        assert sql.rstrip().endswith("LIMIT %s OFFSET %s")
        assert params == ["verified", "%Pune%", 5, 10]

    def test_reporter_email_is_exact_match(self):
        conn = FakeConnection(rows=[])
        _store(conn).fetch_reports(ReportFilter(reporter_email="a@example.org", is_anonymous=False))

        sql, params = conn.executed[1]
        assert "reporter_email = %s" in sql
        assert params == [False, "a@example.org"]

    def test_timeout_translated(self):
        conn = FakeConnection(error=psycopg2.errors.QueryCanceled(
            "canceling statement due to statement timeout"
        ))
        with pytest.raises(StoreTimeoutError):
            _store(conn).fetch_reports()
        assert conn.rolled_back and conn.closed

    def test_driver_error_translated(self):
        conn = FakeConnection(error=psycopg2.ProgrammingError("function get_defaulters(integer) does not exist"))
        with pytest.raises(StoreError, match="get_defaulters"):
            _store(conn).group_defaulters(2)

    def test_connection_failure_translated(self):
        def refuse():
            raise psycopg2.OperationalError("could not connect to server")

        with pytest.raises(StoreError, match="could not connect"):
            PostgresReportStore(refuse).count_reports()

    def test_update_rejected_when_ids_missing(self):
        conn = FakeConnection(rowcount=1)
        with pytest.raises(StoreError, match="matched 1"):
            _store(conn).update_status(["a", "b"], "verified")
        assert conn.rolled_back
        assert not conn.committed

    def test_update_counts_distinct_ids(self):
        conn = FakeConnection(rowcount=2)
        _store(conn).update_status(["a", "b", "a"], "resolved")
        assert conn.committed

    def test_group_defaulters_passes_threshold(self):
        conn = FakeConnection(rows=[{"corrupt_person_name": "X", "report_count": 3}])
        rows = _store(conn).group_defaulters(3)
        assert conn.executed[1] == ("SELECT * FROM get_defaulters(%s)", (3,))
        assert rows == [{"corrupt_person_name": "X", "report_count": 3}]

    def test_projection_whitelist(self):
        with pytest.raises(ValueError):
            _store(FakeConnection()).fetch_column("password")
