"""Shared fixtures for the CorruptionWatch test suite."""

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any, Optional

import pytest

from corruptionwatch.db.store import InMemoryReportStore, ReportFilter, ReportStore, StoreError
from corruptionwatch.schemas import Category, Report, ReportStatus

_ids = count(1)

BASE_TIME = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_report(
    person: str = "R. K. Verma",
    region: Optional[str] = "Lucknow",
    category: Category = Category.BRIBERY,
    status: ReportStatus = ReportStatus.PENDING,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    is_anonymous: Optional[bool] = None,
    reporter_email: Optional[str] = None,
    created_at: Optional[datetime] = None,
    **extra: Any,
) -> Report:
    """Build a Report with sensible defaults. Each call gets a new id."""
    n = next(_ids)
    return Report(
        id=f"r-{n}",
        corrupt_person_name=person,
        designation=extra.pop("designation", "Tehsildar"),
        area_region=region,
        latitude=latitude,
        longitude=longitude,
        description=extra.pop("description", f"Report {n}"),
        category=category,
        status=status,
        is_anonymous=reporter_email is None if is_anonymous is None else is_anonymous,
        reporter_email=reporter_email,
        created_at=created_at or BASE_TIME + timedelta(minutes=n),
        **extra,
    )


class FailingStore(ReportStore):
    """
    Store double whose methods raise StoreError with a fixed message.

    `failing` names the methods that fail; the rest delegate to an
    in-memory store. Every call is recorded in `calls`.
    """

    def __init__(self, message: str = "connection refused", failing=(), reports=()):
        self.message = message
        self.failing = set(failing)
        self.inner = InMemoryReportStore(reports)
        self.calls: list[tuple[str, Any]] = []

    def _call(self, name: str, *args):
        self.calls.append((name, args))
        if name in self.failing:
            raise StoreError(self.message)
        return getattr(self.inner, name)(*args)

    def fetch_reports(self, filter: Optional[ReportFilter] = None):
        return self._call("fetch_reports", filter)

    def count_reports(self, filter: Optional[ReportFilter] = None):
        return self._call("count_reports", filter)

    def fetch_column(self, column, filter=None):
        return self._call("fetch_column", column, filter)

    def group_defaulters(self, min_reports):
        return self._call("group_defaulters", min_reports)

    def update_status(self, ids, status):
        return self._call("update_status", ids, status)

    def delete_reports(self, ids):
        return self._call("delete_reports", ids)

    def create_report(self, data):
        return self._call("create_report", data)


class RowStore(FailingStore):
    """Store double whose grouping procedure returns canned rows."""

    def __init__(self, rows: list[dict[str, Any]]):
        super().__init__()
        self.rows = rows

    def group_defaulters(self, min_reports):
        self.calls.append(("group_defaulters", (min_reports,)))
        return list(self.rows)


@pytest.fixture
def store() -> InMemoryReportStore:
    return InMemoryReportStore()


@pytest.fixture(autouse=True)
def _session_secret(monkeypatch):
    monkeypatch.setenv("CORRUPTIONWATCH_SESSION_SECRET", "test-secret-0123456789abcdef")
    monkeypatch.delenv("CORRUPTIONWATCH_PRODUCTION", raising=False)
    monkeypatch.delenv("ENABLE_AUTO_SEED", raising=False)
