"""
Report Store Abstraction

This module defines the ReportStore interface and provides two implementations:
- InMemoryReportStore: For development and testing
- PostgresReportStore: For production, on psycopg2

The ReportStore is responsible for:
- Filtered row retrieval, counting and single-column projections
- The "group reports by person" procedure behind the defaulter directory
- Set-based, all-or-nothing status updates and deletions

The analytics engine retains responsibility for:
- Folding rows into region / category / statistics views
- Normalizing the loosely typed rows of the grouping procedure
- Authorization and partial-failure accounting for bulk mutations

MUTATION CONTRACT:
update_status() and delete_reports() either apply to every id or to none.
On rejection they raise StoreError and leave the collection unchanged.
update_status() rejects the batch if any id does not exist; delete_reports()
ignores ids that are already gone.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Generator, Iterable, Optional
from uuid import uuid4

import psycopg2
import psycopg2.extras

from ..schemas import Report, ReportCreate, ReportStatus


# ============================================================
# EXCEPTIONS
# ============================================================

class StoreError(Exception):
    """Base exception for report store errors."""
    pass


class StoreTimeoutError(StoreError):
    """Raised when a round trip to the store exceeds its time limit."""
    pass


# ============================================================
# DATA STRUCTURES
# ============================================================

# Columns that may be projected with fetch_column(). Anything else is
# rejected before it gets near a SQL string.
PROJECTABLE_COLUMNS = frozenset({
    "id",
    "corrupt_person_name",
    "designation",
    "area_region",
    "category",
    "status",
    "is_anonymous",
    "reporter_email",
    "created_at",
})


@dataclass
class ReportFilter:
    """
    Predicates for report retrieval.

    Equality: category, status, is_anonymous, reporter_email.
    Case-insensitive substring: region, person, search.
    `search` matches person name, designation, region, reporter email
    and description.
    """
    region: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    is_anonymous: Optional[bool] = None
    person: Optional[str] = None
    reporter_email: Optional[str] = None
    search: Optional[str] = None
    limit: Optional[int] = None
    offset: int = 0

    def matches(self, report: Report) -> bool:
        """Evaluate the predicates against one report (pagination excluded)."""
        if self.category and report.category.value != self.category:
            return False
        if self.status and report.status.value != self.status:
            return False
        if self.is_anonymous is not None and report.is_anonymous != self.is_anonymous:
            return False
        if self.reporter_email is not None and report.reporter_email != self.reporter_email:
            return False
        if self.region and self.region.lower() not in (report.area_region or "").lower():
            return False
        if self.person and self.person.lower() not in report.corrupt_person_name.lower():
            return False
        if self.search:
            needle = self.search.lower()
            haystack = (
                report.corrupt_person_name,
                report.designation,
                report.area_region or "",
                report.reporter_email or "",
                report.description,
            )
            if not any(needle in field.lower() for field in haystack):
                return False
        return True


def _check_column(column: str) -> None:
    if column not in PROJECTABLE_COLUMNS:
        raise ValueError(f"Column cannot be projected: {column}")


# ============================================================
# ABSTRACT BASE CLASS
# ============================================================

class ReportStore(ABC):
    """
    Abstract base class for report storage.

    The store exclusively owns the report collection. Read methods raise
    StoreError (or StoreTimeoutError) when the store cannot answer; they
    never return partial results.
    """

    # True when mutations can fail for individual rows and the store
    # reports them one at a time. Both shipped implementations are
    # all-or-nothing.
    supports_partial_failure: bool = False

    @abstractmethod
    def fetch_reports(self, filter: Optional[ReportFilter] = None) -> list[Report]:
        """
        List reports matching `filter`, newest first.

        Returns:
            List of reports, ordered by created_at descending
        """
        pass

    @abstractmethod
    def count_reports(self, filter: Optional[ReportFilter] = None) -> int:
        """Count reports matching `filter` (pagination ignored)."""
        pass

    @abstractmethod
    def fetch_column(self, column: str, filter: Optional[ReportFilter] = None) -> list[Any]:
        """
        Project a single column across matching reports.

        Cheaper than fetch_reports() when only one field is folded.
        """
        pass

    @abstractmethod
    def group_defaulters(self, min_reports: int) -> list[dict[str, Any]]:
        """
        Server-side grouping of reports by person name.

        Returns one row per person with at least `min_reports` reports:
        corrupt_person_name, designation, area_region, report_count,
        latest_report_date, categories and the procedure's own status.
        Field types are not guaranteed; callers must normalize.
        """
        pass

    @abstractmethod
    def update_status(self, ids: list[str], status: str) -> None:
        """Set `status` on every id, or on none. Raises StoreError."""
        pass

    @abstractmethod
    def delete_reports(self, ids: list[str]) -> None:
        """Delete every id, or none. Raises StoreError."""
        pass

    @abstractmethod
    def create_report(self, data: ReportCreate) -> Report:
        """Persist a newly filed report with status pending."""
        pass


# ============================================================
# IN-MEMORY IMPLEMENTATION
# ============================================================

class InMemoryReportStore(ReportStore):
    """
    In-memory implementation of ReportStore.

    Suitable for:
    - Development
    - Testing

    NOT suitable for:
    - Production (no durability)
    - Multi-instance deployments (no shared state)
    """

    def __init__(self, reports: Optional[Iterable[Report]] = None):
        self._reports: dict[str, Report] = {}
        self._lock = Lock()
        for report in reports or ():
            self._reports[report.id] = report

    def _snapshot(self) -> list[Report]:
        with self._lock:
            reports = list(self._reports.values())
        return sorted(reports, key=lambda r: r.created_at, reverse=True)

    def fetch_reports(self, filter: Optional[ReportFilter] = None) -> list[Report]:
        filter = filter or ReportFilter()
        matched = [r for r in self._snapshot() if filter.matches(r)]
        end = filter.offset + filter.limit if filter.limit is not None else None
        return matched[filter.offset:end]

    def count_reports(self, filter: Optional[ReportFilter] = None) -> int:
        filter = filter or ReportFilter()
        return sum(1 for r in self._snapshot() if filter.matches(r))

    def fetch_column(self, column: str, filter: Optional[ReportFilter] = None) -> list[Any]:
        _check_column(column)
        values = []
        for report in self.fetch_reports(filter):
            value = getattr(report, column)
            # Match what a database driver hands back for enum columns
            values.append(value.value if hasattr(value, "value") else value)
        return values

    def group_defaulters(self, min_reports: int) -> list[dict[str, Any]]:
        groups: dict[str, list[Report]] = {}
        # Oldest first so the last report seen is the most recent one
        for report in reversed(self._snapshot()):
            # One person regardless of case and surrounding whitespace
            key = report.corrupt_person_name.strip().lower()
            if key:
                groups.setdefault(key, []).append(report)

        rows = []
        for reports in groups.values():
            if len(reports) < min_reports:
                continue
            latest = reports[-1]
            categories: list[str] = []
            for r in reports:
                if r.category.value not in categories:
                    categories.append(r.category.value)
            rows.append({
                "corrupt_person_name": latest.corrupt_person_name.strip(),
                "designation": latest.designation,
                "area_region": latest.area_region or "",
                "report_count": len(reports),
                "latest_report_date": latest.created_at,
                "categories": categories,
                "status": _legacy_defaulter_status(len(reports)),
            })
        rows.sort(key=lambda row: row["report_count"], reverse=True)
        return rows

    def update_status(self, ids: list[str], status: str) -> None:
        new_status = ReportStatus(status)
        with self._lock:
            missing = [i for i in ids if i not in self._reports]
            if missing:
                raise StoreError(f"No document to update: {missing[0]}")
            now = datetime.now(timezone.utc)
            for report_id in ids:
                self._reports[report_id] = self._reports[report_id].model_copy(
                    update={"status": new_status, "updated_at": now}
                )

    def delete_reports(self, ids: list[str]) -> None:
        with self._lock:
            for report_id in ids:
                self._reports.pop(report_id, None)

    def create_report(self, data: ReportCreate) -> Report:
        fields = data.model_dump()
        if data.is_anonymous:
            fields["reporter_name"] = None
            fields["reporter_email"] = None
        now = datetime.now(timezone.utc)
        report = Report(
            id=str(uuid4()),
            status=ReportStatus.PENDING,
            created_at=now,
            updated_at=now,
            **fields,
        )
        with self._lock:
            self._reports[report.id] = report
        return report

    def clear(self) -> None:
        """Remove all reports (for testing only)."""
        with self._lock:
            self._reports.clear()


def _legacy_defaulter_status(report_count: int) -> str:
    # Thresholds the grouping procedure has always used; the engine
    # replaces this value with its own tier.
    if report_count >= 20:
        return "critical"
    if report_count >= 10:
        return "high"
    if report_count >= 5:
        return "medium"
    return "low"


# ============================================================
# POSTGRESQL IMPLEMENTATION
# ============================================================

class PostgresReportStore(ReportStore):
    """
    PostgreSQL implementation of ReportStore.

    Provides:
    - Server-side filtering, counting and projections
    - The get_defaulters(min_reports) SQL function (see schema.sql)
    - Single-statement, transactional bulk mutations
    - Statement timeouts so a slow database surfaces as StoreTimeoutError

    Every method opens its own connection and transaction; the store holds
    no connection state and can be shared across threads.
    """

    STATEMENT_TIMEOUT_MS = 10000  # 10 seconds

    # psycopg2 error code for statement timeout / cancel
    PGCODE_QUERY_CANCELED = "57014"

    def __init__(
        self,
        connection_factory: Callable[[], Any],
        statement_timeout_ms: int = STATEMENT_TIMEOUT_MS,
    ):
        """
        Initialize PostgreSQL report store.

        Args:
            connection_factory: Callable that returns a psycopg2 connection.
            statement_timeout_ms: Max statement execution time (ms). Default 10000.
        """
        self._connection_factory = connection_factory
        self._statement_timeout_ms = statement_timeout_ms

    @contextmanager
    def _cursor(self) -> Generator[Any, None, None]:
        """
        Yield a dict cursor inside one transaction.

        Commits on success, rolls back on any error, and translates driver
        errors into StoreError / StoreTimeoutError.
        """
        try:
            conn = self._connection_factory()
        except psycopg2.Error as e:
            raise self._translate(e) from e

        try:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(f"SET LOCAL statement_timeout = '{int(self._statement_timeout_ms)}ms'")
                yield cur
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            raise self._translate(e) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _translate(self, e: Exception) -> StoreError:
        pgcode = getattr(e, "pgcode", None)
        err_msg = (getattr(e, "pgerror", None) or str(e)).strip()
        if pgcode == self.PGCODE_QUERY_CANCELED or "timeout" in err_msg.lower():
            return StoreTimeoutError(f"Report store timed out: {err_msg}")
        return StoreError(err_msg or type(e).__name__)

    @staticmethod
    def _where(filter: Optional[ReportFilter]) -> tuple[str, list[Any]]:
        if filter is None:
            return "", []
        clauses: list[str] = []
        params: list[Any] = []
        if filter.category:
            clauses.append("category = %s")
            params.append(filter.category)
        if filter.status:
            clauses.append("status = %s")
            params.append(filter.status)
        if filter.is_anonymous is not None:
            clauses.append("is_anonymous = %s")
            params.append(filter.is_anonymous)
        if filter.reporter_email is not None:
            clauses.append("reporter_email = %s")
            params.append(filter.reporter_email)
        if filter.region:
            clauses.append("area_region ILIKE %s")
            params.append(f"%{filter.region}%")
        if filter.person:
            clauses.append("corrupt_person_name ILIKE %s")
            params.append(f"%{filter.person}%")
        if filter.search:
            clauses.append(
                "(corrupt_person_name ILIKE %s OR designation ILIKE %s"
                " OR area_region ILIKE %s OR reporter_email ILIKE %s"
                " OR description ILIKE %s)"
            )
            params.extend([f"%{filter.search}%"] * 5)
        if not clauses:
            return "", []
        return " WHERE " + " AND ".join(clauses), params

    @staticmethod
    def _page(filter: Optional[ReportFilter]) -> tuple[str, list[Any]]:
        if filter is None:
            return "", []
        sql, params = "", []
        if filter.limit is not None:
            sql += " LIMIT %s"
            params.append(filter.limit)
        if filter.offset:
            sql += " OFFSET %s"
            params.append(filter.offset)
        return sql, params

    def fetch_reports(self, filter: Optional[ReportFilter] = None) -> list[Report]:
        where, params = self._where(filter)
        page, page_params = self._page(filter)
        with self._cursor() as cur:
            cur.execute(
                "SELECT * FROM corruption_reports" + where
                + " ORDER BY created_at DESC" + page,
                params + page_params,
            )
            rows = cur.fetchall()
        return [Report.model_validate(dict(row)) for row in rows]

    def count_reports(self, filter: Optional[ReportFilter] = None) -> int:
        where, params = self._where(filter)
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) AS n FROM corruption_reports" + where, params)
            return int(cur.fetchone()["n"])

    def fetch_column(self, column: str, filter: Optional[ReportFilter] = None) -> list[Any]:
        _check_column(column)
        where, params = self._where(filter)
        page, page_params = self._page(filter)
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {column} AS value FROM corruption_reports" + where
                + " ORDER BY created_at DESC" + page,
                params + page_params,
            )
            return [row["value"] for row in cur.fetchall()]

    def group_defaulters(self, min_reports: int) -> list[dict[str, Any]]:
        with self._cursor() as cur:
            cur.execute("SELECT * FROM get_defaulters(%s)", (min_reports,))
            return [dict(row) for row in cur.fetchall()]

    def update_status(self, ids: list[str], status: str) -> None:
        with self._cursor() as cur:
            cur.execute(
                """
                UPDATE corruption_reports
                SET status = %s, updated_at = NOW()
                WHERE id = ANY(%s)
                """,
                (status, list(ids)),
            )
            if cur.rowcount != len(set(ids)):
                # Raising inside the cursor context rolls the update back
                raise StoreError(
                    f"Expected to update {len(set(ids))} reports, matched {cur.rowcount}"
                )

    def delete_reports(self, ids: list[str]) -> None:
        with self._cursor() as cur:
            cur.execute(
                "DELETE FROM corruption_reports WHERE id = ANY(%s)",
                (list(ids),),
            )

    def create_report(self, data: ReportCreate) -> Report:
        fields = data.model_dump(mode="json")
        if data.is_anonymous:
            fields["reporter_name"] = None
            fields["reporter_email"] = None
        columns = list(fields)
        with self._cursor() as cur:
            cur.execute(
                f"INSERT INTO corruption_reports ({', '.join(columns)})"
                f" VALUES ({', '.join(['%s'] * len(columns))})"
                " RETURNING *",
                [psycopg2.extras.Json(v) if isinstance(v, list) else v for v in fields.values()],
            )
            row = cur.fetchone()
        return Report.model_validate(dict(row))
