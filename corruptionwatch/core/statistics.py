"""
Statistics Aggregator

Headline numbers for the public dashboard and the admin console.

The public summary is advisory. Each headline count is fetched on its own;
a failed count becomes zero plus a warning and never hides the others.
Breakdowns by region and category are folded here from single-column
projections rather than full rows.

The admin side (counters, reporter roster, per-reporter reports) is
admin-gated and folds full rows.
"""

from datetime import datetime, timezone
from typing import Optional

from ..db.store import ReportFilter, ReportStore, StoreError
from ..observability import get_logger
from ..schemas import (
    AdminStats,
    CategoryCount,
    RegionCount,
    Report,
    ReporterRoster,
    ReporterSummary,
    ReportStatus,
    StatisticsSummary,
)
from .aggregation import count_values
from .authorization import Authorizer
from .errors import AuthorizationFailure, fetching

logger = get_logger(__name__)

TOP_REGIONS = 10
DEFAULT_ROSTER_PAGE = 50


def start_of_month(now: datetime) -> datetime:
    """00:00 UTC on the first day of `now`'s month."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _as_utc(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


class StatisticsAggregator:
    """
    Dashboard statistics over a ReportStore.

    Usage:
        stats = StatisticsAggregator(store).compute_statistics()
        if stats.warnings:
            ...show a non-blocking notice...
    """

    # (field on StatisticsSummary, status filter or None for all)
    HEADLINE_COUNTS: tuple[tuple[str, Optional[ReportStatus]], ...] = (
        ("total_reports", None),
        ("resolved_reports", ReportStatus.RESOLVED),
        ("pending_reports", ReportStatus.PENDING),
        ("verified_reports", ReportStatus.VERIFIED),
    )

    def __init__(self, store: ReportStore, authorizer: Optional[Authorizer] = None):
        self._store = store
        self._authorizer = authorizer

    def compute_statistics(self) -> StatisticsSummary:
        """Never raises for store failures; see `warnings` on the result."""
        summary = StatisticsSummary()

        for field_name, status in self.HEADLINE_COUNTS:
            filter = ReportFilter(status=status.value) if status else None
            try:
                setattr(summary, field_name, self._store.count_reports(filter))
            except StoreError as e:
                logger.warning("Headline count unavailable", statistic=field_name, error=str(e))
                summary.warnings.append(f"{field_name}: {e}")

        try:
            regions = self._store.fetch_column("area_region")
            summary.region_stats = [
                RegionCount(region=region, count=count)
                for region, count in count_values(regions, top=TOP_REGIONS)
            ]
        except StoreError as e:
            logger.warning("Region breakdown unavailable", error=str(e))
            summary.warnings.append(f"region_stats: {e}")

        try:
            categories = self._store.fetch_column("category")
            summary.category_stats = [
                CategoryCount(category=category, count=count)
                for category, count in count_values(categories)
            ]
        except StoreError as e:
            logger.warning("Category breakdown unavailable", error=str(e))
            summary.warnings.append(f"category_stats: {e}")

        return summary

    def compute_admin_stats(self, now: Optional[datetime] = None) -> AdminStats:
        """
        Moderation dashboard counters.

        total_users counts distinct non-anonymous reporter emails plus one
        for the administrator account.

        Raises:
            AuthorizationFailure: caller is not an administrator
            FetchFailure: the store could not be read
        """
        self._require_admin()

        month_start = start_of_month(now or datetime.now(timezone.utc))

        with fetching("admin statistics"):
            rows = self._store.fetch_reports()

        stats = AdminStats(total_reports=len(rows))
        reporters: set[str] = set()
        for report in rows:
            created = _as_utc(report.created_at)
            this_month = created is not None and created >= month_start
            if report.is_anonymous:
                stats.anonymous_reports += 1
            elif report.reporter_email:
                reporters.add(report.reporter_email)
                if this_month:
                    stats.users_this_month += 1
            if this_month:
                stats.reports_this_month += 1
            if report.status == ReportStatus.VERIFIED:
                stats.verified_reports += 1
            elif report.status == ReportStatus.PENDING:
                stats.pending_reports += 1
            elif report.status == ReportStatus.RESOLVED:
                stats.resolved_reports += 1
            elif report.status == ReportStatus.DISPUTED:
                stats.disputed_reports += 1

        stats.total_users = len(reporters) + 1
        return stats

    def compute_reporters(
        self,
        search: Optional[str] = None,
        limit: int = DEFAULT_ROSTER_PAGE,
        offset: int = 0,
    ) -> ReporterRoster:
        """
        Citizens who filed at least one non-anonymous report.

        Reporters are keyed on their exact email and ordered by most
        recent report. `search` is a case-insensitive substring of the
        email or reporter name. `total` counts matches before paging.

        Raises:
            AuthorizationFailure: caller is not an administrator
            FetchFailure: the store could not be read
        """
        self._require_admin()
        if limit < 1 or offset < 0:
            raise ValueError(f"limit must be >= 1 and offset >= 0, got {limit}, {offset}")

        with fetching("reporters"):
            rows = self._store.fetch_reports(ReportFilter(is_anonymous=False))

        # Rows arrive newest first, so the first sighting is the latest report
        by_email: dict[str, dict] = {}
        for report in rows:
            if not report.reporter_email:
                continue
            created = _as_utc(report.created_at)
            entry = by_email.get(report.reporter_email)
            if entry is None:
                by_email[report.reporter_email] = {
                    "email": report.reporter_email,
                    "reporter_name": report.reporter_name or "",
                    "report_count": 1,
                    "first_report_at": created,
                    "latest_report_at": created,
                }
                continue
            entry["report_count"] += 1
            entry["first_report_at"] = min(entry["first_report_at"], created)
            entry["latest_report_at"] = max(entry["latest_report_at"], created)
            if not entry["reporter_name"] and report.reporter_name:
                entry["reporter_name"] = report.reporter_name

        needle = (search or "").strip().lower()
        reporters = [
            ReporterSummary(**entry)
            for entry in by_email.values()
            if not needle or needle in entry["email"].lower() or needle in entry["reporter_name"].lower()
        ]
        reporters.sort(key=lambda r: r.latest_report_at, reverse=True)

        return ReporterRoster(
            reporters=reporters[offset:offset + limit],
            total=len(reporters),
            limit=limit,
            offset=offset,
        )

    def reports_by_reporter(self, email: str) -> list[Report]:
        """
        Non-anonymous reports filed under exactly `email`, newest first.

        Raises:
            AuthorizationFailure: caller is not an administrator
            FetchFailure: the store could not be read
        """
        self._require_admin()
        with fetching("reports by reporter"):
            return self._store.fetch_reports(ReportFilter(reporter_email=email, is_anonymous=False))

    def _require_admin(self) -> None:
        if self._authorizer is None or not self._authorizer.is_current_user_admin():
            raise AuthorizationFailure()
