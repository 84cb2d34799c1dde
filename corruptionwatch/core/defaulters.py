"""
Defaulter Aggregator

Builds the defaulter directory from the store's grouping procedure.

The procedure does the grouping; this module only normalizes what comes
back. Rows are loosely typed (BIGINT counts, TIMESTAMPTZ or string dates,
arrays that may be NULL), so every field is coerced, and the severity
tier is always recomputed here so the directory and the heat map use the
same thresholds.

Which report supplies a person's designation and region is the
procedure's choice and is not second-guessed.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..db.store import ReportFilter, ReportStore
from ..observability import get_logger
from ..schemas import DefaulterProfile, Report
from .errors import MalformedRemoteRow, fetching
from .severity import classify_severity

logger = get_logger(__name__)


# ============================================================
# FIELD COERCION
# ============================================================

def coerce_count(value: Any) -> int:
    """
    Coerce a remote count to int.

    Accepts int, integral float/Decimal and numeric strings.
    Raises MalformedRemoteRow for anything else.
    """
    if isinstance(value, bool) or value is None:
        raise MalformedRemoteRow(f"report_count is not a number: {value!r}")
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise MalformedRemoteRow(f"report_count is not a number: {value!r}")
    if not number.is_finite() or number != number.to_integral_value():
        raise MalformedRemoteRow(f"report_count is not a whole number: {value!r}")
    return int(number)


def format_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def coerce_timestamp(value: Any) -> Optional[str]:
    """
    Coerce a remote date to the canonical timestamp string.

    Accepts datetime, date, ISO-8601 strings and epoch numbers (seconds,
    or milliseconds when the value is too large to be seconds).
    Returns None when the value cannot be read as a date.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return format_timestamp(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    if isinstance(value, (int, float, Decimal)):
        seconds = float(value)
        if abs(seconds) > 1e11:
            seconds /= 1000.0
        try:
            return format_timestamp(datetime.fromtimestamp(seconds, tz=timezone.utc))
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return format_timestamp(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def coerce_categories(value: Any) -> list[str]:
    """Distinct, non-empty category keys. Anything that is not a list is empty."""
    if not isinstance(value, (list, tuple)):
        return []
    categories: list[str] = []
    for item in value:
        if item is None:
            continue
        key = str(getattr(item, "value", item)).strip()
        if key and key not in categories:
            categories.append(key)
    return categories


def normalize_row(row: dict[str, Any]) -> DefaulterProfile:
    """
    Turn one grouping-procedure row into a DefaulterProfile.

    Raises MalformedRemoteRow if the person's name or count is unusable.
    The row's own `status` is ignored.
    """
    name = row.get("corrupt_person_name")
    if not isinstance(name, str) or not name.strip():
        raise MalformedRemoteRow("row has no corrupt_person_name", row)

    report_count = coerce_count(row.get("report_count"))

    return DefaulterProfile(
        corrupt_person_name=name,
        designation=str(row.get("designation") or ""),
        area_region=str(row.get("area_region") or ""),
        report_count=report_count,
        latest_report_date=coerce_timestamp(row.get("latest_report_date")),
        categories=coerce_categories(row.get("categories")),
        status=classify_severity(report_count),
    )


# ============================================================
# AGGREGATOR
# ============================================================

class DefaulterAggregator:
    """
    Defaulter directory over a ReportStore.

    Usage:
        aggregator = DefaulterAggregator(store)
        profiles = aggregator.compute_defaulters(min_reports=2)
    """

    def __init__(self, store: ReportStore):
        self._store = store

    def compute_defaulters(self, min_reports: int = 2) -> list[DefaulterProfile]:
        """
        Profiles of everyone with at least `min_reports` reports.

        min_reports=1 lists every reported person. Output is ordered by
        report_count descending, ties in the order the procedure returned.

        Raises:
            ValueError: min_reports < 1
            FetchFailure: the grouping procedure failed (no partial result)
        """
        if isinstance(min_reports, bool) or not isinstance(min_reports, int) or min_reports < 1:
            raise ValueError(f"min_reports must be an integer >= 1, got {min_reports!r}")

        with fetching("defaulters"):
            rows = self._store.group_defaulters(min_reports)

        profiles: list[DefaulterProfile] = []
        skipped = 0
        for row in rows:
            try:
                profile = normalize_row(row)
            except MalformedRemoteRow as e:
                skipped += 1
                logger.warning("Skipping malformed defaulter row", reason=str(e))
                continue
            if profile.report_count < min_reports:
                skipped += 1
                logger.warning(
                    "Skipping defaulter row below threshold",
                    person=profile.corrupt_person_name,
                    report_count=profile.report_count,
                    min_reports=min_reports,
                )
                continue
            profiles.append(profile)

        profiles.sort(key=lambda p: p.report_count, reverse=True)

        logger.info(
            "Defaulters computed",
            min_reports=min_reports,
            defaulter_count=len(profiles),
            skipped_rows=skipped,
        )
        return profiles

    def reports_for_person(self, person: str, limit: Optional[int] = None) -> list[Report]:
        """
        Reports whose person name contains `person` (case-insensitive),
        newest first. Backs the profile detail page.

        Raises:
            FetchFailure: the store could not be read
        """
        with fetching("reports for person"):
            return self._store.fetch_reports(ReportFilter(person=person, limit=limit))


def filter_defaulters(
    profiles: list[DefaulterProfile],
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> list[DefaulterProfile]:
    """
    Narrow a directory the way the directory page does.

    `search` is a case-insensitive substring of the name, designation or
    region; `category` must be one of the profile's categories. Order is
    preserved.
    """
    needle = (search or "").strip().lower()
    category = (category or "").strip() or None

    def keep(profile: DefaulterProfile) -> bool:
        if needle and not any(
            needle in field.lower()
            for field in (profile.corrupt_person_name, profile.designation, profile.area_region)
        ):
            return False
        return category is None or category in profile.categories

    return [p for p in profiles if keep(p)]
