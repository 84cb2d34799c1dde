"""
Public API Routes

Read-only views for the public site, plus report submission:
- GET  /api/public/heatmap                 - Region density + category split
- GET  /api/public/defaulters              - Defaulter directory
- GET  /api/public/statistics              - Headline numbers
- GET  /api/public/reports                 - Filtered report list
- GET  /api/public/people/{name}/reports   - Reports filed against one person
- POST /api/public/reports                 - File a new report

Read failures never turn into 5xx responses here: the views carry an
`error` (or `warnings`) field and empty data instead.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from corruptionwatch.core import AnalyticsService, FetchFailure
from corruptionwatch.db.store import ReportFilter, ReportStore, StoreError
from corruptionwatch.observability import get_logger
from corruptionwatch.schemas import (
    Category,
    DirectoryView,
    HeatMapView,
    Report,
    ReportCreate,
    ReportStatus,
    StatisticsSummary,
)
from corruptionwatch.web.deps import get_analytics, get_store

logger = get_logger(__name__)

router = APIRouter(prefix="/api/public", tags=["Public API"])


# Public views are recomputed on every request; let browsers reuse briefly
CACHE_CONTROL_PUBLIC = "public, max-age=30"

MAX_PAGE_SIZE = 200


# ============================================================
# Response Models
# ============================================================

class PublicReport(BaseModel):
    """Report as shown to the public. Reporter identity is never exposed."""
    id: str
    corrupt_person_name: str
    designation: str
    area_region: Optional[str] = None
    description: str
    category: str
    status: str
    approached_authorities: bool
    was_resolved: bool
    evidence_files: list[str] = []
    is_anonymous: bool
    upvotes: int
    downvotes: int
    dispute_count: int
    created_at: str

    @classmethod
    def from_report(cls, report: Report) -> "PublicReport":
        return cls(
            id=report.id,
            corrupt_person_name=report.corrupt_person_name,
            designation=report.designation,
            area_region=report.area_region,
            description=report.description,
            category=report.category.value,
            status=report.status.value,
            approached_authorities=report.approached_authorities,
            was_resolved=report.was_resolved,
            evidence_files=list(report.evidence_files),
            is_anonymous=report.is_anonymous,
            upvotes=report.upvotes,
            downvotes=report.downvotes,
            dispute_count=report.dispute_count,
            created_at=report.created_at.isoformat(),
        )


class ReportListResponse(BaseModel):
    reports: list[PublicReport] = []
    error: Optional[str] = None


def _cached(model: BaseModel) -> JSONResponse:
    return JSONResponse(
        content=model.model_dump(mode="json"),
        headers={"Cache-Control": CACHE_CONTROL_PUBLIC},
    )


# ============================================================
# Endpoints
# ============================================================

@router.get("/heatmap", response_model=HeatMapView)
def heat_map(analytics: AnalyticsService = Depends(get_analytics)):
    """
    Per-region report counts with coordinates and severity, and the
    category distribution. Regions without coordinates are included;
    the map skips them.
    """
    return _cached(analytics.heat_map())


@router.get("/defaulters", response_model=DirectoryView)
def defaulters(
    min_reports: int = Query(2, ge=1, description="1 lists everyone with a report"),
    search: Optional[str] = Query(None, description="Name, designation or region contains"),
    category: Optional[Category] = None,
    analytics: AnalyticsService = Depends(get_analytics),
):
    """People with at least `min_reports` reports, most reported first."""
    view = analytics.directory(
        min_reports,
        search=search,
        category=category.value if category else None,
    )
    return _cached(view)


@router.get("/statistics", response_model=StatisticsSummary)
def statistics(analytics: AnalyticsService = Depends(get_analytics)):
    """Headline counts and top regions. Partial failures appear in `warnings`."""
    return _cached(analytics.statistics_summary())


@router.get("/reports", response_model=ReportListResponse)
def list_reports(
    region: Optional[str] = None,
    category: Optional[Category] = None,
    status: Optional[ReportStatus] = None,
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    analytics: AnalyticsService = Depends(get_analytics),
):
    filter = ReportFilter(
        region=region,
        category=category.value if category else None,
        status=status.value if status else None,
        limit=limit,
        offset=offset,
    )
    try:
        reports = analytics.list_reports(filter)
    except FetchFailure as e:
        return ReportListResponse(error=str(e))
    return ReportListResponse(reports=[PublicReport.from_report(r) for r in reports])


@router.get("/people/{person}/reports", response_model=ReportListResponse)
def person_reports(person: str, analytics: AnalyticsService = Depends(get_analytics)):
    """Every report whose person name contains `person` (case-insensitive)."""
    try:
        reports = analytics.person_reports(person)
    except FetchFailure as e:
        return ReportListResponse(error=str(e))
    return ReportListResponse(reports=[PublicReport.from_report(r) for r in reports])


@router.post("/reports", response_model=PublicReport, status_code=201)
def submit_report(
    body: ReportCreate,
    store: ReportStore = Depends(get_store),
):
    """File a new report. It starts out pending moderation."""
    try:
        report = store.create_report(body)
    except StoreError as e:
        logger.error("Report submission failed", error=str(e))
        return JSONResponse(status_code=503, content={"detail": f"Could not save report: {e}"})
    logger.info(
        "Report submitted",
        report_id=report.id,
        category=report.category.value,
        anonymous=report.is_anonymous,
    )
    return PublicReport.from_report(report)
