"""
Admin API Routes

Moderation endpoints for the admin console:
- POST /api/admin/session               - Start a session (development login)
- POST /api/admin/logout                - End the session
- GET  /api/admin/me                    - Who am I, and am I an admin
- GET  /api/admin/stats                 - Moderation dashboard counters
- GET  /api/admin/reports               - Full report list incl. reporter details
- POST /api/admin/reports/bulk-status   - Set status on many reports
- POST /api/admin/reports/bulk-delete   - Delete many reports
- GET  /api/admin/users                 - Reporters derived from non-anonymous reports
- GET  /api/admin/users/{email}/reports - One reporter's reports, newest first

Status codes:
- 401 no session
- 403 session is not an administrator
- 503 the store could not be read (write failures are reported in the
  bulk result body with 200)
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field

from corruptionwatch.core import (
    AnalyticsService,
    AuthorizationFailure,
    BulkOperationCoordinator,
    Delete,
    FetchFailure,
    SetStatus,
    StatisticsAggregator,
)
from corruptionwatch.db.store import ReportFilter
from corruptionwatch.observability import get_logger
from corruptionwatch.schemas import (
    AdminStats,
    BulkOperationResult,
    Category,
    Report,
    ReporterRoster,
    ReportStatus,
)
from corruptionwatch.web.auth import (
    SessionAuthorizer,
    SessionUser,
    clear_session_cookie_response,
    dev_login_enabled,
    set_session_cookie_response,
)
from corruptionwatch.web.deps import (
    get_admin_statistics,
    get_analytics,
    get_authorizer,
    get_bulk_coordinator,
    get_session_user,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin API"])


# ============================================================
# Request/Response Models
# ============================================================

class SessionRequest(BaseModel):
    email: str = Field(..., min_length=3)
    display_name: str = ""


class MeResponse(BaseModel):
    email: str
    display_name: str
    is_admin: bool


class BulkStatusRequest(BaseModel):
    ids: list[str]
    status: str


class BulkDeleteRequest(BaseModel):
    ids: list[str]


class AdminReportList(BaseModel):
    reports: list[Report]
    count: int


def _forbidden(e: AuthorizationFailure) -> HTTPException:
    return HTTPException(status_code=403, detail=str(e))


def _unavailable(e: FetchFailure) -> HTTPException:
    return HTTPException(status_code=503, detail=str(e))


# ============================================================
# Session
# ============================================================

@router.post("/session", response_model=MeResponse)
def start_session(body: SessionRequest, response: Response):
    """
    Development stand-in for the identity provider.

    Disabled unless CORRUPTIONWATCH_DEV_LOGIN=1 outside production.
    """
    if not dev_login_enabled():
        raise HTTPException(status_code=404, detail="Not found")
    user = SessionUser(email=body.email.strip(), display_name=body.display_name)
    set_session_cookie_response(response, user)
    logger.info("Development session started", email=user.email, is_admin=user.is_admin)
    return MeResponse(email=user.email, display_name=user.display_name, is_admin=user.is_admin)


@router.post("/logout")
def logout(response: Response):
    clear_session_cookie_response(response)
    return {"success": True}


@router.get("/me", response_model=MeResponse)
def me(user: SessionUser = Depends(get_session_user)):
    return MeResponse(email=user.email, display_name=user.display_name, is_admin=user.is_admin)


# ============================================================
# Reads
# ============================================================

@router.get("/stats", response_model=AdminStats)
def admin_stats(statistics: StatisticsAggregator = Depends(get_admin_statistics)):
    try:
        return statistics.compute_admin_stats()
    except AuthorizationFailure as e:
        raise _forbidden(e)
    except FetchFailure as e:
        raise _unavailable(e)


@router.get("/reports", response_model=AdminReportList)
def admin_reports(
    search: Optional[str] = None,
    category: Optional[Category] = None,
    status: Optional[ReportStatus] = None,
    is_anonymous: Optional[bool] = None,
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    authorizer: SessionAuthorizer = Depends(get_authorizer),
    analytics: AnalyticsService = Depends(get_analytics),
):
    if not authorizer.is_current_user_admin():
        raise _forbidden(AuthorizationFailure())
    filter = ReportFilter(
        search=search,
        category=category.value if category else None,
        status=status.value if status else None,
        is_anonymous=is_anonymous,
        limit=limit,
        offset=offset,
    )
    try:
        reports = analytics.list_reports(filter)
    except FetchFailure as e:
        raise _unavailable(e)
    return AdminReportList(reports=reports, count=len(reports))


# ============================================================
# Reporters
# ============================================================

@router.get("/users", response_model=ReporterRoster)
def reporters(
    search: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    statistics: StatisticsAggregator = Depends(get_admin_statistics),
):
    """Everyone who filed a report under their own email."""
    try:
        return statistics.compute_reporters(search=search, limit=limit, offset=offset)
    except AuthorizationFailure as e:
        raise _forbidden(e)
    except FetchFailure as e:
        raise _unavailable(e)


@router.get("/users/{email}/reports", response_model=AdminReportList)
def reporter_reports(email: str, statistics: StatisticsAggregator = Depends(get_admin_statistics)):
    try:
        reports = statistics.reports_by_reporter(email)
    except AuthorizationFailure as e:
        raise _forbidden(e)
    except FetchFailure as e:
        raise _unavailable(e)
    return AdminReportList(reports=reports, count=len(reports))


# ============================================================
# Bulk mutations
# ============================================================

@router.post("/reports/bulk-status", response_model=BulkOperationResult)
def bulk_status(
    body: BulkStatusRequest,
    coordinator: BulkOperationCoordinator = Depends(get_bulk_coordinator),
):
    try:
        return coordinator.apply(SetStatus(body.status), body.ids)
    except AuthorizationFailure as e:
        raise _forbidden(e)


@router.post("/reports/bulk-delete", response_model=BulkOperationResult)
def bulk_delete(
    body: BulkDeleteRequest,
    coordinator: BulkOperationCoordinator = Depends(get_bulk_coordinator),
):
    try:
        return coordinator.apply(Delete(), body.ids)
    except AuthorizationFailure as e:
        raise _forbidden(e)
