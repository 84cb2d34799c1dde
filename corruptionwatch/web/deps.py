"""
Dependency injection for the HTTP routes.

The store and analytics service live on app.state; the current user comes
from the session cookie.
"""

from typing import Optional

from fastapi import HTTPException, Request

from corruptionwatch.core import AnalyticsService, BulkOperationCoordinator, StatisticsAggregator
from corruptionwatch.db.store import ReportStore
from corruptionwatch.web.auth import SESSION_COOKIE, SessionAuthorizer, SessionUser, read_session_cookie


def get_store(request: Request) -> ReportStore:
    return request.app.state.report_store


def get_analytics(request: Request) -> AnalyticsService:
    return request.app.state.analytics


def get_optional_user(request: Request) -> Optional[SessionUser]:
    return read_session_cookie(request.cookies.get(SESSION_COOKIE))


def get_session_user(request: Request) -> SessionUser:
    """Get the current session user from cookie."""
    user = get_optional_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Not logged in")
    return user


def get_authorizer(request: Request) -> SessionAuthorizer:
    """
    Authorizer for the current request.

    Unauthenticated requests get 401 here. Authenticated non-admins get an
    authorizer that says no, and the engine turns that into a 403.
    """
    return SessionAuthorizer(get_session_user(request))


def get_bulk_coordinator(request: Request) -> BulkOperationCoordinator:
    return BulkOperationCoordinator(get_store(request), get_authorizer(request))


def get_admin_statistics(request: Request) -> StatisticsAggregator:
    return StatisticsAggregator(get_store(request), get_authorizer(request))
