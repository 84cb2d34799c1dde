"""
Session helpers for the admin console.

Identity verification (passwords, email confirmation, resets) belongs to
the external identity provider. This module only:
- Reads and writes signed session cookies (itsdangerous)
- Decides whether a signed-in email is an administrator

An email is an administrator when it belongs to the admin domain
(CORRUPTIONWATCH_ADMIN_DOMAIN, default corruptionwatchdog.in).

For production:
- Set CORRUPTIONWATCH_SESSION_SECRET to a 32+ character random string
- Set CORRUPTIONWATCH_PRODUCTION=1 for secure cookie settings
- Leave CORRUPTIONWATCH_DEV_LOGIN unset so only the identity gateway
  mints sessions
"""

import os
import warnings
from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadSignature, URLSafeSerializer

from corruptionwatch.core.authorization import Authorizer


# ============================================================
# CONFIGURATION
# ============================================================

SESSION_COOKIE = "cw_session"
DEFAULT_ADMIN_DOMAIN = "corruptionwatchdog.in"


def _is_production() -> bool:
    return os.environ.get("CORRUPTIONWATCH_PRODUCTION", "").lower() in ("1", "true", "yes")


def dev_login_enabled() -> bool:
    """Whether the API may mint sessions itself (development only)."""
    if _is_production():
        return False
    return os.environ.get("CORRUPTIONWATCH_DEV_LOGIN", "").lower() in ("1", "true", "yes")


def admin_domain() -> str:
    return os.environ.get("CORRUPTIONWATCH_ADMIN_DOMAIN", DEFAULT_ADMIN_DOMAIN).lstrip("@").lower()


def is_admin_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return email.strip().lower().endswith("@" + admin_domain())


# ============================================================
# SESSION COOKIES
# ============================================================

def _serializer() -> URLSafeSerializer:
    secret = os.environ.get("CORRUPTIONWATCH_SESSION_SECRET", "")
    if not secret or len(secret) < 16:
        if _is_production():
            raise RuntimeError(
                "CORRUPTIONWATCH_SESSION_SECRET must be set in production. "
                "Generate with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
            )
        warnings.warn(
            "CORRUPTIONWATCH_SESSION_SECRET not set. Using insecure default.",
            stacklevel=2
        )
        secret = "dev-insecure-secret-do-not-use-in-production-12345678"
    return URLSafeSerializer(secret_key=secret, salt="corruptionwatch-session-v1")


@dataclass(frozen=True)
class SessionUser:
    email: str
    display_name: str = ""

    @property
    def is_admin(self) -> bool:
        return is_admin_email(self.email)


def create_session_cookie(user: SessionUser) -> str:
    return _serializer().dumps({"e": user.email, "n": user.display_name})


def read_session_cookie(cookie_value: Optional[str]) -> Optional[SessionUser]:
    if not cookie_value:
        return None
    try:
        data = _serializer().loads(cookie_value)
        return SessionUser(email=str(data["e"]), display_name=str(data.get("n", "")))
    except (BadSignature, KeyError, TypeError):
        return None


def set_session_cookie_response(resp, user: SessionUser):
    """Set session cookie on response with proper security settings."""
    is_prod = _is_production()
    resp.set_cookie(
        key=SESSION_COOKIE,
        value=create_session_cookie(user),
        httponly=True,
        samesite="strict" if is_prod else "lax",
        secure=is_prod,  # HTTPS only in production
        path="/",
        max_age=86400 * 7,  # 7 days
    )
    return resp


def clear_session_cookie_response(resp):
    resp.delete_cookie(SESSION_COOKIE, path="/")
    return resp


# ============================================================
# AUTHORIZER
# ============================================================

class SessionAuthorizer(Authorizer):
    """Admin check backed by the request's session cookie."""

    def __init__(self, user: Optional[SessionUser]):
        self._user = user

    def is_current_user_admin(self) -> bool:
        return self._user is not None and self._user.is_admin
