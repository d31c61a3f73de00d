"""Shared-password login guarding /session and /search.

Provider secrets are spent on behalf of whoever calls /session, so those
routes require a cookie obtained with DASHBOARD_PASSWORD. Logins live in
process memory and expire after LOGIN_TTL_HOURS.
"""
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from omnivoice.core.config import settings

router = APIRouter(prefix="/api/auth")
logger = logging.getLogger(__name__)

LOGIN_COOKIE = "session_token"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LoginSessions:
    """Token -> expiry map for a single server process."""

    def __init__(self):
        self._expiry: Dict[str, datetime] = {}

    def __contains__(self, token: object) -> bool:
        return token in self._expiry

    def __len__(self) -> int:
        return len(self._expiry)

    def open(self, ttl: timedelta) -> str:
        token = secrets.token_urlsafe(32)
        self._expiry[token] = utc_now() + ttl
        return token

    def expires_at(self, token: str) -> Optional[datetime]:
        return self._expiry.get(token)

    def is_valid(self, token: Optional[str]) -> bool:
        """True for a known, unexpired token. Expired tokens are forgotten."""
        expires_at = self._expiry.get(token or "")
        if expires_at is None:
            return False
        if utc_now() >= expires_at:
            del self._expiry[token]
            return False
        return True

    def revoke(self, token: Optional[str]) -> None:
        self._expiry.pop(token or "", None)

    def clear(self) -> None:
        self._expiry.clear()


login_sessions = LoginSessions()


class LoginRequest(BaseModel):
    password: str


def check_password(password: str) -> bool:
    """Constant-time comparison against DASHBOARD_PASSWORD. False when unset."""
    expected = settings.dashboard_password
    if not expected:
        return False
    return hmac.compare_digest(password.encode(), expected.encode())


async def require_auth(request: Request) -> bool:
    """Dependency for routes that spend provider or search quota."""
    if not login_sessions.is_valid(request.cookies.get(LOGIN_COOKIE)):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return True


@router.post("/login")
async def login(body: LoginRequest, response: Response):
    if not check_password(body.password):
        logger.warning("[AUTH] Rejected login attempt")
        raise HTTPException(status_code=401, detail="Invalid password")

    ttl = timedelta(hours=settings.login_ttl_hours)
    token = login_sessions.open(ttl)
    response.set_cookie(
        key=LOGIN_COOKIE,
        value=token,
        httponly=True,
        max_age=int(ttl.total_seconds()),
        samesite="lax",
    )
    logger.info(f"[AUTH] Login accepted, valid for {settings.login_ttl_hours}h")
    return {"success": True, "expires_at": login_sessions.expires_at(token).isoformat()}


@router.post("/logout")
async def logout(request: Request, response: Response):
    login_sessions.revoke(request.cookies.get(LOGIN_COOKIE))
    response.delete_cookie(LOGIN_COOKIE)
    return {"success": True}
