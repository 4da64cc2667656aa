# -*- coding: utf-8 -*-
"""
Authentication for the admin area.

- Admin accounts stored in the database, passwords hashed with passlib
- Signed JWT session tokens, verified server-side on every request
- Token accepted from the session cookie or an ``Authorization: Bearer`` header
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated

import jwt
from fastapi import Cookie, Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from pydantic import BaseModel

from .config import settings
from .database import db

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

SESSION_COOKIE_NAME = "jobs_blog_session"
SESSION_ALGORITHM = "HS256"

bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# Passwords
# =============================================================================
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


# =============================================================================
# Session tokens
# =============================================================================
class SessionData(BaseModel):
    """Session data stored in JWT."""

    user_id: str
    email: str
    exp: datetime


def create_session_token(user_id: str, email: str) -> tuple[str, datetime]:
    """Create a signed JWT session token. Returns (token, expiry)."""
    expiry = datetime.now(timezone.utc) + timedelta(hours=settings.SESSION_EXPIRY_HOURS)
    payload = {
        "sub": user_id,
        "email": email,
        "exp": expiry,
    }
    token = jwt.encode(payload, settings.SESSION_SECRET_KEY, algorithm=SESSION_ALGORITHM)
    return token, expiry


def verify_session_token(token: str) -> SessionData | None:
    """Verify and decode a session token."""
    try:
        payload = jwt.decode(
            token, settings.SESSION_SECRET_KEY, algorithms=[SESSION_ALGORITHM]
        )
        return SessionData(
            user_id=payload["sub"],
            email=payload["email"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Session token expired")
        return None
    except (jwt.InvalidTokenError, KeyError) as e:
        logger.debug(f"Invalid session token: {e}")
        return None


async def authenticate_user(email: str, password: str) -> dict | None:
    """
    Check admin credentials.

    Returns the admin user record if valid, None otherwise.
    """
    user = await db.get_admin_user_by_email(email)
    if user is None:
        # Hash anyway so unknown emails take as long as wrong passwords
        pwd_context.hash(password)
        return None
    if not verify_password(password, user["password_hash"]):
        return None
    return user


# =============================================================================
# FastAPI dependencies
# =============================================================================
async def get_current_session(
        session_token: Annotated[str | None, Cookie(alias=SESSION_COOKIE_NAME)] = None,
        credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> SessionData | None:
    """Get current session from cookie or bearer token (None if not authenticated)."""
    token = credentials.credentials if credentials else session_token
    if not token:
        return None
    return verify_session_token(token)


class AuthenticationRequired(HTTPException):
    """Exception raised when authentication is required."""

    def __init__(self, redirect_url: str = "/auth/login"):
        super().__init__(
            status_code=401,
            detail="Authentication required",
            headers={"Location": redirect_url},
        )
        self.redirect_url = redirect_url


async def require_session(
        session: Annotated[SessionData | None, Depends(get_current_session)],
        request: Request,
) -> SessionData:
    """
    Require a valid session.

    API routes get a 401 JSON error, HTML routes a redirect to the login page.
    """
    if not session:
        if "/api/" in request.url.path:
            raise HTTPException(
                status_code=401,
                detail="Authentication required. Please login at /auth/login",
            )
        next_url = str(request.url.path)
        raise AuthenticationRequired(f"/auth/login?next={next_url}")

    return session


# Dependency for protected routes
RequireSession = Annotated[SessionData, Depends(require_session)]


def set_session_cookie(response: Response, token: str) -> None:
    """Set session cookie with secure flags."""
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRY_HOURS * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=False,  # Set to True in production with HTTPS
    )


def clear_session_cookie(response: Response) -> None:
    """Clear session cookie."""
    response.delete_cookie(key=SESSION_COOKIE_NAME)
