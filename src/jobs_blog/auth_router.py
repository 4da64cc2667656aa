# -*- coding: utf-8 -*-
"""
Authentication routes for login, registration and logout.
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import RedirectResponse

from .auth import (
    SessionData,
    authenticate_user,
    clear_session_cookie,
    create_session_token,
    get_current_session,
    hash_password,
    set_session_cookie,
)
from .config import settings
from .database import DuplicateEmailError, db
from .models import LoginRequest, RegisterRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(request: LoginRequest, response: Response) -> TokenResponse:
    """Process login request."""
    user = await authenticate_user(request.email, request.password)
    if not user:
        logger.warning("Failed login attempt", extra={"email": request.email})
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token, expiry = create_session_token(user["id"], user["email"])
    set_session_cookie(response, token)
    logger.info("Admin logged in", extra={"email": user["email"]})
    return TokenResponse(token=token, email=user["email"], expires_at=expiry.isoformat())


@router.post("/register", status_code=201)
async def register(
        request: RegisterRequest,
        session: Annotated[SessionData | None, Depends(get_current_session)],
):
    """
    Create an admin account.

    Open while no admin exists (or when ALLOW_OPEN_REGISTRATION is set);
    afterwards only a logged-in admin can add accounts.
    """
    if not settings.ALLOW_OPEN_REGISTRATION and session is None:
        if await db.count_admin_users() > 0:
            raise HTTPException(
                status_code=403,
                detail="Registration is closed. Ask an existing admin to create your account.",
            )

    try:
        user = await db.create_admin_user(request.email, hash_password(request.password))
    except DuplicateEmailError:
        raise HTTPException(status_code=400, detail="Admin user already exists")

    logger.info("Admin registered", extra={"email": user["email"]})
    return {"success": True, "message": "Admin account created", "email": user["email"]}


@router.get("/logout")
async def logout():
    """Process logout request."""
    response = RedirectResponse(url="/", status_code=302)
    clear_session_cookie(response)
    return response


@router.get("/status")
async def auth_status(
        session: Annotated[SessionData | None, Depends(get_current_session)],
):
    """Check authentication status."""
    if session:
        return {
            "authenticated": True,
            "email": session.email,
            "expires": session.exp.isoformat(),
        }

    return {"authenticated": False}
