"""Login, logout and profile endpoints."""

import sqlite3
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, Request, Response

from api.dependencies import (
    get_db,
    get_http_client,
    get_session_secret,
    get_session_subject,
    operation,
    record_request,
)
from api.models import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    UpdateProfileRequest,
)
from core.config import SESSION_COOKIE_NAME, SESSION_COOKIE_SECURE, SESSION_TTL_SECONDS
from core.errors import ForbiddenError
from services.auth import login_with_code
from services.users import update_profile

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    body: LoginRequest,
    response: Response,
    conn: Annotated[sqlite3.Connection, Depends(get_db)],
    secret: Annotated[str, Depends(get_session_secret)],
    http_client: Annotated[httpx.AsyncClient | None, Depends(get_http_client)],
    _op: str = operation("login"),
):
    """
    Exchange a Google authorization code for a session.

    Returns the session token and sets it as an http-only cookie.
    """
    user, token = await login_with_code(conn, body.code, secret, http_client=http_client)
    record_request(request, user_id=user.id)

    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=SESSION_TTL_SECONDS,
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="strict",
    )
    return LoginResponse(message="Success", token=token, user=user.public_dict())


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response, _op: str = operation("logout")):
    """Clear the session cookie. Tokens already issued stay valid until expiry."""
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="strict",
    )
    return MessageResponse(message="Logged out")


@router.put("/update-profile", response_model=ProfileResponse)
def update_profile_endpoint(
    body: UpdateProfileRequest,
    subject: Annotated[str, Depends(get_session_subject)],
    conn: Annotated[sqlite3.Connection, Depends(get_db)],
    _op: str = operation("update_profile"),
):
    """Update name, email or image of the signed-in user."""
    user_id = body.user_id or subject
    if user_id != subject:
        raise ForbiddenError("Cannot update another user's profile")

    fields = body.model_dump(include={"name", "email", "image"}, exclude_unset=True)
    user = update_profile(conn, user_id, fields)
    return ProfileResponse(message="Profile updated successfully", user=user.public_dict())
