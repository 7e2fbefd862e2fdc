"""FastAPI dependencies for authentication and shared resources."""

import sqlite3
from collections.abc import AsyncIterator, Iterator
from typing import Annotated

import httpx
from fastapi import Cookie, Depends, Header, Request

from core import session
from core.config import JWT_SECRET, SESSION_COOKIE_NAME
from core.database import get_connection
from core.errors import NotFoundError, UnauthorizedError
from core.google_client import GoogleClient
from core.log_context import bind_log_context
from models.events import UserIdentity
from services.extraction import EventExtractor
from services.generative import get_generative_extractor
from services.users import get_by_id


def get_db(request: Request) -> Iterator[sqlite3.Connection]:
    """Per-request SQLite connection."""
    conn = get_connection(request.app.state.db_path)
    try:
        yield conn
    finally:
        conn.close()


def get_session_secret() -> str:
    return JWT_SECRET


def get_http_client() -> httpx.AsyncClient | None:
    """Shared transport for outbound calls; None lets each client make its own."""
    return None


def get_generative() -> EventExtractor | None:
    return get_generative_extractor()


def record_request(request: Request, **fields) -> None:
    request_log = getattr(request.state, "request_log", None)
    if request_log is not None:
        for key, value in fields.items():
            setattr(request_log, key, value)


async def get_session_subject(
    request: Request,
    secret: Annotated[str, Depends(get_session_secret)],
    authorization: Annotated[str | None, Header()] = None,
    auth_token: Annotated[str | None, Cookie(alias=SESSION_COOKIE_NAME)] = None,
) -> str:
    """
    Validate the session from the Bearer header or session cookie.

    Raises:
        UnauthorizedError: 401 if no token is presented or it is invalid/expired
    """
    token = session.token_from_request(authorization, auth_token)
    subject = session.validate(token, secret)
    record_request(request, user_id=subject)
    bind_log_context(user_id=subject)
    return subject


def get_current_user(
    subject: Annotated[str, Depends(get_session_subject)],
    conn: Annotated[sqlite3.Connection, Depends(get_db)],
) -> UserIdentity:
    try:
        return get_by_id(conn, subject)
    except NotFoundError as e:
        raise UnauthorizedError("Unauthorized") from e


async def get_google_client(
    user: Annotated[UserIdentity, Depends(get_current_user)],
    http_client: Annotated[httpx.AsyncClient | None, Depends(get_http_client)],
) -> AsyncIterator[GoogleClient]:
    """Google handle built from the current user's stored token."""
    client = GoogleClient.for_user(user, http_client=http_client)
    try:
        yield client
    finally:
        await client.aclose()


def operation(name: str):
    """Dependency tagging the request log and log context with an operation name."""

    async def _tag(request: Request) -> str:
        record_request(request, operation=name)
        bind_log_context(operation=name)
        return name

    return Depends(_tag)
