"""
Google sign-in: exchange the authorization code, verify the identity,
store the access token and mint a session token.
"""

import logging
import sqlite3

import httpx
from fastapi.concurrency import run_in_threadpool

from core import session
from core.google_client import exchange_code, verify_id_token
from models.events import UserIdentity
from services.users import upsert_by_email

logger = logging.getLogger(__name__)


async def login_with_code(
    conn: sqlite3.Connection,
    code: str,
    secret: str,
    http_client: httpx.AsyncClient | None = None,
) -> tuple[UserIdentity, str]:
    """
    Complete a Google login.

    Returns the created or refreshed user and a one-hour session token.
    """
    tokens = await exchange_code(code, http_client=http_client)
    claims = await verify_id_token(tokens["id_token"], http_client=http_client)

    user = await run_in_threadpool(
        upsert_by_email,
        conn,
        claims["email"],
        {"name": claims.get("name"), "image": claims.get("picture")},
        tokens["access_token"],
    )
    token = session.issue(user.id, secret)
    logger.info("User logged in", extra={"user_id": user.id})
    return user, token
