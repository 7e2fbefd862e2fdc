"""
Signed, time-boxed session tokens.

Tokens are HS256 JWTs carrying ``sub``, ``iat`` and ``exp`` claims. They are
stateless: validity depends only on the signature and the expiry, and no
leeway is granted for clock skew.
"""

from datetime import datetime, timedelta, timezone

import jwt as pyjwt

from core.config import JWT_ALGORITHM, SESSION_TTL_SECONDS
from core.errors import ConfigurationError, InvalidSessionError, UnauthorizedError


def issue(subject: str, secret: str, issued_at: datetime | None = None) -> str:
    """Create a session token for ``subject`` that expires one hour after issue."""
    if not secret:
        raise ConfigurationError("Session signing secret is not configured")
    if not subject:
        raise ValueError("subject must be a non-empty string")

    issued_at = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(seconds=SESSION_TTL_SECONDS)).timestamp()),
    }
    return pyjwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def validate(token: str, secret: str) -> str:
    """
    Verify a session token and return its subject.

    Raises:
        InvalidSessionError: bad signature, malformed token, missing claims,
            or the current time is at or past ``exp``
        ConfigurationError: no signing secret configured
    """
    if not secret:
        raise ConfigurationError("Session signing secret is not configured")

    try:
        payload = pyjwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["sub", "iat", "exp"]},
        )
    except pyjwt.ExpiredSignatureError as e:
        raise InvalidSessionError("Session expired") from e
    except pyjwt.InvalidTokenError as e:
        raise InvalidSessionError("Invalid session token") from e

    # PyJWT accepts exp == now; sessions end at expiry, not one second after
    if int(payload["exp"]) <= int(datetime.now(timezone.utc).timestamp()):
        raise InvalidSessionError("Session expired")

    subject = payload["sub"]
    if not isinstance(subject, str) or not subject:
        raise InvalidSessionError("Invalid session token")
    return subject


def token_from_request(authorization: str | None, cookie: str | None) -> str:
    """
    Pick the session token from the Authorization header or the session cookie.

    A ``Bearer`` header wins when both are present.
    """
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    if cookie:
        return cookie
    raise UnauthorizedError("Unauthorized")
