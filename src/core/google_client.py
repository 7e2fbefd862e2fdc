"""
Google API access: a per-request client handle plus the OAuth login calls.

A ``GoogleClient`` is built from one user's access token at call time and is
never shared between requests, so credentials cannot leak across users.
"""

import asyncio
import logging
from typing import Any

import httpx

from core.config import (
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_REDIRECT_URI,
    GOOGLE_TOKEN_INFO_URL,
    GOOGLE_TOKEN_URL,
    PROVIDER_READ_RETRIES,
    PROVIDER_TIMEOUT_SECONDS,
)
from core.errors import (
    ConfigurationError,
    LoginError,
    MissingProviderGrantError,
    ProviderError,
    ProviderUnavailableError,
    UnauthorizedError,
)
from core.log_context import redact
from models.events import UserIdentity

logger = logging.getLogger(__name__)


def _safe_google_error_message(response: httpx.Response) -> str:
    """Short, redacted description of a failed Google response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    message = None
    if isinstance(payload, dict):
        error_payload = payload.get("error")
        if isinstance(error_payload, dict):
            message = error_payload.get("message")
        elif isinstance(error_payload, str):
            message = payload.get("error_description") or error_payload

    if not isinstance(message, str) or not message.strip():
        message = response.text.strip() or "Request failed without an error payload"
    return redact(" ".join(message.split()))[:200]


class GoogleClient:
    """Authenticated handle for Google REST calls on behalf of one user."""

    def __init__(
        self,
        access_token: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        read_retries: int = PROVIDER_READ_RETRIES,
    ):
        self._access_token = access_token
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self._read_retries = max(read_retries, 0)

    @classmethod
    def for_user(
        cls, user: UserIdentity | None, http_client: httpx.AsyncClient | None = None
    ) -> "GoogleClient":
        if user is None:
            raise UnauthorizedError("Unauthorized")
        if not user.provider_token:
            raise MissingProviderGrantError("Google access token not found")
        return cls(user.provider_token, http_client=http_client)

    def __repr__(self) -> str:
        return "GoogleClient(access_token=[REDACTED])"

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> "GoogleClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _send(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        json_body: dict[str, Any] | None,
    ) -> httpx.Response:
        logger.debug("Provider call", extra={"method": method, "url": url})
        try:
            return await self._http_client.request(
                method,
                url,
                params=params,
                json=json_body,
                headers={"Authorization": f"Bearer {self._access_token}"},
            )
        except httpx.TimeoutException as e:
            raise ProviderUnavailableError(f"Google request timed out: {method} {url}") from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(
                f"Google request failed: {method} {url}: {redact(str(e))}"
            ) from e

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Send one request and return the decoded JSON object.

        GET requests are retried on timeouts and transport errors; writes
        never are, so an insert cannot be applied twice.
        """
        attempts = 1 + (self._read_retries if method.upper() == "GET" else 0)
        for attempt in range(1, attempts + 1):
            try:
                response = await self._send(method, url, params, json_body)
                break
            except ProviderUnavailableError as e:
                logger.warning(
                    "Provider call failed",
                    extra={"method": method, "url": url, "attempt": attempt, "error": e.message},
                )
                if attempt == attempts:
                    raise

        if response.status_code < 200 or response.status_code >= 300:
            message = _safe_google_error_message(response)
            logger.warning(
                "Provider call rejected",
                extra={"method": method, "url": url, "status": response.status_code},
            )
            raise ProviderError(
                f"Google API request failed ({response.status_code}): {message}",
                provider_status=response.status_code,
            )

        if response.status_code == 204:
            return {}
        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError("Google API returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise ProviderError("Google API returned an unexpected JSON payload shape")
        return payload

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request_json("GET", url, params=params)

    async def post_json(self, url: str, json_body: dict[str, Any]) -> dict[str, Any]:
        return await self.request_json("POST", url, json_body=json_body)


# =============================================================================
# OAUTH LOGIN
# =============================================================================


def _login_payload(response: httpx.Response, step: str) -> dict:
    try:
        payload = response.json()
    except ValueError as e:
        raise LoginError(f"{step} returned invalid JSON") from e
    if not isinstance(payload, dict):
        raise LoginError(f"{step} returned an unexpected JSON payload shape")
    return payload


async def exchange_code(code: str, http_client: httpx.AsyncClient | None = None) -> dict:
    """
    Exchange an authorization code for tokens at Google's token endpoint.

    Returns the token response (``access_token``, ``id_token``, ...).
    """
    if not GOOGLE_CLIENT_ID or not GOOGLE_CLIENT_SECRET:
        raise ConfigurationError("Google OAuth client is not configured")

    client = http_client or httpx.AsyncClient(timeout=PROVIDER_TIMEOUT_SECONDS)
    try:
        response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": GOOGLE_CLIENT_ID,
                "client_secret": GOOGLE_CLIENT_SECRET,
                "redirect_uri": GOOGLE_REDIRECT_URI,
                "grant_type": "authorization_code",
            },
        )
    except httpx.HTTPError as e:
        raise LoginError(f"Token exchange failed: {type(e).__name__}") from e
    finally:
        if http_client is None:
            await client.aclose()

    if response.status_code != 200:
        raise LoginError(f"Token exchange failed: {_safe_google_error_message(response)}")

    tokens = _login_payload(response, "Token exchange")
    if not tokens.get("access_token") or not tokens.get("id_token"):
        raise LoginError("Token exchange response is missing access_token or id_token")
    return tokens


async def verify_id_token(id_token: str, http_client: httpx.AsyncClient | None = None) -> dict:
    """
    Verify a Google id token and return its claims.

    The audience must be this app's client id and the token must carry an email.
    """
    client = http_client or httpx.AsyncClient(timeout=PROVIDER_TIMEOUT_SECONDS)
    try:
        response = await client.get(GOOGLE_TOKEN_INFO_URL, params={"id_token": id_token})
    except httpx.HTTPError as e:
        raise LoginError(f"Id token verification failed: {type(e).__name__}") from e
    finally:
        if http_client is None:
            await client.aclose()

    if response.status_code != 200:
        raise LoginError(f"Id token verification failed: {_safe_google_error_message(response)}")

    claims = _login_payload(response, "Id token verification")
    if claims.get("aud") != GOOGLE_CLIENT_ID:
        raise LoginError("Id token audience does not match this application")
    if not claims.get("email"):
        raise LoginError("Id token has no email claim")
    return claims


async def run_with_timeout(coro, timeout: float = PROVIDER_TIMEOUT_SECONDS):
    """Await ``coro``, turning a timeout into ProviderUnavailableError."""
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ProviderUnavailableError("Provider call timed out") from e
