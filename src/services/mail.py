"""
Read-only Gmail access: message search, message fetch and body decoding.
"""

import base64
import html
import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from core.config import GMAIL_API_BASE_URL, GMAIL_MAX_RESULTS
from core.google_client import GoogleClient
from models.events import MessageSummary

logger = logging.getLogger(__name__)

MESSAGES_URL = f"{GMAIL_API_BASE_URL}/users/me/messages"


async def search_messages(client: GoogleClient, query: str, limit: int = 50) -> list[MessageSummary]:
    """Search the mailbox with a Gmail query string and return message ids."""
    limit = max(1, min(int(limit), GMAIL_MAX_RESULTS))
    payload = await client.get_json(MESSAGES_URL, params={"q": query, "maxResults": limit})
    messages = [
        MessageSummary(id=item["id"], threadId=item.get("threadId", ""))
        for item in payload.get("messages") or []
        if isinstance(item, dict) and item.get("id")
    ]
    logger.info("Gmail messages searched", extra={"count": len(messages)})
    return messages[:limit]


async def get_message(client: GoogleClient, message_id: str) -> dict:
    """Fetch one full message."""
    return await client.get_json(f"{MESSAGES_URL}/{message_id}", params={"format": "full"})


def get_header(message: dict, name: str) -> str | None:
    """Case-insensitive header lookup on a full message."""
    headers = (message.get("payload") or {}).get("headers") or []
    for header in headers:
        if header.get("name", "").lower() == name.lower():
            return header.get("value")
    return None


def _decode_base64url(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def _strip_html(text: str) -> str:
    text = re.sub(r"(?is)<(script|style).*?</\1>", " ", text)
    text = re.sub(r"<[^>]+>", "\n", text)
    return html.unescape(text)


def _find_part(part: dict, mime_type: str) -> dict | None:
    if part.get("mimeType") == mime_type and (part.get("body") or {}).get("data"):
        return part
    for child in part.get("parts") or []:
        found = _find_part(child, mime_type)
        if found:
            return found
    return None


def get_body_text(message: dict) -> str:
    """
    Decode the message body as plain text.

    Prefers a ``text/plain`` part, falls back to stripped ``text/html``,
    then to the top-level body data.
    """
    payload = message.get("payload") or {}

    plain = _find_part(payload, "text/plain")
    if plain:
        return _decode_base64url(plain["body"]["data"]).strip()

    rich = _find_part(payload, "text/html")
    if rich:
        return _strip_html(_decode_base64url(rich["body"]["data"])).strip()

    data = (payload.get("body") or {}).get("data")
    if data:
        return _decode_base64url(data).strip()
    return ""


def get_message_timestamp(message: dict) -> datetime | None:
    """When the message was received, from ``internalDate`` or the Date header."""
    internal = message.get("internalDate")
    if internal:
        try:
            return datetime.fromtimestamp(int(internal) / 1000, tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            pass

    date_header = get_header(message, "Date")
    if date_header:
        try:
            parsed = parsedate_to_datetime(date_header)
        except (TypeError, ValueError):
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None
