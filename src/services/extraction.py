"""
Event extraction from free text and Gmail messages.

The heuristic extractor is deterministic and makes no network calls. It
favours precision: text without an event keyword yields ``None`` rather
than a guess. Dates are read as ``M/D/YYYY`` (month first) or
``YYYY-MM-DD`` and interpreted as wall time in the configured time zone.
An optional generative extractor can be layered in front of it with
:func:`extract_with_fallback`.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Protocol
from zoneinfo import ZoneInfo

from core.config import (
    DEFAULT_EVENT_DURATION_MINUTES,
    DEFAULT_EVENT_HOUR,
    DEFAULT_TIME_ZONE,
    DESCRIPTION_MAX_CHARS,
    RELEVANCE_KEYWORDS,
)
from core.errors import NoEventFoundError, ProviderError
from models.events import EventDraft, load_zone
from services.mail import get_body_text, get_header, get_message_timestamp

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(
    r"\b(?:(?P<month>\d{1,2})/(?P<day>\d{1,2})/(?P<year>\d{4})"
    r"|(?P<iso_year>\d{4})-(?P<iso_month>\d{1,2})-(?P<iso_day>\d{1,2}))"
    r"(?:(?:,?\s+|T)(?:at\s+)?(?P<hour>\d{1,2}):(?P<minute>\d{2})"
    r"(?:\s*(?P<meridiem>[ap])\.?m\b\.?)?)?",
    re.IGNORECASE,
)
LOCATION_PATTERN = re.compile(r"\b[Aa]t\s+(?P<place>(?:the\s+)?[A-Z][A-Za-z '&\-]*)")
LOCATION_STOP_PATTERN = re.compile(
    r"\s+(?:on|from|for|to|by|with|and|at|in|between|starting)\b.*$", re.IGNORECASE
)
LOCATION_MAX_CHARS = 100
TITLE_MAX_CHARS = 100
UNTITLED = "Untitled"


class EventExtractor(Protocol):
    """Anything that turns free text into an event draft."""

    async def extract(self, text: str) -> EventDraft | None: ...


def is_relevant(text: str) -> bool:
    """True if the text mentions one of the event keywords."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in RELEVANCE_KEYWORDS)


def _hour_24(hour: int, meridiem: str | None) -> int:
    if not meridiem:
        return hour
    if not 1 <= hour <= 12:
        raise ValueError(f"hour {hour} is invalid with am/pm")
    return hour % 12 + (12 if meridiem.lower() == "p" else 0)


def find_start(text: str, tz: ZoneInfo) -> datetime | None:
    """First date (and optional time) in the text, as an aware datetime."""
    match = DATE_PATTERN.search(text)
    if not match:
        return None

    if match.group("year"):
        year, month, day = match.group("year"), match.group("month"), match.group("day")
    else:
        year, month, day = match.group("iso_year"), match.group("iso_month"), match.group("iso_day")

    hour, minute = DEFAULT_EVENT_HOUR, 0
    if match.group("hour"):
        hour = _hour_24(int(match.group("hour")), match.group("meridiem"))
        minute = int(match.group("minute"))

    return datetime(int(year), int(month), int(day), hour, minute, tzinfo=tz)


def find_location(text: str) -> str | None:
    """Place named by an ``at <Place>`` phrase, if any."""
    for match in LOCATION_PATTERN.finditer(text):
        place = LOCATION_STOP_PATTERN.sub("", match.group("place"))
        place = place.strip(" .-'&")
        if place:
            return place[:LOCATION_MAX_CHARS]
    return None


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


def _from_message(message: dict) -> tuple[str, str, str, datetime | None]:
    subject = (get_header(message, "Subject") or "").strip()
    snippet = message.get("snippet") or ""
    body = get_body_text(message) or snippet
    return subject, snippet, body, get_message_timestamp(message)


def extract(
    source: str | dict,
    now: datetime | None = None,
    time_zone: str = DEFAULT_TIME_ZONE,
) -> EventDraft | None:
    """
    Build an event draft from free text or a full Gmail message.

    Returns ``None`` when the text is not event-related or cannot be parsed;
    never raises.
    """
    try:
        if isinstance(source, dict):
            subject, snippet, body, sent_at = _from_message(source)
        else:
            body = source or ""
            subject, snippet, sent_at = _first_line(body)[:TITLE_MAX_CHARS], body, None

        if not is_relevant(f"{subject} {snippet}"):
            return None

        tz = load_zone(time_zone)
        if tz is None:
            return None
        start = find_start(f"{subject}\n{body}", tz)
        if start is None:
            start = (sent_at or now or datetime.now(timezone.utc)).astimezone(tz)

        return EventDraft(
            title=subject or UNTITLED,
            start=start,
            end=start + timedelta(minutes=DEFAULT_EVENT_DURATION_MINUTES),
            time_zone=time_zone,
            description=body.strip()[:DESCRIPTION_MAX_CHARS],
            location=find_location(f"{subject}\n{body}"),
        )
    except Exception:
        logger.debug("Heuristic extraction failed", exc_info=True)
        return None


async def extract_with_fallback(
    text: str,
    generative: EventExtractor | None = None,
    now: datetime | None = None,
    time_zone: str = DEFAULT_TIME_ZONE,
) -> EventDraft:
    """
    Try the generative extractor first, then the heuristic one.

    Raises:
        ProviderError: the generative call failed and the heuristic found nothing
        NoEventFoundError: neither extractor produced an event
    """
    failure: ProviderError | None = None
    if generative is not None:
        try:
            draft = await generative.extract(text)
        except ProviderError as e:
            logger.warning("Generative extraction failed", extra={"error": e.message})
            failure = e
        else:
            if draft is not None:
                logger.info("Event extracted", extra={"extractor": "generative"})
                return draft

    draft = extract(text, now=now, time_zone=time_zone)
    if draft is not None:
        logger.info("Event extracted", extra={"extractor": "heuristic"})
        return draft
    if failure is not None:
        raise failure
    raise NoEventFoundError("No event details found in message")
