"""
Calendar proxy: list and insert events in the user's primary Google calendar,
plus the duplicate check used before inserting extracted events.
"""

import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import quote

from core.config import (
    CALENDAR_ID,
    CALENDAR_MAX_RESULTS,
    CALENDAR_WINDOW_FUTURE_DAYS,
    CALENDAR_WINDOW_PAST_DAYS,
    GOOGLE_CALENDAR_API_BASE_URL,
)
from core.errors import InvalidRangeError
from core.google_client import GoogleClient
from models.events import EventDraft, load_zone

logger = logging.getLogger(__name__)

EVENTS_URL = f"{GOOGLE_CALENDAR_API_BASE_URL}/calendars/{quote(CALENDAR_ID, safe='')}/events"


def _rfc3339(value: datetime) -> str:
    normalized = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    return normalized.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def clamp_max_results(max_results: int | None) -> int:
    """Bound a caller-supplied page size to 1..CALENDAR_MAX_RESULTS."""
    if max_results is None:
        return CALENDAR_MAX_RESULTS
    return max(1, min(int(max_results), CALENDAR_MAX_RESULTS))


def parse_event_time(value: dict | None) -> datetime | None:
    """
    Parse a Google ``start``/``end`` object into an aware datetime.

    All-day events (``date`` only) start at midnight UTC.
    """
    if not value:
        return None
    try:
        if value.get("dateTime"):
            parsed = datetime.fromisoformat(value["dateTime"].replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=load_zone(value.get("timeZone")) or timezone.utc)
            return parsed
        if value.get("date"):
            return datetime.fromisoformat(value["date"]).replace(tzinfo=timezone.utc)
    except (ValueError, KeyError):
        return None
    return None


def _start_sort_key(event: dict) -> datetime:
    return parse_event_time(event.get("start")) or datetime.max.replace(tzinfo=timezone.utc)


async def list_events(
    client: GoogleClient,
    max_results: int | None = None,
    now: datetime | None = None,
) -> list[dict]:
    """
    Fetch events from 30 days ago to 90 days ahead, ordered by start time.

    Only ``max_results`` is tunable; it is clamped to the provider ceiling.
    """
    limit = clamp_max_results(max_results)
    now = now or datetime.now(timezone.utc)
    params = {
        "timeMin": _rfc3339(now - timedelta(days=CALENDAR_WINDOW_PAST_DAYS)),
        "timeMax": _rfc3339(now + timedelta(days=CALENDAR_WINDOW_FUTURE_DAYS)),
        "singleEvents": "true",
        "orderBy": "startTime",
        "maxResults": limit,
    }

    events: list[dict] = []
    while True:
        payload = await client.get_json(EVENTS_URL, params=params)
        items = payload.get("items") or []
        events.extend(item for item in items if isinstance(item, dict))

        page_token = payload.get("nextPageToken")
        if not page_token or len(events) >= limit:
            break
        params = {**params, "pageToken": page_token, "maxResults": limit - len(events)}

    events = sorted(events[:limit], key=_start_sort_key)
    logger.info("Calendar events listed", extra={"count": len(events)})
    return events


def validate_range(draft: EventDraft) -> None:
    if draft.end <= draft.start:
        raise InvalidRangeError(
            "Event end must be after its start",
            details=[f"start={draft.start.isoformat()}", f"end={draft.end.isoformat()}"],
        )


async def insert_event(client: GoogleClient, draft: EventDraft) -> dict:
    """Create an event; rejects end <= start before calling Google."""
    validate_range(draft)
    event = await client.post_json(EVENTS_URL, draft.to_google_event())
    logger.info("Calendar event inserted", extra={"event_id": event.get("id")})
    return event


def _normalize_title(title: str | None) -> str:
    return " ".join((title or "").split()).casefold()


def _overlaps(event: dict, start: datetime, end: datetime) -> bool:
    event_start = parse_event_time(event.get("start"))
    event_end = parse_event_time(event.get("end")) or event_start
    if event_start is None:
        return False
    if event_end == event_start:
        return start <= event_start < end
    return event_start < end and start < event_end


async def find_duplicates(client: GoogleClient, draft: EventDraft) -> list[dict]:
    """Existing events with the draft's title that overlap its time window."""
    payload = await client.get_json(
        EVENTS_URL,
        params={
            "timeMin": _rfc3339(draft.start),
            "timeMax": _rfc3339(draft.end),
            "q": draft.title,
            "singleEvents": "true",
            "maxResults": 50,
        },
    )
    title = _normalize_title(draft.title)
    return [
        item
        for item in payload.get("items") or []
        if isinstance(item, dict)
        and _normalize_title(item.get("summary")) == title
        and _overlaps(item, draft.start, draft.end)
    ]


async def insert_if_absent(client: GoogleClient, draft: EventDraft) -> tuple[dict, bool]:
    """
    Insert an extracted draft unless a matching event already exists.

    Returns ``(event, created)``; when a duplicate is found the existing
    event is returned and nothing is written.
    """
    validate_range(draft)
    duplicates = await find_duplicates(client, draft)
    if duplicates:
        logger.info(
            "Calendar event already exists",
            extra={"event_id": duplicates[0].get("id"), "title": draft.title},
        )
        return duplicates[0], False
    return await insert_event(client, draft), True
