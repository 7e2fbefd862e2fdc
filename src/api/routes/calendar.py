"""Calendar event endpoints."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies import get_google_client, operation, record_request
from api.models import CreateEventRequest, EventResponse, EventsResponse, EventTime
from core.config import DEFAULT_TIME_ZONE
from core.errors import InvalidInputError
from core.google_client import GoogleClient
from models.events import EventDraft, load_zone
from services.calendar import insert_event, list_events

router = APIRouter(prefix="/calendar", tags=["calendar"])


def _resolve_time(value: EventTime, field_name: str) -> tuple[datetime, str]:
    """Attach the given (or default) zone to a naive time."""
    time_zone = value.time_zone or DEFAULT_TIME_ZONE
    tz = load_zone(time_zone)
    if tz is None:
        raise InvalidInputError(
            "Invalid event time", details=[f"{field_name}.timeZone: unknown zone {time_zone!r}"]
        )

    date_time = value.date_time
    if date_time.tzinfo is None:
        date_time = date_time.replace(tzinfo=tz)
    return date_time, time_zone


def draft_from_request(body: CreateEventRequest) -> EventDraft:
    start, time_zone = _resolve_time(body.start, "start")
    end, _ = _resolve_time(body.end, "end")
    return EventDraft(
        title=body.summary,
        description=body.description,
        start=start,
        end=end,
        location=body.location,
        time_zone=time_zone,
    )


@router.get("/events", response_model=EventsResponse)
async def get_events(
    request: Request,
    client: Annotated[GoogleClient, Depends(get_google_client)],
    max_results: Annotated[
        int | None, Query(alias="maxResults", description="Clamped to the provider ceiling")
    ] = None,
    _op: str = operation("list_events"),
):
    """List events from 30 days ago to 90 days ahead, ordered by start."""
    events = await list_events(client, max_results=max_results)
    record_request(request, item_count=len(events))
    return EventsResponse(message="Events fetched successfully", events=events)


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    body: CreateEventRequest,
    client: Annotated[GoogleClient, Depends(get_google_client)],
    _op: str = operation("insert_event"),
):
    """Create an event in the user's primary calendar."""
    event = await insert_event(client, draft_from_request(body))
    return EventResponse(message="Event created successfully", event=event)
