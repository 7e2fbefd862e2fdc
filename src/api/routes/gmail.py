"""Gmail-to-calendar import endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_google_client, operation, record_request
from api.models import GmailEventsResponse
from core.google_client import GoogleClient
from services.gmail_import import import_gmail_events

router = APIRouter(prefix="/gmail", tags=["gmail"])


@router.get("/events", response_model=GmailEventsResponse)
async def gmail_events(
    request: Request,
    client: Annotated[GoogleClient, Depends(get_google_client)],
    _op: str = operation("gmail_import"),
):
    """
    Scan Gmail for event-like messages and add them to the calendar.

    Messages whose event already exists are reported under ``skipped``.
    """
    result = await import_gmail_events(client)
    record_request(request, item_count=len(result.created))
    return GmailEventsResponse(
        message="Gmail events fetched and added to calendar",
        events=result.created,
        skipped=result.skipped_duplicates,
    )
