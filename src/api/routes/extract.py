"""Free-text event extraction endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user, get_generative, operation
from api.models import ExtractEventRequest, ExtractEventResponse
from core.errors import InvalidInputError
from models.events import UserIdentity
from services.extraction import EventExtractor, extract_with_fallback

router = APIRouter(tags=["extraction"])


@router.post("/extract-event", response_model=ExtractEventResponse)
async def extract_event(
    body: ExtractEventRequest,
    _user: Annotated[UserIdentity, Depends(get_current_user)],
    generative: Annotated[EventExtractor | None, Depends(get_generative)],
    _op: str = operation("extract_event"),
):
    """Turn a free-text message into an event draft without saving it."""
    if not body.message.strip():
        raise InvalidInputError("Message is required")

    draft = await extract_with_fallback(body.message, generative=generative)
    return ExtractEventResponse(
        message="Event details extracted successfully", event=draft.to_payload()
    )
