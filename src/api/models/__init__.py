"""API Pydantic models."""

from .requests import (
    CreateEventRequest,
    EventTime,
    ExtractEventRequest,
    LoginRequest,
    UpdateProfileRequest,
)
from .responses import (
    ErrorCodes,
    ErrorResponse,
    EventResponse,
    EventsResponse,
    ExtractEventResponse,
    ExtractedEvent,
    GmailEventsResponse,
    HealthResponse,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    UserOut,
)

__all__ = [
    "CreateEventRequest",
    "ErrorCodes",
    "ErrorResponse",
    "EventResponse",
    "EventTime",
    "EventsResponse",
    "ExtractEventRequest",
    "ExtractEventResponse",
    "ExtractedEvent",
    "GmailEventsResponse",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "ProfileResponse",
    "UpdateProfileRequest",
    "UserOut",
]
