"""Pydantic response models for API endpoints."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    message: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error codes not tied to an application exception."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    image: str | None = None


class LoginResponse(BaseModel):
    message: str
    token: str
    user: UserOut


class ProfileResponse(BaseModel):
    message: str
    user: UserOut


class EventsResponse(BaseModel):
    """Provider events passed through as Google returns them."""

    message: str
    events: list[dict]


class EventResponse(BaseModel):
    message: str
    event: dict


class GmailEventsResponse(BaseModel):
    message: str
    events: list[dict]
    skipped: list[dict] = []


class ExtractedEvent(BaseModel):
    title: str
    description: str
    startTime: str
    endTime: str
    location: str
    priority: str
    type: str
    timeZone: str


class ExtractEventResponse(BaseModel):
    message: str
    event: ExtractedEvent


class MessageResponse(BaseModel):
    message: str
