"""
Data models for users, event drafts and Gmail message summaries.

Provider events and full Gmail messages are passed through as the JSON
dicts Google returns; only values this service creates get their own types.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TypedDict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def load_zone(name: str | None) -> ZoneInfo | None:
    """IANA zone for ``name``, or None if it is not a loadable zone."""
    if not isinstance(name, str) or not name.strip():
        return None
    # region names like "Europe" are tzdata directories and raise IsADirectoryError
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None


@dataclass
class UserIdentity:
    """A user created on first Google login, keyed uniquely by email."""

    id: str
    name: str
    email: str
    image: str | None
    provider_token: str | None
    created_at: str
    password: str = field(default="", repr=False)

    def __repr__(self) -> str:
        return f"UserIdentity(id={self.id!r}, email={self.email!r})"

    def public_dict(self) -> dict:
        """Fields safe to return to the client."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "image": self.image,
        }


@dataclass
class EventDraft:
    """An event payload not yet accepted by the calendar provider."""

    title: str
    start: datetime
    end: datetime
    time_zone: str
    description: str = ""
    location: str | None = None
    priority: str | None = None
    event_type: str | None = None

    def to_google_event(self) -> dict:
        """Google Calendar event resource for events.insert."""
        resource = {
            "summary": self.title,
            "description": self.description,
            "start": {"dateTime": self.start.isoformat(), "timeZone": self.time_zone},
            "end": {"dateTime": self.end.isoformat(), "timeZone": self.time_zone},
        }
        if self.location:
            resource["location"] = self.location
        return resource

    def to_payload(self) -> dict:
        """camelCase shape returned by the extraction endpoint."""
        return {
            "title": self.title,
            "description": self.description,
            "startTime": self.start.isoformat(),
            "endTime": self.end.isoformat(),
            "location": self.location or "",
            "priority": self.priority or "medium",
            "type": self.event_type or "meeting",
            "timeZone": self.time_zone,
        }


class MessageSummary(TypedDict):
    """Gmail messages.list entry."""
    id: str
    threadId: str
