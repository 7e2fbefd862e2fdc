"""Pydantic request bodies for API endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    code: str = Field(min_length=1, description="Google authorization code")


class EventTime(BaseModel):
    """Google-style event time: ``{dateTime, timeZone}``."""

    model_config = ConfigDict(populate_by_name=True)

    date_time: datetime = Field(alias="dateTime")
    time_zone: str | None = Field(default=None, alias="timeZone")


class CreateEventRequest(BaseModel):
    summary: str = Field(min_length=1)
    description: str = ""
    start: EventTime
    end: EventTime
    location: str | None = None


class UpdateProfileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    name: str | None = None
    email: str | None = None
    image: str | None = None


class ExtractEventRequest(BaseModel):
    message: str = ""
