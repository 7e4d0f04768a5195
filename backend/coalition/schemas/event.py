"""Pydantic schemas for Event and EventRsvp models."""

from datetime import datetime, timezone
from typing import Literal
from uuid import UUID

from pydantic import EmailStr, Field, field_validator, model_validator

from coalition.schemas.common import CamelModel
from coalition.services.audience import normalize_tags

EventStatus = Literal["DRAFT", "PUBLISHED", "CANCELLED"]
RsvpStatus = Literal["GOING", "NOT_GOING"]


def _assume_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EventCreate(CamelModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    start_time: datetime
    end_time: datetime | None = None
    timezone: str = "America/Chicago"
    location: str | None = None
    meeting_url: str | None = None
    is_public: bool = False
    max_attendees: int | None = Field(default=None, ge=1)
    tags: list[str] = []
    is_published: bool = False

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def default_to_utc(cls, v):
        return _assume_utc(v)

    @model_validator(mode="after")
    def check_times(self) -> "EventCreate":
        if self.end_time and self.end_time < self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class EventUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    start_time: datetime | None = None
    end_time: datetime | None = None
    timezone: str | None = None
    location: str | None = None
    meeting_url: str | None = None
    is_public: bool | None = None
    max_attendees: int | None = Field(default=None, ge=1)
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v) if v is not None else None

    @field_validator("start_time", "end_time")
    @classmethod
    def default_to_utc(cls, v):
        return _assume_utc(v)


class EventRead(CamelModel):
    id: UUID
    title: str
    description: str
    start_time: datetime
    end_time: datetime | None = None
    timezone: str
    location: str | None = None
    meeting_url: str | None = None
    is_public: bool
    max_attendees: int | None = None
    tags: list[str] = []
    status: str
    published_date: datetime | None = None
    created_by_id: UUID | None = None
    rsvp_count: int = 0
    created_at: datetime
    updated_at: datetime


class RsvpCreate(CamelModel):
    status: RsvpStatus = "GOING"
    attendee_name: str | None = None
    attendee_email: EmailStr | None = None


class PublicRsvpCreate(CamelModel):
    attendee_name: str = Field(min_length=1)
    attendee_email: EmailStr


class RsvpRead(CamelModel):
    id: UUID
    event_id: UUID
    organization_id: UUID | None = None
    attendee_name: str
    attendee_email: str
    status: str
    created_at: datetime
