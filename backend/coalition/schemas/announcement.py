"""Pydantic schemas for Announcement model."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from coalition.schemas.common import CamelModel
from coalition.services.audience import normalize_tags


class AnnouncementCreate(CamelModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    published_date: datetime | None = None
    is_published: bool = False
    attachment_urls: list[str] = []
    tags: list[str] = []

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v)


class AnnouncementUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1)
    content: str | None = Field(default=None, min_length=1)
    published_date: datetime | None = None
    is_published: bool | None = None
    attachment_urls: list[str] | None = None
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v) if v is not None else None


class AnnouncementRead(CamelModel):
    id: UUID
    title: str
    slug: str
    content: str
    tags: list[str] = []
    attachment_urls: list[str] = []
    is_published: bool
    published_date: datetime | None = None
    created_by_id: UUID | None = None
    created_at: datetime
    updated_at: datetime
