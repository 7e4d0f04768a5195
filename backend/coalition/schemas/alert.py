"""Pydantic schemas for Alert model."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field, field_validator

from coalition.schemas.common import CamelModel
from coalition.schemas.question import Question
from coalition.services.audience import normalize_tags

AlertPriority = Literal["URGENT", "MEDIUM", "LOW"]


class AlertCreate(CamelModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    priority: AlertPriority = "MEDIUM"
    published_date: datetime | None = None
    is_published: bool = False
    attachment_urls: list[str] = []
    tags: list[str] = []
    questions: list[Question] = []

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v)


class AlertUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1)
    content: str | None = Field(default=None, min_length=1)
    priority: AlertPriority | None = None
    published_date: datetime | None = None
    is_published: bool | None = None
    attachment_urls: list[str] | None = None
    tags: list[str] | None = None
    questions: list[Question] | None = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v) if v is not None else None


class AlertRead(CamelModel):
    id: UUID
    title: str
    content: str
    priority: str
    tags: list[str] = []
    questions: list[Question] = []
    attachment_urls: list[str] = []
    is_published: bool
    published_date: datetime | None = None
    created_by_id: UUID | None = None
    created_at: datetime
    updated_at: datetime
