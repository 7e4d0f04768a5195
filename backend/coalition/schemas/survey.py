"""Pydantic schemas for Survey model."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from coalition.schemas.common import CamelModel
from coalition.schemas.question import Question
from coalition.services.audience import normalize_tags


class SurveyCreate(CamelModel):
    title: str = Field(min_length=1)
    description: str | None = None
    questions: list[Question] = []
    tags: list[str] = []
    is_active: bool = True
    is_published: bool = False
    due_date: datetime | None = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v)


class SurveyUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    questions: list[Question] | None = None
    tags: list[str] | None = None
    is_active: bool | None = None
    is_published: bool | None = None
    due_date: datetime | None = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v) if v is not None else None


class SurveyRead(CamelModel):
    id: UUID
    title: str
    description: str | None = None
    questions: list[Question] = []
    tags: list[str] = []
    is_active: bool
    is_published: bool
    due_date: datetime | None = None
    published_date: datetime | None = None
    created_by_id: UUID | None = None
    created_at: datetime
    updated_at: datetime
