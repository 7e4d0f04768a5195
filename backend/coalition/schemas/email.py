"""Schemas for custom/scheduled emails."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from coalition.schemas.common import CamelModel
from coalition.services.audience import normalize_tags


class RecipientFilter(CamelModel):
    tags: list[str] = []
    regions: list[str] = []
    sizes: list[str] = []

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v)


class Recipient(CamelModel):
    organization_id: UUID
    name: str
    email: str


class RecipientList(CamelModel):
    recipients: list[Recipient]
    count: int


class CustomEmailCreate(CamelModel):
    subject: str = Field(min_length=1, max_length=500)
    body: str = Field(min_length=1)
    recipient_emails: list[EmailStr] = Field(min_length=1)
    scheduled_for: datetime | None = None


class EmailHistoryRead(CamelModel):
    id: UUID
    subject: str
    body: str
    recipient_emails: list[str]
    recipient_count: int
    status: str
    scheduled_for: datetime | None = None
    sent_at: datetime | None = None
    sent_count: int = 0
    failed_count: int = 0
    created_at: datetime


class FanOutSummary(CamelModel):
    attempted: int
    succeeded: int
    failed: int
    skipped: int = 0


class CustomEmailResult(CamelModel):
    email: EmailHistoryRead
    delivery: FanOutSummary | None = None
