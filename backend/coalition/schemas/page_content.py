"""Pydantic schemas for PageContent model."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from coalition.schemas.common import CamelModel

ContentType = Literal["text", "richtext", "image"]


class PageContentCreate(CamelModel):
    page: str = Field(min_length=1)
    section: str = Field(min_length=1)
    content_key: str = Field(min_length=1)
    content_value: str = ""
    content_type: ContentType


class PageContentUpdate(CamelModel):
    content_value: str


class PageContentBulkItem(CamelModel):
    id: UUID
    content_value: str


class PageContentBulkUpdate(CamelModel):
    updates: list[PageContentBulkItem]


class PageContentRead(CamelModel):
    id: UUID
    page: str
    section: str
    content_key: str
    content_value: str
    content_type: str
    created_at: datetime
    updated_at: datetime


class PageContentBulkResult(CamelModel):
    message: str
    updated_count: int
    updates: list[PageContentRead]
