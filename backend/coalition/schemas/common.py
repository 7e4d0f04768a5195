"""Shared schema pieces: camelCase wire format and pagination envelopes."""

from math import ceil
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for API schemas: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=ceil(total / limit) if limit else 0)


class Page(CamelModel, Generic[T]):
    data: list[T]
    pagination: Pagination


class MessageResponse(CamelModel):
    message: str
