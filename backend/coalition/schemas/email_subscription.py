"""Pydantic schemas for EmailSubscription model."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from coalition.schemas.common import CamelModel

SubscriptionType = Literal["ANNOUNCEMENT", "ALERT", "SURVEY"]


def _unique_types(values):
    return list(dict.fromkeys(values)) if values is not None else None


class EmailSubscriptionCreate(CamelModel):
    email: EmailStr
    name: str = Field(min_length=1)
    subscription_types: list[SubscriptionType] = []
    is_active: bool = True

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()

    @field_validator("subscription_types")
    @classmethod
    def dedupe_types(cls, v):
        return _unique_types(v)


class EmailSubscriptionUpdate(CamelModel):
    email: EmailStr | None = None
    name: str | None = Field(default=None, min_length=1)
    subscription_types: list[SubscriptionType] | None = None
    is_active: bool | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower() if v is not None else None

    @field_validator("subscription_types")
    @classmethod
    def dedupe_types(cls, v):
        return _unique_types(v)


class EmailSubscriptionRead(CamelModel):
    id: UUID
    email: str
    name: str
    subscription_types: list[str] = []
    is_active: bool
    created_at: datetime
    updated_at: datetime
