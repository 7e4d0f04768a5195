"""Pydantic schemas for Organization model."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import EmailStr, field_validator

from coalition.schemas.common import CamelModel
from coalition.services.audience import normalize_tags

OrganizationSize = Literal["SMALL", "MEDIUM", "LARGE"]
OrganizationStatus = Literal["PENDING", "ACTIVE", "INACTIVE", "REJECTED"]
OrganizationRole = Literal["ADMIN", "MEMBER"]


class OrganizationProfile(CamelModel):
    """Fields an organization may edit about itself."""

    name: str | None = None
    description: str | None = None
    website: str | None = None
    primary_contact_name: str | None = None
    primary_contact_email: EmailStr | None = None
    primary_contact_phone: str | None = None
    region: str | None = None
    organization_size: OrganizationSize | None = None
    tags: list[str] | None = None
    notify_announcements: bool | None = None
    notify_surveys: bool | None = None
    notify_events: bool | None = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v) if v is not None else None


class OrganizationRegister(OrganizationProfile):
    """Registration payload; the identity comes from the bearer token."""

    name: str
    email: EmailStr


class OrganizationAdminUpdate(OrganizationProfile):
    email: EmailStr | None = None
    status: OrganizationStatus | None = None
    role: OrganizationRole | None = None


class OrganizationRead(CamelModel):
    id: UUID
    name: str
    email: str
    description: str | None = None
    website: str | None = None
    primary_contact_name: str | None = None
    primary_contact_email: str | None = None
    primary_contact_phone: str | None = None
    region: str | None = None
    organization_size: str | None = None
    tags: list[str] = []
    status: str
    role: str
    notify_announcements: bool = True
    notify_surveys: bool = True
    notify_events: bool = True
    created_at: datetime
    updated_at: datetime


class OrganizationSummary(CamelModel):
    """Minimal organization info for nested responses."""

    id: UUID
    name: str
    email: str
    tags: list[str] = []
