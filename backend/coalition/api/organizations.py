"""Organization API endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from coalition.api.pagination import paginate, paginate_list
from coalition.dependencies.auth import get_current_organization, get_token_claims, require_admin
from coalition.errors import AuthorizationDenied, Conflict, NotFound, ValidationFailed
from coalition.models.base import get_db
from coalition.models.organization import ORGANIZATION_STATUSES, Organization
from coalition.schemas.common import Page
from coalition.schemas.organization import (
    OrganizationAdminUpdate,
    OrganizationProfile,
    OrganizationRead,
    OrganizationRegister,
)
from coalition.services.cache import CacheKeys, CacheService, get_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["organizations"])

# Columns that may be cleared by sending null
_CLEARABLE = (
    "description",
    "website",
    "primary_contact_name",
    "primary_contact_email",
    "primary_contact_phone",
    "region",
    "organization_size",
)


def _apply(organization: Organization, changes: dict) -> None:
    for field, value in changes.items():
        if value is None and field not in _CLEARABLE:
            continue
        setattr(organization, field, value)


async def _get_organization(db: AsyncSession, organization_id: UUID) -> Organization:
    organization = (
        await db.execute(select(Organization).where(Organization.id == organization_id))
    ).scalar_one_or_none()
    if not organization:
        raise NotFound("Organization")
    return organization


async def _set_status(db: AsyncSession, organization: Organization, status: str) -> Organization:
    previous = organization.status
    organization.status = status
    await db.commit()
    await db.refresh(organization)
    logger.info("Organization %s status %s -> %s", organization.id, previous, status)
    return organization


@router.post("/register", response_model=OrganizationRead, status_code=201)
async def register_organization(
    payload: OrganizationRegister,
    claims: dict = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Create the organization record for a newly signed-up identity (pending approval)."""
    existing = await db.execute(select(Organization.id).where(Organization.auth_user_id == claims["sub"]))
    if existing.scalar_one_or_none():
        raise Conflict("Organization already registered for this account")

    organization = Organization(auth_user_id=claims["sub"], status="PENDING", role="MEMBER")
    _apply(organization, payload.model_dump(exclude_unset=True))
    if organization.tags is None:
        organization.tags = []
    db.add(organization)
    await db.commit()
    await db.refresh(organization)

    await cache.delete(CacheKeys.tags())
    logger.info("Registered organization %s (%s)", organization.name, organization.id)
    return organization


@router.get("/me", response_model=OrganizationRead)
async def get_my_organization(
    organization: Organization = Depends(get_current_organization),
):
    return organization


@router.put("/me", response_model=OrganizationRead)
async def update_my_organization(
    payload: OrganizationProfile,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    organization: Organization = Depends(get_current_organization),
):
    """Update the caller's profile, tags and notification preferences."""
    changes = payload.model_dump(exclude_unset=True)
    _apply(organization, changes)
    await db.commit()
    await db.refresh(organization)

    if "tags" in changes:
        await cache.delete(CacheKeys.tags())
    return organization


@router.get("", response_model=Page[OrganizationRead])
async def list_organizations(
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
    status: str | None = Query(None, description="PENDING, ACTIVE, INACTIVE or REJECTED"),
    region: str | None = Query(None, description="Filter by region"),
    tag: str | None = Query(None, description="Only organizations carrying this tag"),
    search: str | None = Query(None, min_length=2, description="Search by name or email"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List organizations with optional filters."""
    query = select(Organization).order_by(Organization.name)

    if status:
        status = status.upper()
        if status not in ORGANIZATION_STATUSES:
            raise ValidationFailed("Invalid status. Must be PENDING, ACTIVE, INACTIVE, or REJECTED")
        query = query.where(Organization.status == status)
    if region:
        query = query.where(Organization.region.ilike(f"%{region}%"))
    if search:
        query = query.where(or_(Organization.name.ilike(f"%{search}%"), Organization.email.ilike(f"%{search}%")))

    if tag:
        # Tag membership is checked in Python so JSON and JSONB behave the same
        rows = (await db.execute(query)).scalars().all()
        organizations, pagination = paginate_list([o for o in rows if tag in (o.tags or [])], page, limit)
    else:
        organizations, pagination = await paginate(db, query, page, limit)

    return Page[OrganizationRead](
        data=[OrganizationRead.model_validate(o) for o in organizations],
        pagination=pagination,
    )


@router.get("/{organization_id}", response_model=OrganizationRead)
async def get_organization(
    organization_id: UUID,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    if not requester.is_admin and requester.id != organization_id:
        raise AuthorizationDenied()
    return await _get_organization(db, organization_id)


@router.put("/{organization_id}", response_model=OrganizationRead)
async def update_organization(
    organization_id: UUID,
    payload: OrganizationAdminUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
):
    organization = await _get_organization(db, organization_id)
    changes = payload.model_dump(exclude_unset=True)
    if organization.id == admin.id and changes.get("role") == "MEMBER":
        raise ValidationFailed("Admins cannot remove their own admin role")
    _apply(organization, changes)
    await db.commit()
    await db.refresh(organization)

    if "tags" in changes:
        await cache.delete(CacheKeys.tags())
    return organization


@router.post("/{organization_id}/approve", response_model=OrganizationRead)
async def approve_organization(
    organization_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    organization = await _get_organization(db, organization_id)
    if organization.status == "ACTIVE":
        raise ValidationFailed("Organization is already active")
    return await _set_status(db, organization, "ACTIVE")


@router.post("/{organization_id}/reject", response_model=OrganizationRead)
async def reject_organization(
    organization_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    organization = await _get_organization(db, organization_id)
    if organization.status != "PENDING":
        raise ValidationFailed("Only pending organizations can be rejected")
    return await _set_status(db, organization, "REJECTED")


@router.post("/{organization_id}/deactivate", response_model=OrganizationRead)
async def deactivate_organization(
    organization_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    """Soft-remove an organization; its responses and RSVPs are kept."""
    organization = await _get_organization(db, organization_id)
    if organization.id == admin.id:
        raise ValidationFailed("Admins cannot deactivate their own organization")
    if organization.status == "INACTIVE":
        raise ValidationFailed("Organization is already inactive")
    return await _set_status(db, organization, "INACTIVE")
