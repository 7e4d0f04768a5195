"""Individual email subscription endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from coalition.api.pagination import paginate
from coalition.dependencies.auth import require_admin
from coalition.errors import NotFound, ValidationFailed
from coalition.models.base import get_db
from coalition.models.email_subscription import EmailSubscription
from coalition.models.organization import Organization
from coalition.schemas.common import MessageResponse, Page
from coalition.schemas.email_subscription import (
    EmailSubscriptionCreate,
    EmailSubscriptionRead,
    EmailSubscriptionUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


async def _get_subscription(db: AsyncSession, subscription_id: UUID) -> EmailSubscription:
    subscription = (
        await db.execute(select(EmailSubscription).where(EmailSubscription.id == subscription_id))
    ).scalar_one_or_none()
    if not subscription:
        raise NotFound("Subscription")
    return subscription


async def _email_taken(db: AsyncSession, email: str, exclude_id: UUID | None = None) -> bool:
    query = select(EmailSubscription.id).where(EmailSubscription.email == email)
    if exclude_id is not None:
        query = query.where(EmailSubscription.id != exclude_id)
    return (await db.execute(query)).first() is not None


@router.post("/register", response_model=EmailSubscriptionRead, status_code=201)
async def register_subscription(
    payload: EmailSubscriptionCreate,
    db: AsyncSession = Depends(get_db),
):
    """Public sign-up for announcement, alert or survey notices."""
    if await _email_taken(db, payload.email):
        raise ValidationFailed("Subscription with this email already exists")

    subscription = EmailSubscription(**payload.model_dump())
    db.add(subscription)
    await db.commit()
    await db.refresh(subscription)
    logger.info("New email subscription %s for %s", subscription.id, subscription.subscription_types)
    return subscription


@router.get("", response_model=Page[EmailSubscriptionRead])
async def list_subscriptions(
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
    search: str | None = Query(None, description="Search by name or email"),
    is_active: bool | None = Query(None, alias="isActive"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    query = select(EmailSubscription).order_by(EmailSubscription.name)
    if is_active is not None:
        query = query.where(EmailSubscription.is_active == is_active)
    if search:
        query = query.where(
            or_(EmailSubscription.name.ilike(f"%{search}%"), EmailSubscription.email.ilike(f"%{search}%"))
        )

    subscriptions, pagination = await paginate(db, query, page, limit)
    return Page[EmailSubscriptionRead](
        data=[EmailSubscriptionRead.model_validate(s) for s in subscriptions],
        pagination=pagination,
    )


@router.get("/by-email", response_model=EmailSubscriptionRead)
async def get_subscription_by_email(
    email: str = Query(..., min_length=3),
    db: AsyncSession = Depends(get_db),
):
    """Look up a subscription from an unsubscribe link."""
    subscription = (
        await db.execute(select(EmailSubscription).where(EmailSubscription.email == email.strip().lower()))
    ).scalar_one_or_none()
    if not subscription:
        raise NotFound("Subscription")
    return subscription


@router.get("/{subscription_id}", response_model=EmailSubscriptionRead)
async def get_subscription(
    subscription_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    return await _get_subscription(db, subscription_id)


@router.put("/{subscription_id}", response_model=EmailSubscriptionRead)
async def update_subscription(
    subscription_id: UUID,
    payload: EmailSubscriptionUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Change topics or opt out. Reachable from unsubscribe links, so no login is required."""
    subscription = await _get_subscription(db, subscription_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in changes and await _email_taken(db, changes["email"], exclude_id=subscription.id):
        raise ValidationFailed("Email is already in use by another subscription")

    for field, value in changes.items():
        setattr(subscription, field, value)
    await db.commit()
    await db.refresh(subscription)
    return subscription


@router.delete("/{subscription_id}", response_model=MessageResponse)
async def delete_subscription(
    subscription_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    subscription = await _get_subscription(db, subscription_id)
    await db.delete(subscription)
    await db.commit()
    return MessageResponse(message="Subscription deleted successfully")
