"""Custom and scheduled email endpoints (admin only)."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coalition.api.pagination import paginate
from coalition.dependencies.auth import require_admin
from coalition.errors import NotFound, ValidationFailed
from coalition.models.base import get_db
from coalition.models.email_history import EMAIL_STATUSES, EmailHistory
from coalition.models.organization import Organization
from coalition.schemas.common import Page
from coalition.schemas.email import (
    CustomEmailCreate,
    CustomEmailResult,
    EmailHistoryRead,
    FanOutSummary,
    Recipient,
    RecipientFilter,
    RecipientList,
)
from coalition.services.audience import compute_audience
from coalition.services.email_service import EmailService, get_email_service
from coalition.services.notifications import send_batch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/emails", tags=["emails"])


async def _get_history(db: AsyncSession, email_id: UUID) -> EmailHistory:
    email = (await db.execute(select(EmailHistory).where(EmailHistory.id == email_id))).scalar_one_or_none()
    if not email:
        raise NotFound("Email")
    return email


@router.post("/recipients", response_model=RecipientList)
async def resolve_email_recipients(
    payload: RecipientFilter,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    """Active organizations matching every given filter (tags, regions, sizes)."""
    query = select(Organization).where(Organization.status == "ACTIVE").order_by(Organization.name)
    if payload.regions:
        query = query.where(Organization.region.in_(payload.regions))
    if payload.sizes:
        query = query.where(Organization.organization_size.in_([s.upper() for s in payload.sizes]))

    organizations = compute_audience(payload.tags, (await db.execute(query)).scalars().all())
    recipients = [
        Recipient(organization_id=o.id, name=o.name, email=o.contact_email)
        for o in organizations
        if o.contact_email
    ]
    return RecipientList(recipients=recipients, count=len(recipients))


@router.post("", response_model=CustomEmailResult, status_code=201)
async def send_custom_email(
    payload: CustomEmailCreate,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    """Send a custom email now, or store it for the scheduler when ``scheduledFor`` is in the future."""
    recipients = [str(e) for e in payload.recipient_emails]
    scheduled_for = payload.scheduled_for
    if scheduled_for is not None and scheduled_for.tzinfo is None:
        scheduled_for = scheduled_for.replace(tzinfo=timezone.utc)

    email = EmailHistory(
        subject=payload.subject,
        body=payload.body,
        recipient_emails=recipients,
        recipient_count=len(recipients),
        created_by_id=admin.id,
    )

    if scheduled_for is not None and scheduled_for > datetime.now(timezone.utc):
        email.status = "SCHEDULED"
        email.scheduled_for = scheduled_for
        db.add(email)
        await db.commit()
        await db.refresh(email)
        logger.info("Scheduled email %s for %s (%d recipients)", email.id, scheduled_for, len(recipients))
        return CustomEmailResult(email=EmailHistoryRead.model_validate(email))

    result = await send_batch(recipients, payload.subject, payload.body, email_service)
    email.status = "SENT" if result.succeeded else "FAILED"
    email.sent_at = datetime.now(timezone.utc)
    email.sent_count = result.succeeded
    email.failed_count = result.failed
    db.add(email)
    await db.commit()
    await db.refresh(email)
    logger.info("Custom email %s: %d sent, %d failed", email.id, result.succeeded, result.failed)

    return CustomEmailResult(
        email=EmailHistoryRead.model_validate(email),
        delivery=FanOutSummary(**result.summary()),
    )


@router.get("/history", response_model=Page[EmailHistoryRead])
async def list_email_history(
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
    status: str | None = Query(None, description="SCHEDULED, SENT or FAILED"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    query = select(EmailHistory).order_by(EmailHistory.created_at.desc())
    if status:
        status = status.upper()
        if status not in EMAIL_STATUSES:
            raise ValidationFailed("Invalid status. Must be SCHEDULED, SENT, or FAILED")
        query = query.where(EmailHistory.status == status)

    emails, pagination = await paginate(db, query, page, limit)
    return Page[EmailHistoryRead](
        data=[EmailHistoryRead.model_validate(e) for e in emails],
        pagination=pagination,
    )


@router.get("/history/{email_id}", response_model=EmailHistoryRead)
async def get_email_history(
    email_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    return await _get_history(db, email_id)


@router.delete("/history/{email_id}", status_code=204)
async def delete_scheduled_email(
    email_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    """Cancel a scheduled email. Sent history is kept."""
    email = await _get_history(db, email_id)
    if email.status != "SCHEDULED":
        raise ValidationFailed("Only scheduled emails can be deleted")
    await db.delete(email)
    await db.commit()
    return Response(status_code=204)
