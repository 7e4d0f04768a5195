"""Alert API endpoints."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coalition.api.pagination import paginate, paginate_list
from coalition.dependencies.auth import get_current_organization, require_admin
from coalition.errors import AuthorizationDenied, NotFound, ValidationFailed
from coalition.models.alert import ALERT_PRIORITIES, Alert
from coalition.models.base import get_db
from coalition.models.organization import Organization
from coalition.models.responses import AlertResponse
from coalition.schemas.alert import AlertCreate, AlertRead, AlertUpdate
from coalition.schemas.common import Page
from coalition.schemas.question import dump_questions, load_questions
from coalition.schemas.response import ResponseSummary
from coalition.services.aggregation import ResponseRecord, aggregate
from coalition.services.audience import can_view, filter_visible
from coalition.services.cache import CacheKeys, CacheService, get_cache
from coalition.services.email_service import EmailService, get_email_service
from coalition.services.notifications import notify_published

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/alerts", tags=["alerts"])

# URGENT first, then MEDIUM, then LOW
_priority_rank = case({"URGENT": 0, "MEDIUM": 1, "LOW": 2}, value=Alert.priority, else_=3)


def _parse_priority(priority: str | None) -> str | None:
    if priority is None:
        return None
    value = priority.upper()
    if value not in ALERT_PRIORITIES:
        raise ValidationFailed("Invalid priority. Must be URGENT, MEDIUM, or LOW")
    return value


async def _get_alert(db: AsyncSession, alert_id: UUID) -> Alert:
    alert = (await db.execute(select(Alert).where(Alert.id == alert_id))).scalar_one_or_none()
    if not alert:
        raise NotFound("Alert")
    return alert


@router.get("", response_model=Page[AlertRead])
async def list_alerts(
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
    priority: str | None = Query(None, description="URGENT, MEDIUM or LOW"),
    is_published: bool | None = Query(None, alias="isPublished", description="Admin-only filter"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List alerts. Members only see published alerts addressed to their tags."""
    priority = _parse_priority(priority)
    query = select(Alert).order_by(_priority_rank, Alert.created_at.desc())
    if priority:
        query = query.where(Alert.priority == priority)

    if requester.is_admin:
        if is_published is not None:
            query = query.where(Alert.is_published == is_published)
        alerts, pagination = await paginate(db, query, page, limit)
    else:
        query = query.where(Alert.is_published == True)
        visible = filter_visible((await db.execute(query)).scalars().all(), requester)
        alerts, pagination = paginate_list(visible, page, limit)

    return Page[AlertRead](
        data=[AlertRead.model_validate(a) for a in alerts],
        pagination=pagination,
    )


@router.get("/priority/{priority}", response_model=list[AlertRead])
async def list_alerts_by_priority(
    priority: str,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    """All alerts of one priority, newest first."""
    priority = _parse_priority(priority)
    query = select(Alert).where(Alert.priority == priority).order_by(Alert.created_at.desc())
    if not requester.is_admin:
        query = query.where(Alert.is_published == True)
    alerts = (await db.execute(query)).scalars().all()
    return filter_visible(alerts, requester)


@router.get("/{alert_id}", response_model=AlertRead)
async def get_alert(
    alert_id: UUID,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    alert = await _get_alert(db, alert_id)
    if not can_view(alert, requester):
        raise AuthorizationDenied()
    return alert


@router.post("", response_model=AlertRead, status_code=201)
async def create_alert(
    payload: AlertCreate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    """Create an alert; alerts created already published notify their audience."""
    alert = Alert(
        title=payload.title,
        content=payload.content,
        priority=payload.priority,
        published_date=payload.published_date or (datetime.now(timezone.utc) if payload.is_published else None),
        is_published=payload.is_published,
        attachment_urls=payload.attachment_urls,
        tags=payload.tags,
        questions=dump_questions(payload.questions),
        created_by_id=admin.id,
    )
    db.add(alert)
    await db.commit()
    await db.refresh(alert)
    await cache.delete(CacheKeys.tags())

    if alert.is_published:
        await notify_published(db, alert, "alert", email_service)
    return alert


@router.put("/{alert_id}", response_model=AlertRead)
async def update_alert(
    alert_id: UUID,
    payload: AlertUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    """Update an alert. Only the unpublished -> published transition notifies."""
    alert = await _get_alert(db, alert_id)
    was_published = alert.is_published

    changes = payload.model_dump(exclude_unset=True)
    if "questions" in changes:
        changes["questions"] = dump_questions(payload.questions)
    if changes.get("is_published") is False and was_published:
        raise ValidationFailed("Published alerts cannot be unpublished")
    for field, value in changes.items():
        if value is None and field != "published_date":
            continue
        setattr(alert, field, value)

    if alert.is_published and not was_published and alert.published_date is None:
        alert.published_date = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(alert)
    if "tags" in changes:
        await cache.delete(CacheKeys.tags())

    if alert.is_published and not was_published:
        await notify_published(db, alert, "alert", email_service)
    return alert


@router.delete("/{alert_id}", status_code=204)
async def delete_alert(
    alert_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
):
    alert = await _get_alert(db, alert_id)
    await db.delete(alert)
    await db.commit()
    await cache.delete(CacheKeys.tags())
    return Response(status_code=204)


@router.post("/{alert_id}/publish", response_model=AlertRead)
async def publish_alert(
    alert_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    """Publish a draft alert and notify its audience."""
    alert = await _get_alert(db, alert_id)
    if alert.is_published:
        raise ValidationFailed("Alert is already published")

    alert.is_published = True
    alert.published_date = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(alert)

    await notify_published(db, alert, "alert", email_service)
    return alert


@router.get("/{alert_id}/summary", response_model=ResponseSummary)
async def get_alert_summary(
    alert_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    """Per-question tabulation of every response to this alert."""
    alert = await _get_alert(db, alert_id)
    result = await db.execute(
        select(AlertResponse)
        .options(selectinload(AlertResponse.organization))
        .where(AlertResponse.alert_id == alert_id)
        .order_by(AlertResponse.submitted_date)
    )
    records = [
        ResponseRecord(organization_name=r.organization.name, answers=r.answers or {})
        for r in result.scalars().all()
    ]
    stats = aggregate(load_questions(alert.questions), records)
    return ResponseSummary.model_validate(stats.as_dict())
