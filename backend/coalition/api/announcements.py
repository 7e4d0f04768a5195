"""Announcement API endpoints.

The published list is cached as a whole; audience filtering and paging happen
per request on top of it. Admin requests always read the database.
"""

import logging
import re
from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coalition.api.pagination import paginate, paginate_list
from coalition.config import get_settings
from coalition.dependencies.auth import get_optional_organization, require_admin
from coalition.errors import AuthorizationDenied, NotFound, ValidationFailed
from coalition.models.announcement import Announcement
from coalition.models.base import get_db
from coalition.models.organization import Organization
from coalition.schemas.announcement import AnnouncementCreate, AnnouncementRead, AnnouncementUpdate
from coalition.schemas.common import Page
from coalition.services.audience import can_view, filter_visible
from coalition.services.cache import CacheKeys, CacheService, get_cache
from coalition.services.email_service import EmailService, get_email_service
from coalition.services.notifications import notify_published

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/announcements", tags=["announcements"])


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug[:250] or "announcement"


async def unique_slug(db: AsyncSession, title: str, exclude_id: UUID | None = None) -> str:
    """Slug for ``title``, suffixed -2, -3, ... when already taken."""
    base = slugify(title)
    query = select(Announcement.slug).where(Announcement.slug.like(f"{base}%"))
    if exclude_id:
        query = query.where(Announcement.id != exclude_id)
    taken = set((await db.execute(query)).scalars().all())
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"


async def _get_announcement(db: AsyncSession, announcement_id: UUID) -> Announcement:
    announcement = (
        await db.execute(select(Announcement).where(Announcement.id == announcement_id))
    ).scalar_one_or_none()
    if not announcement:
        raise NotFound("Announcement")
    return announcement


async def _invalidate(cache: CacheService, *slugs: str) -> None:
    await cache.delete_pattern(CacheKeys.announcements_all())
    await cache.delete(*[CacheKeys.announcement_by_slug(s) for s in slugs if s])


async def _published_announcements(db: AsyncSession, cache: CacheService) -> list[AnnouncementRead]:
    cached = await cache.get(CacheKeys.announcements_published())
    if cached is not None:
        return [AnnouncementRead.model_validate(a) for a in cached]

    result = await db.execute(
        select(Announcement)
        .where(Announcement.is_published == True)
        .order_by(Announcement.published_date.desc(), Announcement.created_at.desc())
    )
    announcements = [AnnouncementRead.model_validate(a) for a in result.scalars().all()]
    await cache.set(
        CacheKeys.announcements_published(),
        [a.model_dump(mode="json") for a in announcements],
        ttl=settings.cache_ttl_announcements,
    )
    return announcements


@router.get("", response_model=Page[AnnouncementRead])
async def list_announcements(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    requester: Organization | None = Depends(get_optional_organization),
    is_published: bool | None = Query(None, alias="isPublished", description="Admin-only filter"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List announcements visible to the caller, newest first."""
    if requester is not None and requester.is_admin:
        query = select(Announcement).order_by(Announcement.created_at.desc())
        if is_published is not None:
            query = query.where(Announcement.is_published == is_published)
        announcements, pagination = await paginate(db, query, page, limit)
        data = [AnnouncementRead.model_validate(a) for a in announcements]
        return Page[AnnouncementRead](data=data, pagination=pagination)

    visible = filter_visible(await _published_announcements(db, cache), requester)
    data, pagination = paginate_list(visible, page, limit)
    return Page[AnnouncementRead](data=data, pagination=pagination)


@router.get("/slug/{slug}", response_model=AnnouncementRead)
async def get_announcement_by_slug(
    slug: str,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    requester: Organization | None = Depends(get_optional_organization),
):
    cached = await cache.get(CacheKeys.announcement_by_slug(slug))
    if cached is not None:
        announcement = AnnouncementRead.model_validate(cached)
    else:
        row = (await db.execute(select(Announcement).where(Announcement.slug == slug))).scalar_one_or_none()
        if not row:
            raise NotFound("Announcement")
        announcement = AnnouncementRead.model_validate(row)
        if announcement.is_published:
            await cache.set(
                CacheKeys.announcement_by_slug(slug),
                announcement.model_dump(mode="json"),
                ttl=settings.cache_ttl_announcements,
            )

    if not can_view(announcement, requester):
        raise AuthorizationDenied()
    return announcement


@router.get("/published-date/{published_date}", response_model=list[AnnouncementRead])
async def list_announcements_by_published_date(
    published_date: str,
    db: AsyncSession = Depends(get_db),
    requester: Organization | None = Depends(get_optional_organization),
):
    """Published announcements whose publication falls on the given UTC day."""
    try:
        day = date.fromisoformat(published_date[:10])
    except ValueError:
        raise ValidationFailed("Invalid publishedDate. Provide a valid ISO 8601 date, e.g. 2024-05-01")

    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    result = await db.execute(
        select(Announcement)
        .where(Announcement.is_published == True)
        .where(Announcement.published_date >= start)
        .where(Announcement.published_date < start + timedelta(days=1))
        .order_by(Announcement.published_date.desc())
    )
    return filter_visible(result.scalars().all(), requester)


@router.get("/{announcement_id}", response_model=AnnouncementRead)
async def get_announcement(
    announcement_id: UUID,
    db: AsyncSession = Depends(get_db),
    requester: Organization | None = Depends(get_optional_organization),
):
    announcement = await _get_announcement(db, announcement_id)
    if not can_view(announcement, requester):
        raise AuthorizationDenied()
    return announcement


@router.post("", response_model=AnnouncementRead, status_code=201)
async def create_announcement(
    payload: AnnouncementCreate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    announcement = Announcement(
        title=payload.title,
        slug=await unique_slug(db, payload.title),
        content=payload.content,
        tags=payload.tags,
        attachment_urls=payload.attachment_urls,
        is_published=payload.is_published,
        published_date=payload.published_date or (datetime.now(timezone.utc) if payload.is_published else None),
        created_by_id=admin.id,
    )
    db.add(announcement)
    await db.commit()
    await db.refresh(announcement)
    await _invalidate(cache, announcement.slug)
    await cache.delete(CacheKeys.tags())

    if announcement.is_published:
        await notify_published(db, announcement, "announcement", email_service)
    return announcement


@router.put("/{announcement_id}", response_model=AnnouncementRead)
async def update_announcement(
    announcement_id: UUID,
    payload: AnnouncementUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    announcement = await _get_announcement(db, announcement_id)
    was_published = announcement.is_published
    old_slug = announcement.slug

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("title") and changes["title"] != announcement.title:
        announcement.slug = await unique_slug(db, changes["title"], exclude_id=announcement.id)
    for field, value in changes.items():
        if value is None and field != "published_date":
            continue
        setattr(announcement, field, value)

    if announcement.is_published and not was_published and announcement.published_date is None:
        announcement.published_date = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(announcement)
    await _invalidate(cache, old_slug, announcement.slug)
    if "tags" in changes:
        await cache.delete(CacheKeys.tags())

    if announcement.is_published and not was_published:
        await notify_published(db, announcement, "announcement", email_service)
    return announcement


@router.delete("/{announcement_id}", status_code=204)
async def delete_announcement(
    announcement_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
):
    announcement = await _get_announcement(db, announcement_id)
    slug = announcement.slug
    await db.delete(announcement)
    await db.commit()
    await _invalidate(cache, slug)
    await cache.delete(CacheKeys.tags())
    return Response(status_code=204)


@router.post("/{announcement_id}/publish", response_model=AnnouncementRead)
async def publish_announcement(
    announcement_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    announcement = await _get_announcement(db, announcement_id)
    if announcement.is_published:
        raise ValidationFailed("Announcement is already published")

    announcement.is_published = True
    announcement.published_date = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(announcement)
    await _invalidate(cache, announcement.slug)

    await notify_published(db, announcement, "announcement", email_service)
    return announcement


@router.post("/{announcement_id}/unpublish", response_model=AnnouncementRead)
async def unpublish_announcement(
    announcement_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
):
    """Hide an announcement again. Re-publishing later does not notify twice."""
    announcement = await _get_announcement(db, announcement_id)
    if not announcement.is_published:
        raise ValidationFailed("Announcement is not published")

    announcement.is_published = False
    await db.commit()
    await db.refresh(announcement)
    await _invalidate(cache, announcement.slug)
    return announcement
