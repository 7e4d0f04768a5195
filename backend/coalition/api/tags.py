"""Tag listing endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coalition.config import get_settings
from coalition.dependencies.auth import get_current_organization
from coalition.models.alert import Alert
from coalition.models.announcement import Announcement
from coalition.models.base import get_db
from coalition.models.event import Event
from coalition.models.organization import Organization
from coalition.models.survey import Survey
from coalition.services.cache import CacheKeys, CacheService, get_cache

settings = get_settings()

router = APIRouter(prefix="/tags", tags=["tags"])

TAGGED_MODELS = (Organization, Alert, Announcement, Event, Survey)


@router.get("", response_model=list[str])
async def list_tags(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    requester: Organization = Depends(get_current_organization),
):
    """Every tag in use on organizations or content, sorted case-insensitively."""
    cached = await cache.get(CacheKeys.tags())
    if cached is not None:
        return cached

    tags: set[str] = set()
    for model in TAGGED_MODELS:
        for row_tags in (await db.execute(select(model.tags))).scalars().all():
            tags.update(t for t in row_tags or [] if t)

    result = sorted(tags, key=lambda t: (t.lower(), t))
    await cache.set(CacheKeys.tags(), result, ttl=settings.cache_ttl_tags)
    return result
