"""Editable page content endpoints.

Public pages read a flattened ``{section_key: {id, value, type}}`` map that is
cached until an admin write invalidates it.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coalition.config import get_settings
from coalition.dependencies.auth import require_admin
from coalition.errors import Conflict, NotFound
from coalition.models.base import get_db
from coalition.models.organization import Organization
from coalition.models.page_content import PageContent
from coalition.schemas.page_content import (
    PageContentBulkResult,
    PageContentBulkUpdate,
    PageContentCreate,
    PageContentRead,
    PageContentUpdate,
)
from coalition.services.cache import CacheKeys, CacheService, get_cache

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/page-content", tags=["page-content"])


def flatten_page(rows) -> dict[str, dict]:
    return {
        f"{row.section}_{row.content_key}": {
            "id": str(row.id),
            "value": row.content_value,
            "type": row.content_type,
        }
        for row in rows
    }


async def _get_content(db: AsyncSession, content_id: UUID) -> PageContent:
    content = (await db.execute(select(PageContent).where(PageContent.id == content_id))).scalar_one_or_none()
    if not content:
        raise NotFound("Page content")
    return content


@router.get("", response_model=list[PageContentRead])
async def list_page_content(
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
    page: str | None = Query(None, description="Restrict to one page"),
):
    """Every content row, for the admin editor."""
    query = select(PageContent).order_by(PageContent.page, PageContent.section, PageContent.content_key)
    if page:
        query = query.where(PageContent.page == page)
    return (await db.execute(query)).scalars().all()


@router.get("/{page}")
async def get_page_content(
    page: str,
    response: Response,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
) -> dict[str, dict]:
    response.headers["Cache-Control"] = "public, max-age=0, must-revalidate"

    cache_key = CacheKeys.page_content(page)
    cached = await cache.get(cache_key)
    if cached is not None:
        return cached

    result = await db.execute(
        select(PageContent)
        .where(PageContent.page == page)
        .order_by(PageContent.section, PageContent.content_key)
    )
    content = flatten_page(result.scalars().all())
    await cache.set(cache_key, content, ttl=settings.cache_ttl_page_content)
    return content


@router.post("", response_model=PageContentRead, status_code=201)
async def create_page_content(
    payload: PageContentCreate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
):
    content = PageContent(**payload.model_dump())
    db.add(content)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Content with this page, section, and key already exists")
    await db.refresh(content)

    await cache.delete(CacheKeys.page_content(content.page))
    return content


@router.put("/bulk", response_model=PageContentBulkResult)
async def bulk_update_page_content(
    payload: PageContentBulkUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
):
    """Apply several value changes in one transaction; an unknown id aborts all of them."""
    if not payload.updates:
        return PageContentBulkResult(message="No valid updates to process", updated_count=0, updates=[])

    ids = [item.id for item in payload.updates]
    rows = {
        row.id: row
        for row in (await db.execute(select(PageContent).where(PageContent.id.in_(ids)))).scalars().all()
    }
    missing = [str(i) for i in ids if i not in rows]
    if missing:
        raise NotFound(f"Page content {', '.join(missing)}")

    for item in payload.updates:
        rows[item.id].content_value = item.content_value
    await db.commit()

    updated = []
    for content_id in dict.fromkeys(ids):
        await db.refresh(rows[content_id])
        updated.append(PageContentRead.model_validate(rows[content_id]))

    await cache.delete_pattern(CacheKeys.page_content_all())
    logger.info("Bulk updated %d page content rows", len(updated))
    return PageContentBulkResult(message="Content updated successfully", updated_count=len(updated), updates=updated)


@router.put("/{content_id}", response_model=PageContentRead)
async def update_page_content(
    content_id: UUID,
    payload: PageContentUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
):
    content = await _get_content(db, content_id)
    content.content_value = payload.content_value
    await db.commit()
    await db.refresh(content)

    await cache.delete(CacheKeys.page_content(content.page))
    return content


@router.delete("/{content_id}", status_code=204)
async def delete_page_content(
    content_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
):
    content = await _get_content(db, content_id)
    page = content.page
    await db.delete(content)
    await db.commit()

    await cache.delete(CacheKeys.page_content(page))
    return Response(status_code=204)
