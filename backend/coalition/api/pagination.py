"""Offset pagination over SQLAlchemy selects."""

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coalition.schemas.common import Pagination


async def paginate(db: AsyncSession, query: Select, page: int, limit: int) -> tuple[list, Pagination]:
    """Run ``query`` for one page and count the full result set."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return list(result.scalars().all()), Pagination.build(page, limit, total)


def paginate_list(items: list, page: int, limit: int) -> tuple[list, Pagination]:
    """Page an already-filtered in-memory list."""
    start = (page - 1) * limit
    return items[start:start + limit], Pagination.build(page, limit, len(items))
