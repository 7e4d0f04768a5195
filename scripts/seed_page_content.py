"""Seed the editable content blocks of the public home and about pages.

Existing rows are updated in place, so the script can be re-run after
changing the defaults below. Page caches are cleared afterwards.

Usage:
    docker compose exec backend python -m scripts.seed_page_content
"""

import asyncio

from coalition.config import get_settings
from coalition.models.base import SyncSessionLocal
from coalition.models.page_content import PageContent
from coalition.services.cache import CacheKeys, build_cache

settings = get_settings()

# (page, section, content_key, content_type, content_value)
PAGE_CONTENT = [
    ("home", "hero", "title", "text", "Tennessee Coalition for Better Aging"),
    (
        "home", "hero", "subtitle", "text",
        "Empowering organizations across Tennessee to improve the lives of older adults "
        "through collaboration, advocacy, and innovation.",
    ),
    ("home", "hero", "ctaText", "text", "Join Our Coalition"),
    ("home", "mission", "title", "text", "Our Mission"),
    (
        "home", "mission", "description", "text",
        "The Tennessee Coalition for Better Aging brings together organizations dedicated to "
        "enhancing the quality of life for older adults across Tennessee. We work to promote "
        "healthy aging, support family caregivers, and advocate for policies that benefit our "
        "senior population.",
    ),
    ("home", "features", "feature1Title", "text", "Statewide Network"),
    (
        "home", "features", "feature1Description", "text",
        "Connect with member organizations across all three Tennessee regions - East, Middle, and West.",
    ),
    ("home", "features", "feature2Title", "text", "Resources & Support"),
    (
        "home", "features", "feature2Description", "text",
        "Access educational materials, best practices, and professional development opportunities.",
    ),
    ("home", "features", "feature3Title", "text", "Advocacy & Policy"),
    (
        "home", "features", "feature3Description", "text",
        "Join our collective voice in advocating for policies that support healthy aging and senior services.",
    ),
    ("about", "overview", "title", "text", "About Us"),
    (
        "about", "overview", "description", "richtext",
        "<p>The Tennessee Coalition for Better Aging (TCBA) was founded to address the growing "
        "needs of Tennessee's aging population. We bring together Area Agencies on Aging, "
        "healthcare providers, social service organizations, advocacy groups, and community "
        "partners to create a unified approach to serving older adults.</p>",
    ),
    ("about", "values", "title", "text", "Our Values"),
    ("about", "values", "value1", "text", "Collaboration: We believe in the power of working together"),
    ("about", "values", "value2", "text", "Dignity: Every older adult deserves respect and independence"),
    ("about", "values", "value3", "text", "Innovation: We embrace new approaches to aging services"),
    ("about", "values", "value4", "text", "Equity: All Tennesseans should have access to quality aging services"),
]


async def _clear_page_cache():
    cache = build_cache()
    try:
        removed = await cache.delete_pattern(CacheKeys.page_content_all())
        print(f"  Cleared {removed} cached page(s)")
    finally:
        await cache.close()


def seed():
    db = SyncSessionLocal()
    try:
        created = 0
        updated = 0

        for page, section, content_key, content_type, content_value in PAGE_CONTENT:
            existing = db.query(PageContent).filter(
                PageContent.page == page,
                PageContent.section == section,
                PageContent.content_key == content_key,
            ).first()
            if existing:
                existing.content_value = content_value
                existing.content_type = content_type
                updated += 1
                continue

            db.add(PageContent(
                page=page,
                section=section,
                content_key=content_key,
                content_value=content_value,
                content_type=content_type,
            ))
            created += 1

        db.commit()
        print(f"\nPage content seed complete: {created} created, {updated} updated")
    finally:
        db.close()

    asyncio.run(_clear_page_cache())


if __name__ == "__main__":
    seed()
