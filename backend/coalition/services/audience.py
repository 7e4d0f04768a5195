"""Tag-based audience targeting.

An item with no tags is a broadcast: every organization is in its audience.
A tagged item reaches only organizations sharing at least one tag with it.
"""

import logging
from typing import Iterable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Strip whitespace, drop empties and duplicates, keep first-seen order."""
    seen: set[str] = set()
    result = []
    for tag in tags or []:
        if not isinstance(tag, str):
            continue
        cleaned = tag.strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            result.append(cleaned)
    return result


def tags_intersect(a: Iterable[str] | None, b: Iterable[str] | None) -> bool:
    return not set(a or ()).isdisjoint(b or ())


def compute_audience(item_tags: Iterable[str] | None, organizations: Sequence[T]) -> list[T]:
    """Return the organizations eligible to see or be notified about an item.

    Organizations are returned in input order. Organizations without tags
    never match a tagged item.
    """
    wanted = set(item_tags or ())
    if not wanted:
        return list(organizations)
    return [org for org in organizations if not wanted.isdisjoint(getattr(org, "tags", None) or ())]


def can_view(item, requester) -> bool:
    """Access check for a single item.

    ``requester`` is an Organization or None (anonymous). Admins see
    everything; everyone else needs a published item whose tags are empty or
    overlap the requester's tags.
    """
    if requester is not None and requester.is_admin:
        return True
    if not item.is_published:
        return False
    item_tags = item.tags or []
    if not item_tags:
        return True
    requester_tags = requester.tags if requester is not None else []
    return tags_intersect(item_tags, requester_tags)


def filter_visible(items: Iterable[T], requester) -> list[T]:
    return [item for item in items if can_view(item, requester)]
