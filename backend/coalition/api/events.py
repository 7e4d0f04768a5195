"""Event and RSVP API endpoints."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from coalition.api.pagination import paginate, paginate_list
from coalition.dependencies.auth import get_current_organization, get_optional_organization, require_admin
from coalition.errors import AuthorizationDenied, NotFound, ValidationFailed
from coalition.models.base import get_db
from coalition.models.event import EVENT_STATUSES, Event, EventRsvp
from coalition.models.organization import Organization
from coalition.schemas.common import MessageResponse, Page
from coalition.schemas.event import EventCreate, EventRead, EventUpdate, PublicRsvpCreate, RsvpCreate, RsvpRead
from coalition.services.audience import can_view
from coalition.services.cache import CacheKeys, CacheService, get_cache
from coalition.services.email_service import EmailService, get_email_service
from coalition.services.notifications import notify_published

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])

_NULLABLE = ("end_time", "location", "meeting_url", "max_attendees")


def can_see_event(event: Event, requester: Organization | None) -> bool:
    """Admins see every event; others need a published event that is public or matches their tags."""
    if requester is not None and requester.is_admin:
        return True
    if not event.is_published:
        return False
    if event.is_public:
        return True
    if requester is None:
        return False
    return can_view(event, requester)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def _get_event(db: AsyncSession, event_id: UUID) -> Event:
    event = (await db.execute(select(Event).where(Event.id == event_id))).scalar_one_or_none()
    if not event:
        raise NotFound("Event")
    return event


async def _going_counts(db: AsyncSession, event_ids: list[UUID]) -> dict[UUID, int]:
    if not event_ids:
        return {}
    result = await db.execute(
        select(EventRsvp.event_id, func.count(EventRsvp.id).label("count"))
        .where(EventRsvp.event_id.in_(event_ids))
        .where(EventRsvp.status == "GOING")
        .group_by(EventRsvp.event_id)
    )
    return {row.event_id: row.count for row in result}


async def _event_read(db: AsyncSession, event: Event) -> EventRead:
    counts = await _going_counts(db, [event.id])
    return EventRead.model_validate(event).model_copy(update={"rsvp_count": counts.get(event.id, 0)})


async def _check_capacity(db: AsyncSession, event: Event) -> None:
    if not event.max_attendees:
        return
    going = (await _going_counts(db, [event.id])).get(event.id, 0)
    if going >= event.max_attendees:
        raise ValidationFailed("Event is full.")


@router.get("", response_model=Page[EventRead])
async def list_events(
    db: AsyncSession = Depends(get_db),
    requester: Organization | None = Depends(get_optional_organization),
    status: str | None = Query(None, description="Admin-only filter: DRAFT, PUBLISHED or CANCELLED"),
    upcoming: bool = Query(False, description="Only events that have not started yet"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List events by start time."""
    query = select(Event).order_by(Event.start_time)
    if upcoming:
        query = query.where(Event.start_time >= datetime.now(timezone.utc))

    if requester is not None and requester.is_admin:
        if status:
            status = status.upper()
            if status not in EVENT_STATUSES:
                raise ValidationFailed("Invalid status. Must be DRAFT, PUBLISHED, or CANCELLED")
            query = query.where(Event.status == status)
        events, pagination = await paginate(db, query, page, limit)
    else:
        query = query.where(Event.status == "PUBLISHED")
        if requester is None:
            query = query.where(Event.is_public == True)
        candidates = (await db.execute(query)).scalars().all()
        visible = [e for e in candidates if can_see_event(e, requester)]
        events, pagination = paginate_list(visible, page, limit)

    counts = await _going_counts(db, [e.id for e in events])
    return Page[EventRead](
        data=[
            EventRead.model_validate(e).model_copy(update={"rsvp_count": counts.get(e.id, 0)})
            for e in events
        ],
        pagination=pagination,
    )


@router.get("/my-rsvps", response_model=list[RsvpRead])
async def list_my_rsvps(
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    """RSVPs made by the caller's organization, soonest event first."""
    result = await db.execute(
        select(EventRsvp)
        .join(Event, Event.id == EventRsvp.event_id)
        .where(EventRsvp.organization_id == requester.id)
        .order_by(Event.start_time)
    )
    return result.scalars().all()


@router.get("/{event_id}", response_model=EventRead)
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    requester: Organization | None = Depends(get_optional_organization),
):
    event = await _get_event(db, event_id)
    if not can_see_event(event, requester):
        raise AuthorizationDenied()
    return await _event_read(db, event)


@router.post("", response_model=EventRead, status_code=201)
async def create_event(
    payload: EventCreate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    data = payload.model_dump(exclude={"is_published"})
    event = Event(
        **data,
        status="PUBLISHED" if payload.is_published else "DRAFT",
        published_date=datetime.now(timezone.utc) if payload.is_published else None,
        created_by_id=admin.id,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    await cache.delete(CacheKeys.tags())

    if event.is_published:
        await notify_published(db, event, "event", email_service)
    return await _event_read(db, event)


@router.put("/{event_id}", response_model=EventRead)
async def update_event(
    event_id: UUID,
    payload: EventUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
):
    event = await _get_event(db, event_id)
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field not in _NULLABLE:
            continue
        setattr(event, field, value)

    if event.end_time and _aware(event.end_time) < _aware(event.start_time):
        raise ValidationFailed("endTime must be after startTime")

    await db.commit()
    await db.refresh(event)
    if "tags" in changes:
        await cache.delete(CacheKeys.tags())
    return await _event_read(db, event)


@router.post("/{event_id}/publish", response_model=EventRead)
async def publish_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    event = await _get_event(db, event_id)
    if event.status == "PUBLISHED":
        raise ValidationFailed("Event is already published")
    if event.status == "CANCELLED":
        raise ValidationFailed("Cancelled events cannot be published")

    event.status = "PUBLISHED"
    event.published_date = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(event)

    await notify_published(db, event, "event", email_service)
    return await _event_read(db, event)


@router.post("/{event_id}/unpublish", response_model=EventRead)
async def unpublish_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    event = await _get_event(db, event_id)
    if event.status != "PUBLISHED":
        raise ValidationFailed("Event is not published")

    event.status = "DRAFT"
    await db.commit()
    await db.refresh(event)
    return await _event_read(db, event)


@router.post("/{event_id}/cancel", response_model=EventRead)
async def cancel_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    event = await _get_event(db, event_id)
    if event.status == "CANCELLED":
        raise ValidationFailed("Event is already cancelled")

    event.status = "CANCELLED"
    await db.commit()
    await db.refresh(event)
    return await _event_read(db, event)


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
):
    """Hard-delete an event without RSVPs; otherwise cancel it to keep attendee history."""
    event = await _get_event(db, event_id)
    rsvp_count = (
        await db.execute(select(func.count(EventRsvp.id)).where(EventRsvp.event_id == event_id))
    ).scalar() or 0

    if rsvp_count:
        event.status = "CANCELLED"
        await db.commit()
        logger.info("Event %s has %d RSVPs; cancelled instead of deleted", event_id, rsvp_count)
        return MessageResponse(message="Event cancelled because it has existing RSVPs")

    await db.delete(event)
    await db.commit()
    await cache.delete(CacheKeys.tags())
    return MessageResponse(message="Event deleted successfully")


@router.post("/public/{event_id}/rsvp", response_model=RsvpRead, status_code=201)
async def public_rsvp(
    event_id: UUID,
    payload: PublicRsvpCreate,
    db: AsyncSession = Depends(get_db),
):
    """RSVP to a public event without an account."""
    event = await _get_event(db, event_id)
    if not (event.is_published and event.is_public):
        raise NotFound("Event")

    email = payload.attendee_email.lower()
    existing = await db.execute(
        select(EventRsvp.id).where(EventRsvp.event_id == event_id).where(EventRsvp.attendee_email == email)
    )
    if existing.scalar_one_or_none():
        raise ValidationFailed("This email has already RSVP'd to this event")
    await _check_capacity(db, event)

    rsvp = EventRsvp(event_id=event.id, attendee_name=payload.attendee_name, attendee_email=email, status="GOING")
    db.add(rsvp)
    await db.commit()
    await db.refresh(rsvp)
    return rsvp


@router.post("/{event_id}/rsvp", response_model=RsvpRead)
async def rsvp_to_event(
    event_id: UUID,
    payload: RsvpCreate,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    """Create or update the caller's RSVP."""
    event = await _get_event(db, event_id)
    if not event.is_published:
        raise ValidationFailed("Event is not open for RSVPs")
    if not can_see_event(event, requester):
        raise AuthorizationDenied()

    email = (payload.attendee_email or requester.contact_email).lower()
    result = await db.execute(
        select(EventRsvp)
        .where(EventRsvp.event_id == event_id)
        .where(or_(EventRsvp.organization_id == requester.id, EventRsvp.attendee_email == email))
    )
    rsvp = result.scalars().first()

    becoming_going = payload.status == "GOING" and (rsvp is None or rsvp.status != "GOING")
    if becoming_going:
        await _check_capacity(db, event)

    if rsvp is None:
        rsvp = EventRsvp(
            event_id=event.id,
            organization_id=requester.id,
            attendee_name=payload.attendee_name or requester.primary_contact_name or requester.name,
            attendee_email=email,
            status=payload.status,
        )
        db.add(rsvp)
    else:
        if rsvp.organization_id not in (None, requester.id):
            raise ValidationFailed("This email has already RSVP'd to this event")
        rsvp.organization_id = requester.id
        rsvp.status = payload.status
        if payload.attendee_name:
            rsvp.attendee_name = payload.attendee_name

    await db.commit()
    await db.refresh(rsvp)
    return rsvp
