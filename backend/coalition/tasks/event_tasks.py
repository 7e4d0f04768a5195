"""Event reminder emails for attendees who RSVP'd GOING."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from coalition.models.base import SyncSessionLocal
from coalition.models.event import Event, EventRsvp
from coalition.services.email_service import EmailService
from coalition.services.email_templates import event_reminder_message
from coalition.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

# (flag column, window start offset, window end offset, phrase used in the email)
REMINDER_WINDOWS = (
    ("reminder_hour_sent", timedelta(0), timedelta(hours=1), "in one hour"),
    ("reminder_day_sent", timedelta(hours=1), timedelta(days=1), "tomorrow"),
)


def _pending_rsvps(db: Session, flag: str, start: datetime, end: datetime) -> list[tuple[EventRsvp, Event]]:
    result = db.execute(
        select(EventRsvp, Event)
        .join(Event, Event.id == EventRsvp.event_id)
        .where(Event.status == "PUBLISHED")
        .where(Event.start_time > start)
        .where(Event.start_time <= end)
        .where(EventRsvp.status == "GOING")
        .where(getattr(EventRsvp, flag) == False)
        .order_by(Event.start_time)
    )
    return list(result.tuples().all())


def send_due_reminders(db: Session, email_service: EmailService, now: datetime | None = None) -> dict:
    """Send the one-hour and one-day reminders that are due.

    Each reminder is flagged once delivered; a failed send is retried on the
    next run. An hour reminder also settles the day reminder so a late RSVP
    never receives both at once.
    """
    now = now or datetime.now(timezone.utc)
    counts = {"sent": 0, "failed": 0}

    for flag, window_start, window_end, time_frame in REMINDER_WINDOWS:
        for rsvp, event in _pending_rsvps(db, flag, now + window_start, now + window_end):
            try:
                email_service.send(event_reminder_message(event, rsvp, time_frame))
            except Exception as e:
                logger.error(f"Failed to send reminder for event {event.id} to {rsvp.attendee_email}: {e}")
                counts["failed"] += 1
                continue

            setattr(rsvp, flag, True)
            if flag == "reminder_hour_sent":
                rsvp.reminder_day_sent = True
            db.commit()
            counts["sent"] += 1

    return counts


@celery_app.task(name="coalition.tasks.event_tasks.send_event_reminders")
def send_event_reminders():
    """Beat entry point: runs hourly."""
    db = SyncSessionLocal()
    try:
        counts = send_due_reminders(db, EmailService())
        logger.info(f"Event reminders: {counts['sent']} sent, {counts['failed']} failed")
        return counts
    finally:
        db.close()
