"""Scheduled custom email dispatch."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from coalition.config import get_settings
from coalition.models.base import SyncSessionLocal
from coalition.models.email_history import EmailHistory
from coalition.services.email_service import EmailService
from coalition.services.notifications import send_batch_sync
from coalition.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)
settings = get_settings()


def dispatch_due_emails(db: Session, email_service: EmailService, now: datetime | None = None) -> dict:
    """Send every SCHEDULED email whose time has come and record the outcome.

    A row becomes SENT when at least one recipient was delivered, FAILED
    otherwise; either way it is never picked up again.
    """
    now = now or datetime.now(timezone.utc)
    due = db.execute(
        select(EmailHistory)
        .where(EmailHistory.status == "SCHEDULED")
        .where(EmailHistory.scheduled_for <= now)
        .order_by(EmailHistory.scheduled_for)
        .limit(settings.scheduled_email_batch_size)
        .with_for_update(skip_locked=True)
    ).scalars().all()

    totals = {"dispatched": 0, "sent": 0, "failed": 0}
    for email in due:
        logger.info(f"Processing email {email.id} scheduled for {email.scheduled_for}")
        result = send_batch_sync(email.recipient_emails or [], email.subject, email.body, email_service)

        email.status = "SENT" if result.succeeded else "FAILED"
        email.sent_at = datetime.now(timezone.utc)
        email.sent_count = result.succeeded
        email.failed_count = result.failed
        db.commit()

        logger.info(
            f"Email {email.id} processed: {result.succeeded}/{email.recipient_count} sent, status: {email.status}"
        )
        totals["dispatched"] += 1
        totals["sent"] += result.succeeded
        totals["failed"] += result.failed

    return totals


@celery_app.task(name="coalition.tasks.email_tasks.dispatch_scheduled_emails")
def dispatch_scheduled_emails():
    """Beat entry point: runs every minute."""
    db = SyncSessionLocal()
    try:
        totals = dispatch_due_emails(db, EmailService())
        if totals["dispatched"]:
            logger.info(
                f"Dispatched {totals['dispatched']} scheduled emails "
                f"({totals['sent']} sent, {totals['failed']} failed)"
            )
        return totals
    finally:
        db.close()
