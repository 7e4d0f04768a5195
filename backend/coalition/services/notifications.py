"""Notification fan-out: one email per eligible recipient, tolerant of partial failure."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coalition.models.email_subscription import SUBSCRIPTION_TYPES, EmailSubscription
from coalition.models.organization import Organization
from coalition.services import email_templates
from coalition.services.audience import compute_audience, normalize_tags
from coalition.services.email_service import EmailMessage, EmailService, html_to_text

logger = logging.getLogger(__name__)

# Content kind -> (organization preference column, message builder)
NOTIFICATION_KINDS: dict[str, tuple[str | None, Callable]] = {
    "alert": (None, email_templates.alert_message),
    "announcement": ("notify_announcements", email_templates.announcement_message),
    "event": ("notify_events", email_templates.event_message),
    "survey": ("notify_surveys", email_templates.survey_message),
}


@dataclass
class FanOutResult:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)

    def record_failure(self, recipient: str, error: Exception) -> None:
        self.failed += 1
        self.errors.append((recipient, str(error)))

    def summary(self) -> dict:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
        }


async def resolve_recipients(db: AsyncSession, kind: str, item_tags: Iterable[str] | None) -> list[Organization]:
    """Active organizations opted in to ``kind`` whose tags match the item."""
    preference, _ = NOTIFICATION_KINDS[kind]
    query = select(Organization).where(Organization.status == "ACTIVE")
    if preference:
        query = query.where(getattr(Organization, preference) == True)
    result = await db.execute(query.order_by(Organization.name))
    organizations = result.scalars().all()

    audience = compute_audience(item_tags, organizations)
    tags = list(item_tags or [])
    logger.info(
        "Resolved %d %s recipients%s",
        len(audience),
        kind,
        f" with matching tags {tags}" if tags else " (broadcast to all)",
    )
    return audience


async def resolve_subscribers(db: AsyncSession, kind: str, item_tags: Iterable[str] | None) -> list[EmailSubscription]:
    """Active individual subscribers following ``kind``. Only untagged items reach them."""
    subscription_type = kind.upper()
    if subscription_type not in SUBSCRIPTION_TYPES or normalize_tags(item_tags):
        return []
    result = await db.execute(
        select(EmailSubscription).where(EmailSubscription.is_active == True).order_by(EmailSubscription.email)
    )
    subscribers = [s for s in result.scalars().all() if subscription_type in (s.subscription_types or [])]
    logger.info("Resolved %d individual %s subscribers", len(subscribers), kind)
    return subscribers


async def fan_out(
    item,
    audience: Sequence[Organization | EmailSubscription],
    build_message: Callable[[object, Organization | EmailSubscription], EmailMessage],
    email_service: EmailService,
) -> FanOutResult:
    """Send one message per recipient in ``audience``.

    Recipients without a contact address, or sharing an address already
    mailed in this run, are skipped. A failure for one recipient is logged
    and counted; the remaining recipients are still attempted.
    """
    result = FanOutResult()
    seen: set[str] = set()

    for recipient in audience:
        address = (recipient.contact_email or "").strip().lower()
        if not address or address in seen:
            result.skipped += 1
            continue
        seen.add(address)

        result.attempted += 1
        try:
            message = build_message(item, recipient)
            await email_service.send_async(message)
            result.succeeded += 1
        except Exception as e:
            logger.error(f"Failed to send notification to {recipient.name} <{address}>: {e}")
            result.record_failure(address, e)

    logger.info(
        "Fan-out for %s %s: %d attempted, %d sent, %d failed",
        type(item).__name__,
        getattr(item, "id", "?"),
        result.attempted,
        result.succeeded,
        result.failed,
    )
    return result


async def notify_published(db: AsyncSession, item, kind: str, email_service: EmailService) -> FanOutResult:
    """Fan out the publication notice for ``item`` once.

    Items already notified (``notified_at`` set) are left alone, so re-publishing
    after an unpublish never mails the audience twice. Errors are logged and
    never propagate: publishing succeeds regardless of delivery.
    """
    if item.notified_at is not None:
        logger.info("%s %s already notified at %s; skipping", kind, item.id, item.notified_at)
        return FanOutResult()

    _, build_message = NOTIFICATION_KINDS[kind]
    try:
        audience = await resolve_recipients(db, kind, item.tags)
        subscribers = await resolve_subscribers(db, kind, item.tags)
        item.notified_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(item)
        return await fan_out(item, [*audience, *subscribers], build_message, email_service)
    except Exception:
        logger.exception("Failed to fan out %s %s notifications", kind, item.id)
        return FanOutResult()


def _unique_addresses(recipient_emails: Iterable[str], result: FanOutResult) -> list[str]:
    seen: set[str] = set()
    addresses = []
    for email in recipient_emails:
        address = (email or "").strip().lower()
        if not address or address in seen:
            result.skipped += 1
            continue
        seen.add(address)
        addresses.append(address)
    return addresses


async def send_batch(
    recipient_emails: Iterable[str],
    subject: str,
    html: str,
    email_service: EmailService,
) -> FanOutResult:
    """Send the same custom message to each address independently."""
    result = FanOutResult()
    text = html_to_text(html)
    for address in _unique_addresses(recipient_emails, result):
        result.attempted += 1
        try:
            await email_service.send_async(EmailMessage(to=address, subject=subject, html=html, text=text))
            result.succeeded += 1
        except Exception as e:
            logger.error(f"Failed to send email to {address}: {e}")
            result.record_failure(address, e)
    return result


def send_batch_sync(
    recipient_emails: Iterable[str],
    subject: str,
    html: str,
    email_service: EmailService,
) -> FanOutResult:
    """Blocking variant of :func:`send_batch` for Celery workers."""
    result = FanOutResult()
    text = html_to_text(html)
    for address in _unique_addresses(recipient_emails, result):
        result.attempted += 1
        try:
            email_service.send(EmailMessage(to=address, subject=subject, html=html, text=text))
            result.succeeded += 1
        except Exception as e:
            logger.error(f"Failed to send email to {address}: {e}")
            result.record_failure(address, e)
    return result
