"""Tests for notification fan-out and recipient resolution."""

from datetime import datetime, timezone

from conftest import RecordingEmailService, make_organization
from coalition.models.alert import Alert
from coalition.models.announcement import Announcement
from coalition.services.email_service import EmailMessage
from coalition.models.email_subscription import EmailSubscription
from coalition.services.notifications import (
    fan_out,
    notify_published,
    resolve_recipients,
    resolve_subscribers,
    send_batch,
    send_batch_sync,
)


class Recipient:
    def __init__(self, name, contact_email):
        self.name = name
        self.contact_email = contact_email


def build(item, organization) -> EmailMessage:
    return EmailMessage(to=organization.contact_email, subject=f"Hi {organization.name}", html="<p>x</p>")


async def test_fan_out_sends_one_message_per_recipient():
    service = RecordingEmailService()
    audience = [Recipient("a", "a@example.org"), Recipient("b", "b@example.org")]

    result = await fan_out(object(), audience, build, service)

    assert result.attempted == 2
    assert result.succeeded == 2
    assert service.recipients == ["a@example.org", "b@example.org"]


async def test_fan_out_continues_after_a_failure():
    service = RecordingEmailService()
    service.fail_for = {"a@example.org"}
    audience = [Recipient("a", "a@example.org"), Recipient("b", "b@example.org")]

    result = await fan_out(object(), audience, build, service)

    assert result.failed == 1
    assert result.succeeded == 1
    assert result.errors[0][0] == "a@example.org"
    assert service.recipients == ["b@example.org"]


async def test_fan_out_skips_missing_and_duplicate_addresses():
    service = RecordingEmailService()
    audience = [Recipient("a", "a@example.org"), Recipient("a2", "A@example.org"), Recipient("c", None)]

    result = await fan_out(object(), audience, build, service)

    assert result.attempted == 1
    assert result.skipped == 2
    assert result.summary() == {"attempted": 1, "succeeded": 1, "failed": 0, "skipped": 2}


async def test_resolve_recipients_uses_tags_status_and_preferences(db):
    await make_organization(db, "Health One", tags=["healthcare"])
    await make_organization(db, "Health Pending", tags=["healthcare"], status="PENDING")
    await make_organization(db, "Health Quiet", tags=["healthcare"], notify_announcements=False)
    await make_organization(db, "Money Matters", tags=["finance"])

    announcement_audience = await resolve_recipients(db, "announcement", ["healthcare"])
    alert_audience = await resolve_recipients(db, "alert", ["healthcare"])

    assert [o.name for o in announcement_audience] == ["Health One"]
    assert [o.name for o in alert_audience] == ["Health One", "Health Quiet"]


async def test_resolve_subscribers_matches_kind_for_broadcast_items_only(db):
    db.add_all([
        EmailSubscription(email="pat@example.org", name="Pat", subscription_types=["ALERT", "SURVEY"]),
        EmailSubscription(email="sam@example.org", name="Sam", subscription_types=["ANNOUNCEMENT"]),
        EmailSubscription(email="lee@example.org", name="Lee", subscription_types=["ALERT"], is_active=False),
    ])
    await db.commit()

    alerts = await resolve_subscribers(db, "alert", [])
    tagged = await resolve_subscribers(db, "alert", ["healthcare"])
    events = await resolve_subscribers(db, "event", [])

    assert [s.email for s in alerts] == ["pat@example.org"]
    assert tagged == []
    assert events == []


async def test_notify_published_only_once(db):
    await make_organization(db, "Org One", tags=["healthcare"])
    await make_organization(db, "Org Two", tags=["finance"])
    alert = Alert(title="Heat advisory", content="Check on clients", priority="URGENT", tags=[], is_published=True)
    db.add(alert)
    await db.commit()
    await db.refresh(alert)
    service = RecordingEmailService()

    first = await notify_published(db, alert, "alert", service)
    second = await notify_published(db, alert, "alert", service)

    assert first.succeeded == 2
    assert second.attempted == 0
    assert alert.notified_at is not None
    assert len(service.sent) == 2
    assert service.sent[0].subject == "[URGENT] Alert: Heat advisory"


async def test_notify_published_never_raises(db):
    await make_organization(db, "Org One")
    announcement = Announcement(
        title="News", slug="news", content="Body", tags=[], is_published=True,
        published_date=datetime.now(timezone.utc),
    )
    db.add(announcement)
    await db.commit()
    await db.refresh(announcement)
    service = RecordingEmailService()
    service.fail_for = {"org-one@example.org"}

    result = await notify_published(db, announcement, "announcement", service)

    assert result.failed == 1
    assert service.sent == []


async def test_send_batch_isolates_failures():
    service = RecordingEmailService()
    service.fail_for = {"bad@example.org"}

    result = await send_batch(["good@example.org", "bad@example.org", "GOOD@example.org"], "Hello", "<p>Hi</p>", service)

    assert result.succeeded == 1
    assert result.failed == 1
    assert result.skipped == 1
    assert service.sent[0].text == "Hi"


async def test_send_batch_sync():
    service = RecordingEmailService()
    result = send_batch_sync(["a@example.org", "b@example.org"], "Hello", "<p>Hi</p>", service)
    assert result.succeeded == 2
