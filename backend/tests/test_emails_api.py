"""API tests for custom and scheduled emails."""

from datetime import datetime, timedelta, timezone

from conftest import auth_headers, make_organization


async def test_recipients_filtered_by_tags_region_and_size(client, db, admin):
    await make_organization(db, "Nashville Health", tags=["healthcare"], region="Middle", organization_size="SMALL")
    await make_organization(db, "Memphis Health", tags=["healthcare"], region="West", organization_size="SMALL")
    await make_organization(db, "Nashville Finance", tags=["finance"], region="Middle", organization_size="SMALL")
    await make_organization(db, "Nashville Large", tags=["healthcare"], region="Middle", organization_size="LARGE")

    response = await client.post(
        "/api/emails/recipients",
        json={"tags": ["healthcare"], "regions": ["Middle"], "sizes": ["small"]},
        headers=auth_headers(admin),
    )

    assert response.json()["count"] == 1
    assert response.json()["recipients"][0]["name"] == "Nashville Health"


async def test_send_now_records_history(client, admin, email_service):
    email_service.fail_for = {"bad@example.org"}

    response = await client.post(
        "/api/emails",
        json={
            "subject": "Coalition update",
            "body": "<p>Hello members</p>",
            "recipientEmails": ["one@example.org", "bad@example.org"],
        },
        headers=auth_headers(admin),
    )

    body = response.json()
    assert response.status_code == 201
    assert body["email"]["status"] == "SENT"
    assert body["email"]["sentCount"] == 1
    assert body["email"]["failedCount"] == 1
    assert body["delivery"]["attempted"] == 2
    assert email_service.recipients == ["one@example.org"]


async def test_all_failures_mark_email_failed(client, admin, email_service):
    email_service.fail_for = {"bad@example.org"}
    response = await client.post(
        "/api/emails",
        json={"subject": "s", "body": "<p>b</p>", "recipientEmails": ["bad@example.org"]},
        headers=auth_headers(admin),
    )
    assert response.json()["email"]["status"] == "FAILED"


async def test_future_email_is_scheduled_not_sent(client, admin, email_service):
    send_at = datetime.now(timezone.utc) + timedelta(hours=2)

    response = await client.post(
        "/api/emails",
        json={
            "subject": "Reminder",
            "body": "<p>Tomorrow</p>",
            "recipientEmails": ["one@example.org"],
            "scheduledFor": send_at.isoformat(),
        },
        headers=auth_headers(admin),
    )

    assert response.status_code == 201
    assert response.json()["email"]["status"] == "SCHEDULED"
    assert response.json()["delivery"] is None
    assert email_service.sent == []

    history = await client.get("/api/emails/history", params={"status": "scheduled"}, headers=auth_headers(admin))
    assert history.json()["pagination"]["total"] == 1


async def test_past_schedule_sends_immediately(client, admin, email_service):
    response = await client.post(
        "/api/emails",
        json={
            "subject": "Late",
            "body": "<p>Now</p>",
            "recipientEmails": ["one@example.org"],
            "scheduledFor": "2020-01-01T00:00:00Z",
        },
        headers=auth_headers(admin),
    )
    assert response.json()["email"]["status"] == "SENT"
    assert len(email_service.sent) == 1


async def test_only_scheduled_emails_can_be_deleted(client, admin):
    scheduled = await client.post(
        "/api/emails",
        json={
            "subject": "Later",
            "body": "<p>Later</p>",
            "recipientEmails": ["one@example.org"],
            "scheduledFor": (datetime.now(timezone.utc) + timedelta(days=1)).isoformat(),
        },
        headers=auth_headers(admin),
    )
    sent = await client.post(
        "/api/emails",
        json={"subject": "Now", "body": "<p>Now</p>", "recipientEmails": ["one@example.org"]},
        headers=auth_headers(admin),
    )

    delete_scheduled = await client.delete(
        f"/api/emails/history/{scheduled.json()['email']['id']}", headers=auth_headers(admin)
    )
    delete_sent = await client.delete(f"/api/emails/history/{sent.json()['email']['id']}", headers=auth_headers(admin))

    assert delete_scheduled.status_code == 204
    assert delete_sent.status_code == 400
    assert delete_sent.json() == {"error": "Only scheduled emails can be deleted"}


async def test_invalid_recipient_address(client, admin):
    response = await client.post(
        "/api/emails",
        json={"subject": "s", "body": "b", "recipientEmails": ["not-an-email"]},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400


async def test_members_cannot_send(client, member):
    response = await client.post(
        "/api/emails",
        json={"subject": "s", "body": "b", "recipientEmails": ["one@example.org"]},
        headers=auth_headers(member),
    )
    assert response.status_code == 403
