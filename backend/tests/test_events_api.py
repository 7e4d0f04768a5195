"""API tests for events and RSVPs."""

from datetime import datetime, timedelta, timezone

from conftest import auth_headers, make_organization


def in_days(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


async def create_event(client, admin, **fields):
    payload = {
        "title": "Legislative Day",
        "description": "Meet your representatives.",
        "startTime": in_days(7),
        "location": "State Capitol",
        **fields,
    }
    response = await client.post("/api/events", json=payload, headers=auth_headers(admin))
    assert response.status_code == 201, response.text
    return response.json()


class TestDelete:
    async def test_event_without_rsvps_is_deleted(self, client, admin):
        event = await create_event(client, admin)

        response = await client.delete(f"/api/events/{event['id']}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json() == {"message": "Event deleted successfully"}
        missing = await client.get(f"/api/events/{event['id']}", headers=auth_headers(admin))
        assert missing.status_code == 404

    async def test_event_with_rsvps_is_cancelled(self, client, admin, member):
        event = await create_event(client, admin, isPublished=True)
        rsvp = await client.post(f"/api/events/{event['id']}/rsvp", json={}, headers=auth_headers(member))
        assert rsvp.status_code == 200

        response = await client.delete(f"/api/events/{event['id']}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["message"].startswith("Event cancelled")
        kept = await client.get(f"/api/events/{event['id']}", headers=auth_headers(admin))
        assert kept.json()["status"] == "CANCELLED"


class TestVisibility:
    async def test_anonymous_sees_public_published_events(self, client, admin):
        await create_event(client, admin, title="Open house", isPublic=True, isPublished=True)
        await create_event(client, admin, title="Members only", isPublished=True)
        await create_event(client, admin, title="Draft", isPublic=True)

        response = await client.get("/api/events")

        assert [e["title"] for e in response.json()["data"]] == ["Open house"]

    async def test_member_sees_events_for_their_tags(self, client, admin, member):
        await create_event(client, admin, title="Health forum", tags=["healthcare"], isPublished=True)
        await create_event(client, admin, title="Finance forum", tags=["finance"], isPublished=True)

        response = await client.get("/api/events", headers=auth_headers(member))

        assert [e["title"] for e in response.json()["data"]] == ["Health forum"]

    async def test_draft_event_hidden_from_member(self, client, admin, member):
        event = await create_event(client, admin)
        response = await client.get(f"/api/events/{event['id']}", headers=auth_headers(member))
        assert response.status_code == 403

    async def test_admin_status_filter(self, client, admin):
        await create_event(client, admin, title="Draft")
        await create_event(client, admin, title="Live", isPublished=True)

        response = await client.get("/api/events", params={"status": "draft"}, headers=auth_headers(admin))
        invalid = await client.get("/api/events", params={"status": "POSTPONED"}, headers=auth_headers(admin))

        assert [e["title"] for e in response.json()["data"]] == ["Draft"]
        assert invalid.status_code == 400


class TestLifecycle:
    async def test_publish_notifies_and_rejects_repeat(self, client, db, admin, email_service):
        org = await make_organization(db, "Org One")
        event = await create_event(client, admin)

        first = await client.post(f"/api/events/{event['id']}/publish", headers=auth_headers(admin))
        second = await client.post(f"/api/events/{event['id']}/publish", headers=auth_headers(admin))

        assert first.json()["status"] == "PUBLISHED"
        assert second.status_code == 400
        assert org.email in email_service.recipients
        assert all(m.subject == "New Event: Legislative Day" for m in email_service.sent)

    async def test_cancelled_event_cannot_be_published(self, client, admin):
        event = await create_event(client, admin)
        await client.post(f"/api/events/{event['id']}/cancel", headers=auth_headers(admin))
        response = await client.post(f"/api/events/{event['id']}/publish", headers=auth_headers(admin))
        assert response.status_code == 400

    async def test_end_before_start_rejected(self, client, admin):
        event = await create_event(client, admin)
        response = await client.put(
            f"/api/events/{event['id']}", json={"endTime": in_days(1)}, headers=auth_headers(admin)
        )
        assert response.status_code == 400
        assert response.json() == {"error": "endTime must be after startTime"}

    async def test_mixed_offset_times_are_compared_in_utc(self, client, admin):
        created = await client.post(
            "/api/events",
            json={
                "title": "Budget briefing",
                "description": "Walk through the proposal.",
                "startTime": "2030-01-01T10:00:00Z",
                "endTime": "2030-01-01T12:00:00",
            },
            headers=auth_headers(admin),
        )
        backwards = await client.post(
            "/api/events",
            json={
                "title": "Budget briefing",
                "description": "Walk through the proposal.",
                "startTime": "2030-01-01T10:00:00",
                "endTime": "2030-01-01T09:00:00+00:00",
            },
            headers=auth_headers(admin),
        )

        assert created.status_code == 201
        assert backwards.status_code == 400
        assert backwards.json() == {"error": "endTime must be after startTime"}

    async def test_naive_end_time_update(self, client, admin):
        event = await create_event(client, admin, startTime="2030-01-01T10:00:00Z")
        response = await client.put(
            f"/api/events/{event['id']}", json={"endTime": "2030-01-01T08:00:00"}, headers=auth_headers(admin)
        )
        assert response.status_code == 400


class TestRsvp:
    async def test_capacity_enforced(self, client, db, admin, member):
        other = await make_organization(db, "Other Org")
        event = await create_event(client, admin, isPublished=True, maxAttendees=1)

        first = await client.post(f"/api/events/{event['id']}/rsvp", json={}, headers=auth_headers(member))
        second = await client.post(f"/api/events/{event['id']}/rsvp", json={}, headers=auth_headers(other))

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json() == {"error": "Event is full."}
        detail = await client.get(f"/api/events/{event['id']}", headers=auth_headers(admin))
        assert detail.json()["rsvpCount"] == 1

    async def test_rsvp_updates_existing_response(self, client, admin, member):
        event = await create_event(client, admin, isPublished=True)
        path = f"/api/events/{event['id']}/rsvp"

        first = await client.post(path, json={"status": "GOING"}, headers=auth_headers(member))
        second = await client.post(path, json={"status": "NOT_GOING"}, headers=auth_headers(member))

        assert first.json()["id"] == second.json()["id"]
        assert second.json()["status"] == "NOT_GOING"

    async def test_public_rsvp(self, client, admin):
        event = await create_event(client, admin, isPublic=True, isPublished=True)
        path = f"/api/events/public/{event['id']}/rsvp"
        body = {"attendeeName": "Sam Rivera", "attendeeEmail": "Sam@Example.org"}

        first = await client.post(path, json=body)
        second = await client.post(path, json=body)

        assert first.status_code == 201
        assert first.json()["attendeeEmail"] == "sam@example.org"
        assert first.json()["organizationId"] is None
        assert second.status_code == 400
        assert second.json() == {"error": "This email has already RSVP'd to this event"}

    async def test_public_rsvp_requires_public_event(self, client, admin):
        event = await create_event(client, admin, isPublished=True)
        response = await client.post(
            f"/api/events/public/{event['id']}/rsvp",
            json={"attendeeName": "Sam", "attendeeEmail": "sam@example.org"},
        )
        assert response.status_code == 404

    async def test_my_rsvps(self, client, admin, member):
        later = await create_event(client, admin, title="Later", startTime=in_days(20), isPublished=True)
        sooner = await create_event(client, admin, title="Sooner", startTime=in_days(2), isPublished=True)
        await create_event(client, admin, title="Skipped", isPublished=True)
        for event in (later, sooner):
            await client.post(f"/api/events/{event['id']}/rsvp", json={}, headers=auth_headers(member))

        response = await client.get("/api/events/my-rsvps", headers=auth_headers(member))

        assert [r["eventId"] for r in response.json()] == [sooner["id"], later["id"]]
