"""API tests for individual email subscriptions and their notifications."""

from conftest import auth_headers
from coalition.models.email_subscription import EmailSubscription


async def subscribe(client, email="Pat.Lee@Example.org", name="Pat Lee", types=("ANNOUNCEMENT",), **fields):
    response = await client.post(
        "/api/subscriptions/register",
        json={"email": email, "name": name, "subscriptionTypes": list(types), **fields},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestRegistration:
    async def test_register_is_public_and_lowercases_email(self, client):
        subscription = await subscribe(client, types=["ANNOUNCEMENT", "ANNOUNCEMENT", "SURVEY"])

        assert subscription["email"] == "pat.lee@example.org"
        assert subscription["subscriptionTypes"] == ["ANNOUNCEMENT", "SURVEY"]
        assert subscription["isActive"] is True

    async def test_duplicate_email_rejected(self, client):
        await subscribe(client)
        response = await client.post(
            "/api/subscriptions/register",
            json={"email": "pat.lee@example.org", "name": "Someone Else"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Subscription with this email already exists"}

    async def test_unknown_type_rejected(self, client):
        response = await client.post(
            "/api/subscriptions/register",
            json={"email": "a@example.org", "name": "A", "subscriptionTypes": ["BLOG"]},
        )
        assert response.status_code == 400


class TestManagement:
    async def test_admin_list_search_and_active_filter(self, client, admin):
        await subscribe(client, email="pat@example.org", name="Pat Lee")
        await subscribe(client, email="sam@example.org", name="Sam Rivera", isActive=False)

        everyone = await client.get("/api/subscriptions", headers=auth_headers(admin))
        active = await client.get("/api/subscriptions", params={"isActive": "true"}, headers=auth_headers(admin))
        search = await client.get("/api/subscriptions", params={"search": "rivera"}, headers=auth_headers(admin))

        assert [s["name"] for s in everyone.json()["data"]] == ["Pat Lee", "Sam Rivera"]
        assert [s["name"] for s in active.json()["data"]] == ["Pat Lee"]
        assert [s["name"] for s in search.json()["data"]] == ["Sam Rivera"]

    async def test_members_cannot_list(self, client, member):
        response = await client.get("/api/subscriptions", headers=auth_headers(member))
        assert response.status_code == 403

    async def test_lookup_by_email(self, client):
        created = await subscribe(client)

        found = await client.get("/api/subscriptions/by-email", params={"email": "PAT.LEE@example.org"})
        missing = await client.get("/api/subscriptions/by-email", params={"email": "nobody@example.org"})

        assert found.json()["id"] == created["id"]
        assert missing.status_code == 404
        assert missing.json() == {"error": "Subscription not found"}

    async def test_unsubscribe_by_update(self, client):
        created = await subscribe(client)

        response = await client.put(f"/api/subscriptions/{created['id']}", json={"isActive": False})

        assert response.status_code == 200
        assert response.json()["isActive"] is False
        assert response.json()["name"] == "Pat Lee"

    async def test_update_to_taken_email_rejected(self, client):
        await subscribe(client, email="pat@example.org")
        other = await subscribe(client, email="sam@example.org", name="Sam Rivera")

        response = await client.put(f"/api/subscriptions/{other['id']}", json={"email": "PAT@example.org"})

        assert response.status_code == 400
        assert response.json() == {"error": "Email is already in use by another subscription"}

    async def test_admin_get_and_delete(self, client, admin):
        created = await subscribe(client)

        fetched = await client.get(f"/api/subscriptions/{created['id']}", headers=auth_headers(admin))
        deleted = await client.delete(f"/api/subscriptions/{created['id']}", headers=auth_headers(admin))
        again = await client.get(f"/api/subscriptions/{created['id']}", headers=auth_headers(admin))

        assert fetched.json()["email"] == "pat.lee@example.org"
        assert deleted.json() == {"message": "Subscription deleted successfully"}
        assert again.status_code == 404


class TestNotifications:
    async def test_broadcast_announcement_reaches_matching_subscribers(self, client, db, admin, email_service):
        db.add_all([
            EmailSubscription(email="pat@example.org", name="Pat", subscription_types=["ANNOUNCEMENT"]),
            EmailSubscription(email="sam@example.org", name="Sam", subscription_types=["SURVEY"]),
            EmailSubscription(
                email="lee@example.org", name="Lee", subscription_types=["ANNOUNCEMENT"], is_active=False
            ),
        ])
        await db.commit()
        created = await client.post(
            "/api/announcements", json={"title": "Spring Convening", "content": "Join us."}, headers=auth_headers(admin)
        )

        await client.post(f"/api/announcements/{created.json()['id']}/publish", headers=auth_headers(admin))

        assert sorted(email_service.recipients) == sorted([admin.email, "pat@example.org"])
        to_pat = next(m for m in email_service.sent if m.to == "pat@example.org")
        assert "/unsubscribe?email=pat%40example.org" in to_pat.html
        to_admin = next(m for m in email_service.sent if m.to == admin.email)
        assert "/settings" in to_admin.html

    async def test_tagged_announcement_skips_subscribers(self, client, db, admin, member, email_service):
        db.add(EmailSubscription(email="pat@example.org", name="Pat", subscription_types=["ANNOUNCEMENT"]))
        await db.commit()
        created = await client.post(
            "/api/announcements",
            json={"title": "Clinic funding", "content": "Members only.", "tags": ["healthcare"]},
            headers=auth_headers(admin),
        )

        await client.post(f"/api/announcements/{created.json()['id']}/publish", headers=auth_headers(admin))

        assert email_service.recipients == [member.email]

    async def test_subscriber_sharing_member_address_mailed_once(self, client, db, admin, member, email_service):
        db.add(EmailSubscription(email=member.email, name="Same Inbox", subscription_types=["SURVEY"]))
        await db.commit()
        created = await client.post(
            "/api/surveys",
            json={"title": "Quick poll", "questions": [{"id": "q", "type": "text", "text": "Thoughts?"}]},
            headers=auth_headers(admin),
        )

        await client.post(f"/api/surveys/{created.json()['id']}/publish", headers=auth_headers(admin))

        assert sorted(email_service.recipients) == sorted([admin.email, member.email])
