"""API tests for the admin dashboard statistics."""

from datetime import datetime, timedelta, timezone

from conftest import auth_headers, make_organization
from coalition.api.admin import monthly_growth


def test_monthly_growth_is_cumulative_over_trailing_months():
    now = datetime(2026, 3, 15, tzinfo=timezone.utc)
    created = [
        datetime(2025, 9, 30, tzinfo=timezone.utc),
        datetime(2025, 11, 2),
        datetime(2026, 1, 20, tzinfo=timezone.utc),
    ]

    points = monthly_growth(created, now)

    assert [p.month for p in points] == ["Oct 25", "Nov 25", "Dec 25", "Jan 26", "Feb 26", "Mar 26"]
    assert [p.count for p in points] == [0, 1, 1, 2, 2, 2]


async def test_members_cannot_view_stats(client, member):
    response = await client.get("/api/admin/stats", headers=auth_headers(member))
    assert response.status_code == 403


async def test_dashboard_stats(client, db, admin, member):
    await make_organization(db, "Waiting Org", status="PENDING")
    await client.post("/api/subscriptions/register", json={"email": "pat@example.org", "name": "Pat"})
    survey = await client.post(
        "/api/surveys",
        json={
            "title": "Clinic capacity",
            "questions": [{"id": "q", "type": "text", "text": "How many beds?"}],
            "tags": ["healthcare"],
            "isPublished": True,
            "dueDate": (datetime.now(timezone.utc) + timedelta(days=3)).isoformat(),
        },
        headers=auth_headers(admin),
    )
    survey_id = survey.json()["id"]
    answered = await client.post(
        "/api/survey-responses",
        json={"surveyId": survey_id, "answers": {"q": "Twelve"}},
        headers=auth_headers(member),
    )
    assert answered.status_code == 201, answered.text

    response = await client.get("/api/admin/stats", headers=auth_headers(admin))

    body = response.json()
    assert response.status_code == 200
    assert body["stats"]["totalOrganizations"] == 3
    assert body["stats"]["pendingOrganizations"] == 1
    assert body["stats"]["approvedOrganizations"] == 2
    assert body["stats"]["totalSurveys"] == 1
    assert body["stats"]["totalEmailSubscribers"] == 1
    assert body["actionItems"]["pendingOrganizations"] == 1
    assert [d["id"] for d in body["actionItems"]["upcomingSurveyDeadlines"]] == [survey_id]
    recent = body["actionItems"]["recentSurveyResponses"]
    assert recent[0]["organizationName"] == "Healthy Aging Nashville"
    assert recent[0]["surveyTitle"] == "Clinic capacity"
    assert body["surveyResponseRates"] == [
        {"id": survey_id, "title": "Clinic capacity", "totalSent": 1, "totalResponded": 1, "responseRate": 100}
    ]
    assert body["growthData"]["organizations"][-1]["count"] == 3
    assert body["growthData"]["subscriptions"][-1]["count"] == 1
    assert {"organization", "survey"} <= {item["type"] for item in body["recentActivity"]}
