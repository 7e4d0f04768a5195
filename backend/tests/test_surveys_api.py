"""API tests for surveys and survey responses."""

from conftest import auth_headers, make_organization

QUESTIONS = [
    {"id": "needs", "type": "checkbox", "text": "Top needs", "options": ["housing", "food", "transport"]},
    {"id": "score", "type": "rating", "text": "Coalition value", "minValue": 1, "maxValue": 5, "required": True},
    {"id": "notes", "type": "text", "text": "Anything else?"},
]


async def create_survey(client, admin, **fields):
    payload = {"title": "Annual needs survey", "questions": QUESTIONS, **fields}
    response = await client.post("/api/surveys", json=payload, headers=auth_headers(admin))
    assert response.status_code == 201, response.text
    return response.json()


async def respond(client, organization, survey_id, answers):
    return await client.post(
        "/api/survey-responses",
        json={"surveyId": survey_id, "answers": answers},
        headers=auth_headers(organization),
    )


async def test_publish_notifies_opted_in_organizations(client, db, admin, email_service):
    org = await make_organization(db, "Food Bank")
    await make_organization(db, "Quiet Org", notify_surveys=False)
    survey = await create_survey(client, admin)

    response = await client.post(f"/api/surveys/{survey['id']}/publish", headers=auth_headers(admin))

    assert response.status_code == 200
    assert org.email in email_service.recipients
    assert "quiet-org@example.org" not in email_service.recipients
    assert all(m.subject == "New Survey: Annual needs survey" for m in email_service.sent)


async def test_publish_twice_rejected(client, admin):
    survey = await create_survey(client, admin, isPublished=True)
    response = await client.post(f"/api/surveys/{survey['id']}/publish", headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json() == {"error": "Survey is already published"}


async def test_member_only_sees_published_surveys(client, admin, member):
    await create_survey(client, admin, title="Draft survey")
    await create_survey(client, admin, title="Live survey", isPublished=True)

    response = await client.get("/api/surveys", headers=auth_headers(member))

    assert [s["title"] for s in response.json()["data"]] == ["Live survey"]


async def test_inactive_survey_rejects_responses(client, admin, member):
    survey = await create_survey(client, admin, isPublished=True, isActive=False)
    response = await respond(client, member, survey["id"], {"score": 3})
    assert response.status_code == 400
    assert response.json() == {"error": "Survey is not available for responses"}


async def test_required_question_enforced(client, admin, member):
    survey = await create_survey(client, admin, isPublished=True)
    response = await respond(client, member, survey["id"], {"notes": "hi"})
    assert response.status_code == 400
    assert response.json() == {"error": "Question 'score' is required"}


async def test_repeated_checkbox_option_rejected(client, admin, member):
    survey = await create_survey(client, admin, isPublished=True)
    response = await respond(client, member, survey["id"], {"score": 4, "needs": ["food", "food"]})
    assert response.status_code == 400
    assert response.json() == {"error": "Question 'needs' lists an option more than once"}


async def test_duplicate_response_rejected(client, admin, member):
    survey = await create_survey(client, admin, isPublished=True)
    first = await respond(client, member, survey["id"], {"score": 4})
    second = await respond(client, member, survey["id"], {"score": 1})

    assert first.status_code == 201
    assert first.json()["organization"]["name"] == member.name
    assert second.status_code == 400
    assert second.json() == {"error": "Organization has already submitted a response to this survey"}

    stored = await client.get(f"/api/survey-responses/{first.json()['id']}", headers=auth_headers(member))
    assert stored.json()["answers"] == {"score": 4}


async def test_summary_tabulates_each_question_type(client, db, admin):
    one = await make_organization(db, "Org One")
    two = await make_organization(db, "Org Two")
    survey = await create_survey(client, admin, isPublished=True)
    await respond(client, one, survey["id"], {"needs": ["housing", "food"], "score": 5, "notes": "More funding"})
    await respond(client, two, survey["id"], {"needs": ["food"], "score": 3})

    summary = (await client.get(f"/api/surveys/{survey['id']}/summary", headers=auth_headers(admin))).json()

    needs, score, notes = summary["questions"]
    assert summary["totalResponses"] == 2
    assert needs["stats"]["food"]["count"] == 2
    assert needs["stats"]["transport"]["count"] == 0
    assert score["averageRating"] == 4.0
    assert notes["textResponses"] == [{"text": "More funding", "orgName": "Org One"}]


async def test_survey_with_responses_cannot_be_deleted(client, admin, member):
    survey = await create_survey(client, admin, isPublished=True)
    await respond(client, member, survey["id"], {"score": 2})

    response = await client.delete(f"/api/surveys/{survey['id']}", headers=auth_headers(admin))

    assert response.status_code == 400
    assert "1 response(s)" in response.json()["error"]


async def test_unused_survey_can_be_deleted(client, admin):
    survey = await create_survey(client, admin)
    response = await client.delete(f"/api/surveys/{survey['id']}", headers=auth_headers(admin))
    assert response.status_code == 204
    missing = await client.get(f"/api/surveys/{survey['id']}", headers=auth_headers(admin))
    assert missing.status_code == 404
