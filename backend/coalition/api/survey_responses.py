"""Survey response API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coalition.api.pagination import paginate
from coalition.api.response_common import (
    check_answers,
    check_owner,
    commit_submission,
    ensure_not_submitted,
    ensure_organization_exists,
    load_response,
    resolve_respondent,
)
from coalition.dependencies.auth import get_current_organization, require_admin
from coalition.errors import AuthorizationDenied, NotFound, ValidationFailed
from coalition.models.survey import Survey
from coalition.models.base import get_db
from coalition.models.organization import Organization
from coalition.models.responses import SurveyResponse
from coalition.schemas.common import Page
from coalition.schemas.response import SurveyResponseCreate, SurveyResponseRead, ResponseUpdate
from coalition.services.audience import can_view

router = APIRouter(prefix="/survey-responses", tags=["survey-responses"])


def _with_organization():
    return select(SurveyResponse).options(selectinload(SurveyResponse.organization))


@router.post("", response_model=SurveyResponseRead, status_code=201)
async def submit_survey_response(
    payload: SurveyResponseCreate,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    """Record an organization's answers to a survey (one per organization)."""
    organization_id = resolve_respondent(requester, payload.organization_id)

    survey = (await db.execute(select(Survey).where(Survey.id == payload.survey_id))).scalar_one_or_none()
    if not survey:
        raise NotFound("Survey")
    if not (survey.is_active and survey.is_published):
        raise ValidationFailed("Survey is not available for responses")
    if not can_view(survey, requester):
        raise AuthorizationDenied()

    await ensure_organization_exists(db, organization_id)
    check_answers(survey.questions, payload.answers)
    await ensure_not_submitted(db, SurveyResponse, SurveyResponse.survey_id, survey.id, organization_id, "survey")

    response = SurveyResponse(survey_id=survey.id, organization_id=organization_id, answers=payload.answers)
    db.add(response)
    await commit_submission(db, "survey")

    return await load_response(db, SurveyResponse, response.id)


@router.get("", response_model=Page[SurveyResponseRead])
async def list_survey_responses(
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
    survey_id: UUID | None = Query(None, alias="surveyId"),
    organization_id: UUID | None = Query(None, alias="organizationId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    query = _with_organization().order_by(SurveyResponse.submitted_date.desc())
    if survey_id:
        query = query.where(SurveyResponse.survey_id == survey_id)
    if organization_id:
        query = query.where(SurveyResponse.organization_id == organization_id)

    responses, pagination = await paginate(db, query, page, limit)
    return Page[SurveyResponseRead](
        data=[SurveyResponseRead.model_validate(r) for r in responses],
        pagination=pagination,
    )


@router.get("/survey/{survey_id}", response_model=list[SurveyResponseRead])
async def list_responses_for_survey(
    survey_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    result = await db.execute(
        _with_organization().where(SurveyResponse.survey_id == survey_id).order_by(SurveyResponse.submitted_date)
    )
    return result.scalars().all()


@router.get("/organization/{organization_id}", response_model=list[SurveyResponseRead])
async def list_responses_for_organization(
    organization_id: UUID,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    """Responses submitted by one organization; members may only see their own."""
    if not requester.is_admin and organization_id != requester.id:
        raise AuthorizationDenied()
    result = await db.execute(
        _with_organization()
        .where(SurveyResponse.organization_id == organization_id)
        .order_by(SurveyResponse.submitted_date.desc())
    )
    return result.scalars().all()


@router.get("/{response_id}", response_model=SurveyResponseRead)
async def get_survey_response(
    response_id: UUID,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    response = await load_response(db, SurveyResponse, response_id)
    check_owner(response, requester)
    return response


@router.put("/{response_id}", response_model=SurveyResponseRead)
async def update_survey_response(
    response_id: UUID,
    payload: ResponseUpdate,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    """Replace the answers of an existing response."""
    response = await load_response(db, SurveyResponse, response_id)
    check_owner(response, requester)

    survey = (await db.execute(select(Survey).where(Survey.id == response.survey_id))).scalar_one()
    check_answers(survey.questions, payload.answers)

    response.answers = payload.answers
    await db.commit()
    return await load_response(db, SurveyResponse, response_id)


@router.delete("/{response_id}", status_code=204)
async def delete_survey_response(
    response_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    response = await load_response(db, SurveyResponse, response_id)
    await db.delete(response)
    await db.commit()
    return Response(status_code=204)
