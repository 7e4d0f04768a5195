"""Survey API endpoints."""

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coalition.api.pagination import paginate, paginate_list
from coalition.dependencies.auth import get_current_organization, require_admin
from coalition.errors import AuthorizationDenied, NotFound, ValidationFailed
from coalition.models.base import get_db
from coalition.models.organization import Organization
from coalition.models.responses import SurveyResponse
from coalition.models.survey import Survey
from coalition.schemas.common import Page
from coalition.schemas.question import dump_questions, load_questions
from coalition.schemas.response import ResponseSummary
from coalition.schemas.survey import SurveyCreate, SurveyRead, SurveyUpdate
from coalition.services.aggregation import ResponseRecord, aggregate
from coalition.services.audience import can_view, filter_visible
from coalition.services.cache import CacheKeys, CacheService, get_cache
from coalition.services.email_service import EmailService, get_email_service
from coalition.services.notifications import notify_published

router = APIRouter(prefix="/surveys", tags=["surveys"])

_NULLABLE = ("description", "due_date")


async def _get_survey(db: AsyncSession, survey_id: UUID) -> Survey:
    survey = (await db.execute(select(Survey).where(Survey.id == survey_id))).scalar_one_or_none()
    if not survey:
        raise NotFound("Survey")
    return survey


@router.get("", response_model=Page[SurveyRead])
async def list_surveys(
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
    is_active: bool | None = Query(None, alias="isActive"),
    is_published: bool | None = Query(None, alias="isPublished", description="Admin-only filter"),
    search: str | None = Query(None, min_length=2, description="Search by title"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List surveys, newest first."""
    query = select(Survey).order_by(Survey.created_at.desc())
    if is_active is not None:
        query = query.where(Survey.is_active == is_active)
    if search:
        query = query.where(Survey.title.ilike(f"%{search}%"))

    if requester.is_admin:
        if is_published is not None:
            query = query.where(Survey.is_published == is_published)
        surveys, pagination = await paginate(db, query, page, limit)
    else:
        query = query.where(Survey.is_published == True)
        visible = filter_visible((await db.execute(query)).scalars().all(), requester)
        surveys, pagination = paginate_list(visible, page, limit)

    return Page[SurveyRead](
        data=[SurveyRead.model_validate(s) for s in surveys],
        pagination=pagination,
    )


@router.get("/{survey_id}", response_model=SurveyRead)
async def get_survey(
    survey_id: UUID,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    survey = await _get_survey(db, survey_id)
    if not can_view(survey, requester):
        raise AuthorizationDenied()
    return survey


@router.post("", response_model=SurveyRead, status_code=201)
async def create_survey(
    payload: SurveyCreate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    survey = Survey(
        title=payload.title,
        description=payload.description,
        questions=dump_questions(payload.questions),
        tags=payload.tags,
        is_active=payload.is_active,
        is_published=payload.is_published,
        due_date=payload.due_date,
        published_date=datetime.now(timezone.utc) if payload.is_published else None,
        created_by_id=admin.id,
    )
    db.add(survey)
    await db.commit()
    await db.refresh(survey)
    await cache.delete(CacheKeys.tags())

    if survey.is_published:
        await notify_published(db, survey, "survey", email_service)
    return survey


@router.put("/{survey_id}", response_model=SurveyRead)
async def update_survey(
    survey_id: UUID,
    payload: SurveyUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    survey = await _get_survey(db, survey_id)
    was_published = survey.is_published

    changes = payload.model_dump(exclude_unset=True)
    if "questions" in changes:
        changes["questions"] = dump_questions(payload.questions)
    for field, value in changes.items():
        if value is None and field not in _NULLABLE:
            continue
        setattr(survey, field, value)

    if survey.is_published and not was_published:
        survey.published_date = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(survey)
    if "tags" in changes:
        await cache.delete(CacheKeys.tags())

    if survey.is_published and not was_published:
        await notify_published(db, survey, "survey", email_service)
    return survey


@router.delete("/{survey_id}", status_code=204)
async def delete_survey(
    survey_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    admin: Organization = Depends(require_admin),
):
    """Delete a survey that has not collected any responses."""
    survey = await _get_survey(db, survey_id)
    response_count = (
        await db.execute(select(func.count(SurveyResponse.id)).where(SurveyResponse.survey_id == survey_id))
    ).scalar() or 0
    if response_count:
        raise ValidationFailed(
            f"Survey has {response_count} response(s) and cannot be deleted; deactivate it instead"
        )
    await db.delete(survey)
    await db.commit()
    await cache.delete(CacheKeys.tags())
    return Response(status_code=204)


@router.post("/{survey_id}/publish", response_model=SurveyRead)
async def publish_survey(
    survey_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    survey = await _get_survey(db, survey_id)
    if survey.is_published:
        raise ValidationFailed("Survey is already published")

    survey.is_published = True
    survey.published_date = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(survey)

    await notify_published(db, survey, "survey", email_service)
    return survey


@router.get("/{survey_id}/summary", response_model=ResponseSummary)
async def get_survey_summary(
    survey_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    survey = await _get_survey(db, survey_id)
    result = await db.execute(
        select(SurveyResponse)
        .options(selectinload(SurveyResponse.organization))
        .where(SurveyResponse.survey_id == survey_id)
        .order_by(SurveyResponse.submitted_date)
    )
    records = [
        ResponseRecord(organization_name=r.organization.name, answers=r.answers or {})
        for r in result.scalars().all()
    ]
    return ResponseSummary.model_validate(aggregate(load_questions(survey.questions), records).as_dict())
