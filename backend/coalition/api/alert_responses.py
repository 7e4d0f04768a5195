"""Alert response API endpoints."""

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
from coalition.models.alert import Alert
from coalition.models.base import get_db
from coalition.models.organization import Organization
from coalition.models.responses import AlertResponse
from coalition.schemas.common import Page
from coalition.schemas.response import AlertResponseCreate, AlertResponseRead, ResponseUpdate
from coalition.services.audience import can_view

router = APIRouter(prefix="/alert-responses", tags=["alert-responses"])


def _with_organization():
    return select(AlertResponse).options(selectinload(AlertResponse.organization))


@router.post("", response_model=AlertResponseRead, status_code=201)
async def submit_alert_response(
    payload: AlertResponseCreate,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    """Record an organization's answers to an alert (one per organization)."""
    organization_id = resolve_respondent(requester, payload.organization_id)

    alert = (await db.execute(select(Alert).where(Alert.id == payload.alert_id))).scalar_one_or_none()
    if not alert:
        raise NotFound("Alert")
    if not alert.is_published:
        raise ValidationFailed("Cannot respond to an unpublished alert")
    if not can_view(alert, requester):
        raise AuthorizationDenied()

    await ensure_organization_exists(db, organization_id)
    check_answers(alert.questions, payload.answers)
    await ensure_not_submitted(db, AlertResponse, AlertResponse.alert_id, alert.id, organization_id, "alert")

    response = AlertResponse(alert_id=alert.id, organization_id=organization_id, answers=payload.answers)
    db.add(response)
    await commit_submission(db, "alert")

    return await load_response(db, AlertResponse, response.id)


@router.get("", response_model=Page[AlertResponseRead])
async def list_alert_responses(
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
    alert_id: UUID | None = Query(None, alias="alertId"),
    organization_id: UUID | None = Query(None, alias="organizationId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    query = _with_organization().order_by(AlertResponse.submitted_date.desc())
    if alert_id:
        query = query.where(AlertResponse.alert_id == alert_id)
    if organization_id:
        query = query.where(AlertResponse.organization_id == organization_id)

    responses, pagination = await paginate(db, query, page, limit)
    return Page[AlertResponseRead](
        data=[AlertResponseRead.model_validate(r) for r in responses],
        pagination=pagination,
    )


@router.get("/alert/{alert_id}", response_model=list[AlertResponseRead])
async def list_responses_for_alert(
    alert_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    result = await db.execute(
        _with_organization().where(AlertResponse.alert_id == alert_id).order_by(AlertResponse.submitted_date)
    )
    return result.scalars().all()


@router.get("/organization/{organization_id}", response_model=list[AlertResponseRead])
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
        .where(AlertResponse.organization_id == organization_id)
        .order_by(AlertResponse.submitted_date.desc())
    )
    return result.scalars().all()


@router.get("/{response_id}", response_model=AlertResponseRead)
async def get_alert_response(
    response_id: UUID,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    response = await load_response(db, AlertResponse, response_id)
    check_owner(response, requester)
    return response


@router.put("/{response_id}", response_model=AlertResponseRead)
async def update_alert_response(
    response_id: UUID,
    payload: ResponseUpdate,
    db: AsyncSession = Depends(get_db),
    requester: Organization = Depends(get_current_organization),
):
    """Replace the answers of an existing response."""
    response = await load_response(db, AlertResponse, response_id)
    check_owner(response, requester)

    alert = (await db.execute(select(Alert).where(Alert.id == response.alert_id))).scalar_one()
    check_answers(alert.questions, payload.answers)

    response.answers = payload.answers
    await db.commit()
    return await load_response(db, AlertResponse, response_id)


@router.delete("/{response_id}", status_code=204)
async def delete_alert_response(
    response_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    response = await load_response(db, AlertResponse, response_id)
    await db.delete(response)
    await db.commit()
    return Response(status_code=204)
