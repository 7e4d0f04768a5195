"""Helpers shared by the alert and survey response endpoints."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coalition.errors import AuthorizationDenied, DuplicateSubmission, NotFound, ValidationFailed
from coalition.models.organization import Organization
from coalition.schemas.question import load_questions
from coalition.services.aggregation import validate_answers

logger = logging.getLogger(__name__)


def resolve_respondent(requester: Organization, organization_id: UUID | None) -> UUID:
    """Organization a response is recorded for.

    Members may only respond for themselves; admins may respond on behalf of
    any organization.
    """
    target = organization_id or requester.id
    if target != requester.id and not requester.is_admin:
        raise AuthorizationDenied("Can only submit responses for your own organization")
    return target


async def ensure_organization_exists(db: AsyncSession, organization_id: UUID) -> None:
    found = (await db.execute(select(Organization.id).where(Organization.id == organization_id))).scalar_one_or_none()
    if not found:
        raise NotFound("Organization")


def check_answers(raw_questions, answers: dict) -> None:
    errors = validate_answers(load_questions(raw_questions), answers)
    if errors:
        raise ValidationFailed("; ".join(errors))


def check_owner(response, requester: Organization) -> None:
    if not requester.is_admin and response.organization_id != requester.id:
        raise AuthorizationDenied()


async def load_response(db: AsyncSession, model, response_id: UUID):
    result = await db.execute(
        select(model)
        .options(selectinload(model.organization))
        .where(model.id == response_id)
        .execution_options(populate_existing=True)
    )
    response = result.scalar_one_or_none()
    if not response:
        raise NotFound("Response")
    return response


async def ensure_not_submitted(db: AsyncSession, model, parent_column, parent_id: UUID, organization_id: UUID, noun: str) -> None:
    existing = await db.execute(
        select(model.id).where(parent_column == parent_id).where(model.organization_id == organization_id)
    )
    if existing.scalar_one_or_none():
        raise DuplicateSubmission(f"Organization has already submitted a response to this {noun}")


async def commit_submission(db: AsyncSession, noun: str) -> None:
    """Commit a new response; the unique constraint catches concurrent duplicates."""
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info("Concurrent duplicate %s response rejected", noun)
        raise DuplicateSubmission(f"Organization has already submitted a response to this {noun}")
