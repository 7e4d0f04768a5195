"""Schemas for alert/survey responses and their aggregated summaries."""

from datetime import datetime
from typing import Any
from uuid import UUID

from coalition.schemas.common import CamelModel
from coalition.schemas.organization import OrganizationSummary


class AlertResponseCreate(CamelModel):
    alert_id: UUID
    organization_id: UUID | None = None
    answers: dict[str, Any]


class SurveyResponseCreate(CamelModel):
    survey_id: UUID
    organization_id: UUID | None = None
    answers: dict[str, Any]


class ResponseUpdate(CamelModel):
    answers: dict[str, Any]


class AlertResponseRead(CamelModel):
    id: UUID
    alert_id: UUID
    organization_id: UUID
    answers: dict[str, Any]
    submitted_date: datetime
    organization: OrganizationSummary | None = None


class SurveyResponseRead(CamelModel):
    id: UUID
    survey_id: UUID
    organization_id: UUID
    answers: dict[str, Any]
    submitted_date: datetime
    organization: OrganizationSummary | None = None


class OptionStat(CamelModel):
    count: int
    organizations: list[str]


class TextAnswer(CamelModel):
    text: str
    org_name: str


class QuestionSummary(CamelModel):
    question_id: str
    type: str
    text: str = ""
    answered: int
    stats: dict[str, OptionStat] = {}
    text_responses: list[TextAnswer] = []
    average_rating: float | None = None


class ResponseSummary(CamelModel):
    total_responses: int
    questions: list[QuestionSummary]
