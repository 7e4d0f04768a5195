"""Pydantic schemas for the admin dashboard."""

from datetime import datetime
from uuid import UUID

from coalition.schemas.common import CamelModel


class DashboardCounts(CamelModel):
    total_organizations: int
    pending_organizations: int
    approved_organizations: int
    total_announcements: int
    total_alerts: int
    total_surveys: int
    active_surveys: int
    total_events: int
    upcoming_events: int
    total_email_subscribers: int


class ActivityItem(CamelModel):
    id: UUID
    type: str
    title: str
    description: str
    created_at: datetime


class SurveyDeadline(CamelModel):
    id: UUID
    title: str
    end_date: datetime


class RecentSurveyResponse(CamelModel):
    id: UUID
    survey_id: UUID
    survey_title: str
    organization_name: str
    submitted_date: datetime


class ActionItems(CamelModel):
    pending_organizations: int
    upcoming_survey_deadlines: list[SurveyDeadline] = []
    recent_survey_responses: list[RecentSurveyResponse] = []


class GrowthPoint(CamelModel):
    month: str
    count: int


class GrowthData(CamelModel):
    organizations: list[GrowthPoint] = []
    subscriptions: list[GrowthPoint] = []


class SurveyResponseRate(CamelModel):
    id: UUID
    title: str
    total_sent: int
    total_responded: int
    response_rate: int


class DashboardStats(CamelModel):
    stats: DashboardCounts
    recent_activity: list[ActivityItem] = []
    action_items: ActionItems
    growth_data: GrowthData
    survey_response_rates: list[SurveyResponseRate] = []
