"""Admin dashboard statistics."""

from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coalition.dependencies.auth import require_admin
from coalition.models.alert import Alert
from coalition.models.announcement import Announcement
from coalition.models.base import get_db
from coalition.models.email_subscription import EmailSubscription
from coalition.models.event import Event
from coalition.models.organization import Organization
from coalition.models.responses import SurveyResponse
from coalition.models.survey import Survey
from coalition.schemas.admin import (
    ActionItems,
    ActivityItem,
    DashboardCounts,
    DashboardStats,
    GrowthData,
    GrowthPoint,
    RecentSurveyResponse,
    SurveyDeadline,
    SurveyResponseRate,
)
from coalition.services.audience import compute_audience

router = APIRouter(prefix="/admin", tags=["admin"])

GROWTH_MONTHS = 6
RECENT_WINDOW = timedelta(days=7)


def _utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)


def month_keys(now: datetime, months: int = GROWTH_MONTHS) -> list[tuple[int, int]]:
    """(year, month) pairs for the trailing ``months`` calendar months, oldest first."""
    keys = []
    year, month = now.year, now.month
    for _ in range(months):
        keys.append((year, month))
        year, month = (year, month - 1) if month > 1 else (year - 1, 12)
    return keys[::-1]


def monthly_growth(created: Iterable[datetime], now: datetime, months: int = GROWTH_MONTHS) -> list[GrowthPoint]:
    """Running total of records created in each of the trailing months."""
    keys = month_keys(now, months)
    counts = dict.fromkeys(keys, 0)
    for value in created:
        key = (_utc(value).year, _utc(value).month)
        if key in counts:
            counts[key] += 1

    points, running = [], 0
    for year, month in keys:
        running += counts[(year, month)]
        points.append(GrowthPoint(month=date(year, month, 1).strftime("%b %y"), count=running))
    return points


async def _count(db: AsyncSession, model, *criteria) -> int:
    query = select(func.count(model.id))
    for criterion in criteria:
        query = query.where(criterion)
    return (await db.execute(query)).scalar() or 0


async def _recent(db: AsyncSession, model, limit: int = 5) -> list:
    result = await db.execute(select(model).order_by(model.created_at.desc()).limit(limit))
    return list(result.scalars().all())


async def _recent_activity(db: AsyncSession) -> list[ActivityItem]:
    organizations = await _recent(db, Organization)
    items = [
        ActivityItem(
            id=o.id,
            type="organization",
            title=o.name,
            description="New registration (pending)" if o.status == "PENDING" else "Organization registered",
            created_at=o.created_at,
        )
        for o in organizations
    ]
    for model, kind in ((Announcement, "announcement"), (Survey, "survey"), (Alert, "alert"), (Event, "event")):
        rows = await _recent(db, model)
        items.extend(
            ActivityItem(
                id=row.id,
                type=kind,
                title=row.title,
                description=f"{kind.title()} created",
                created_at=row.created_at,
            )
            for row in rows
        )
    items.sort(key=lambda item: _utc(item.created_at), reverse=True)
    return items[:10]


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    admin: Organization = Depends(require_admin),
):
    """Counts, recent activity, open action items and growth for the admin dashboard."""
    now = datetime.now(timezone.utc)

    counts = DashboardCounts(
        total_organizations=await _count(db, Organization),
        pending_organizations=await _count(db, Organization, Organization.status == "PENDING"),
        approved_organizations=await _count(db, Organization, Organization.status == "ACTIVE"),
        total_announcements=await _count(db, Announcement),
        total_alerts=await _count(db, Alert),
        total_surveys=await _count(db, Survey),
        active_surveys=await _count(db, Survey, Survey.is_active == True),
        total_events=await _count(db, Event),
        upcoming_events=await _count(db, Event, Event.status == "PUBLISHED", Event.start_time >= now),
        total_email_subscribers=await _count(db, EmailSubscription),
    )

    # Surveys closing within the next week
    deadlines = await db.execute(
        select(Survey)
        .where(Survey.is_active == True)
        .where(Survey.due_date >= now)
        .where(Survey.due_date <= now + RECENT_WINDOW)
        .order_by(Survey.due_date)
        .limit(5)
    )
    responses = await db.execute(
        select(SurveyResponse)
        .options(selectinload(SurveyResponse.survey), selectinload(SurveyResponse.organization))
        .where(SurveyResponse.submitted_date >= now - RECENT_WINDOW)
        .order_by(SurveyResponse.submitted_date.desc())
        .limit(10)
    )
    action_items = ActionItems(
        pending_organizations=counts.pending_organizations,
        upcoming_survey_deadlines=[
            SurveyDeadline(id=s.id, title=s.title, end_date=s.due_date) for s in deadlines.scalars().all()
        ],
        recent_survey_responses=[
            RecentSurveyResponse(
                id=r.id,
                survey_id=r.survey_id,
                survey_title=r.survey.title,
                organization_name=r.organization.name,
                submitted_date=r.submitted_date,
            )
            for r in responses.scalars().all()
        ],
    )

    # Growth over the trailing months
    first_year, first_month = month_keys(now)[0]
    window_start = datetime(first_year, first_month, 1, tzinfo=timezone.utc)
    org_dates = await db.execute(select(Organization.created_at).where(Organization.created_at >= window_start))
    sub_dates = await db.execute(
        select(EmailSubscription.created_at).where(EmailSubscription.created_at >= window_start)
    )
    growth = GrowthData(
        organizations=monthly_growth(org_dates.scalars().all(), now),
        subscriptions=monthly_growth(sub_dates.scalars().all(), now),
    )

    # Response rate against each survey's own audience of active organizations
    active_orgs = (
        await db.execute(select(Organization).where(Organization.status == "ACTIVE"))
    ).scalars().all()
    response_counts = dict(
        (await db.execute(
            select(SurveyResponse.survey_id, func.count(SurveyResponse.id)).group_by(SurveyResponse.survey_id)
        )).all()
    )
    published = (
        await db.execute(select(Survey).where(Survey.is_published == True).order_by(Survey.title))
    ).scalars().all()
    rates = []
    for survey in published:
        sent = len(compute_audience(survey.tags, active_orgs))
        responded = response_counts.get(survey.id, 0)
        rates.append(SurveyResponseRate(
            id=survey.id,
            title=survey.title,
            total_sent=sent,
            total_responded=responded,
            response_rate=round(responded / sent * 100) if sent else 0,
        ))

    return DashboardStats(
        stats=counts,
        recent_activity=await _recent_activity(db),
        action_items=action_items,
        growth_data=growth,
        survey_response_rates=rates,
    )
