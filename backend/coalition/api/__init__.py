"""API router aggregation."""

from fastapi import APIRouter

from coalition.api.admin import router as admin_router
from coalition.api.alerts import router as alerts_router
from coalition.api.alert_responses import router as alert_responses_router
from coalition.api.announcements import router as announcements_router
from coalition.api.emails import router as emails_router
from coalition.api.events import router as events_router
from coalition.api.organizations import router as organizations_router
from coalition.api.page_content import router as page_content_router
from coalition.api.subscriptions import router as subscriptions_router
from coalition.api.survey_responses import router as survey_responses_router
from coalition.api.surveys import router as surveys_router
from coalition.api.tags import router as tags_router

router = APIRouter(prefix="/api")

router.include_router(organizations_router)
router.include_router(alerts_router)
router.include_router(alert_responses_router)
router.include_router(announcements_router)
router.include_router(events_router)
router.include_router(surveys_router)
router.include_router(survey_responses_router)
router.include_router(page_content_router)
router.include_router(emails_router)
router.include_router(tags_router)
router.include_router(subscriptions_router)
router.include_router(admin_router)
