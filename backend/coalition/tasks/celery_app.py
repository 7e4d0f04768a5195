"""Celery application configuration and beat schedule."""

from celery import Celery
from celery.schedules import crontab

from coalition.config import get_settings

settings = get_settings()

celery_app = Celery(
    "coalition",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "coalition.tasks.email_tasks",
        "coalition.tasks.event_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="US/Central",
    task_track_started=True,
    task_time_limit=600,
    task_soft_time_limit=540,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "dispatch-scheduled-emails": {
        "task": "coalition.tasks.email_tasks.dispatch_scheduled_emails",
        "schedule": crontab(minute="*"),
    },
    "send-event-reminders": {
        "task": "coalition.tasks.event_tasks.send_event_reminders",
        "schedule": crontab(minute=0),
    },
}
