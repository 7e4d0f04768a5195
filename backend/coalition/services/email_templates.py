"""Jinja2 email templates for content notifications."""

from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

from coalition.config import get_settings
from coalition.models.email_subscription import EmailSubscription
from coalition.services.email_service import EmailMessage, html_to_text

settings = get_settings()

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"

PRIORITY_LABELS = {"URGENT": "[URGENT] ", "MEDIUM": "[IMPORTANT] "}


def _nl2br(value: str | None) -> Markup:
    if not value:
        return Markup("")
    return Markup("<br>").join(escape(value).split("\n"))


_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["nl2br"] = _nl2br


def format_event_time(value: datetime, tz_name: str | None) -> str:
    """Human-readable start time in the event's own timezone."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    try:
        value = value.astimezone(ZoneInfo(tz_name or "UTC"))
    except ZoneInfoNotFoundError:
        value = value.astimezone(timezone.utc)
    return value.strftime("%A, %B %d, %Y at %I:%M %p %Z")


def render(template_name: str, **context) -> str:
    context.setdefault("frontend_url", settings.frontend_url)
    context.setdefault("organization_display_name", settings.organization_display_name)
    context.setdefault("preferences_url", f"{settings.frontend_url}/settings")
    return _env.get_template(template_name).render(**context)


def _message(to: str, subject: str, html: str) -> EmailMessage:
    return EmailMessage(to=to, subject=subject, html=html, text=html_to_text(html))


def _recipient_context(recipient) -> dict:
    context = {"recipient_name": recipient.primary_contact_name or recipient.name}
    if isinstance(recipient, EmailSubscription):
        context["preferences_url"] = f"{settings.frontend_url}/unsubscribe?email={quote(recipient.email)}"
    return context


def alert_message(alert, recipient) -> EmailMessage:
    label = PRIORITY_LABELS.get(alert.priority, "")
    html = render(
        "alert.html",
        alert=alert,
        priority_label=label,
        **_recipient_context(recipient),
    )
    return _message(recipient.contact_email, f"{label}Alert: {alert.title}", html)


def announcement_message(announcement, recipient) -> EmailMessage:
    html = render(
        "announcement.html",
        announcement=announcement,
        **_recipient_context(recipient),
    )
    return _message(recipient.contact_email, f"New Announcement: {announcement.title}", html)


def survey_message(survey, recipient) -> EmailMessage:
    html = render(
        "survey.html",
        survey=survey,
        due_date=survey.due_date.strftime("%B %d, %Y") if survey.due_date else None,
        **_recipient_context(recipient),
    )
    return _message(recipient.contact_email, f"New Survey: {survey.title}", html)


def event_message(event, recipient) -> EmailMessage:
    html = render(
        "event.html",
        event=event,
        starts_at=format_event_time(event.start_time, event.timezone),
        **_recipient_context(recipient),
    )
    return _message(recipient.contact_email, f"New Event: {event.title}", html)


def event_reminder_message(event, rsvp, time_frame: str) -> EmailMessage:
    html = render(
        "event_reminder.html",
        event=event,
        time_frame=time_frame,
        starts_at=format_event_time(event.start_time, event.timezone),
        recipient_name=rsvp.attendee_name,
    )
    return _message(rsvp.attendee_email, f"Reminder: {event.title} starts {time_frame}", html)
