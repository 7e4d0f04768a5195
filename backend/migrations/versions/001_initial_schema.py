"""Initial schema: organizations, content, responses, RSVPs, page content, email history.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _jsonb_list(name: str) -> sa.Column:
    return sa.Column(name, postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb"))


def upgrade() -> None:
    # Organizations
    op.create_table(
        "organizations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("auth_user_id", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, index=True),
        sa.Column("description", sa.Text),
        sa.Column("website", sa.String(500)),
        sa.Column("primary_contact_name", sa.String(255)),
        sa.Column("primary_contact_email", sa.String(255)),
        sa.Column("primary_contact_phone", sa.String(50)),
        sa.Column("region", sa.String(100), index=True),
        sa.Column("organization_size", sa.String(20)),
        _jsonb_list("tags"),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING", index=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="MEMBER"),
        sa.Column("notify_announcements", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("notify_surveys", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("notify_events", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("idx_org_status_role", "organizations", ["status", "role"])

    # Alerts
    op.create_table(
        "alerts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("priority", sa.String(10), nullable=False, server_default="MEDIUM", index=True),
        _jsonb_list("tags"),
        _jsonb_list("questions"),
        _jsonb_list("attachment_urls"),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default=sa.text("false"), index=True),
        sa.Column("published_date", sa.DateTime(timezone=True)),
        sa.Column("notified_at", sa.DateTime(timezone=True)),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True)),
        *_timestamps(),
    )
    op.create_index("idx_alert_published_priority", "alerts", ["is_published", "priority"])

    # Announcements
    op.create_table(
        "announcements",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(280), unique=True, nullable=False, index=True),
        sa.Column("content", sa.Text, nullable=False),
        _jsonb_list("tags"),
        _jsonb_list("attachment_urls"),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default=sa.text("false"), index=True),
        sa.Column("published_date", sa.DateTime(timezone=True), index=True),
        sa.Column("notified_at", sa.DateTime(timezone=True)),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True)),
        *_timestamps(),
    )

    # Events and RSVPs
    op.create_table(
        "events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("end_time", sa.DateTime(timezone=True)),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="America/Chicago"),
        sa.Column("location", sa.String(500)),
        sa.Column("meeting_url", sa.String(500)),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("max_attendees", sa.Integer),
        _jsonb_list("tags"),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT", index=True),
        sa.Column("published_date", sa.DateTime(timezone=True)),
        sa.Column("notified_at", sa.DateTime(timezone=True)),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True)),
        *_timestamps(),
    )

    op.create_table(
        "event_rsvps",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("organizations.id"), index=True),
        sa.Column("attendee_name", sa.String(255), nullable=False),
        sa.Column("attendee_email", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="GOING"),
        sa.Column("reminder_day_sent", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("reminder_hour_sent", sa.Boolean, nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        sa.UniqueConstraint("event_id", "attendee_email", name="uq_event_rsvps_event_email"),
    )

    # Surveys
    op.create_table(
        "surveys",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        _jsonb_list("questions"),
        _jsonb_list("tags"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default=sa.text("false"), index=True),
        sa.Column("due_date", sa.DateTime(timezone=True)),
        sa.Column("published_date", sa.DateTime(timezone=True)),
        sa.Column("notified_at", sa.DateTime(timezone=True)),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True)),
        *_timestamps(),
    )

    # Responses (one per organization per item)
    op.create_table(
        "alert_responses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("alert_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("alerts.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("organizations.id"), nullable=False, index=True),
        sa.Column("answers", postgresql.JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("submitted_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("alert_id", "organization_id", name="uq_alert_responses_alert_org"),
    )

    op.create_table(
        "survey_responses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("survey_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("organizations.id"), nullable=False, index=True),
        sa.Column("answers", postgresql.JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("submitted_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("survey_id", "organization_id", name="uq_survey_responses_survey_org"),
    )

    # Page content
    op.create_table(
        "page_contents",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("page", sa.String(100), nullable=False, index=True),
        sa.Column("section", sa.String(100), nullable=False),
        sa.Column("content_key", sa.String(100), nullable=False),
        sa.Column("content_value", sa.Text, nullable=False, server_default=""),
        sa.Column("content_type", sa.String(20), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("page", "section", "content_key", name="uq_page_contents_page_section_key"),
    )

    # Custom email history
    op.create_table(
        "email_history",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("subject", sa.String(500), nullable=False),
        sa.Column("body", sa.Text, nullable=False),
        _jsonb_list("recipient_emails"),
        sa.Column("recipient_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(20), nullable=False, index=True),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), index=True),
        sa.Column("sent_at", sa.DateTime(timezone=True)),
        sa.Column("sent_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("failed_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True)),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("email_history")
    op.drop_table("page_contents")
    op.drop_table("survey_responses")
    op.drop_table("alert_responses")
    op.drop_table("surveys")
    op.drop_table("event_rsvps")
    op.drop_table("events")
    op.drop_table("announcements")
    op.drop_table("alerts")
    op.drop_table("organizations")
