"""Event and RSVP models."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship

from coalition.models.base import Base, JSONType, TimestampMixin, UUIDMixin

EVENT_STATUSES = ("DRAFT", "PUBLISHED", "CANCELLED")
RSVP_STATUSES = ("GOING", "NOT_GOING")


class Event(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "events"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True))
    timezone = Column(String(64), default="America/Chicago", nullable=False)
    location = Column(String(500))
    meeting_url = Column(String(500))

    is_public = Column(Boolean, default=False, nullable=False)
    max_attendees = Column(Integer)
    tags = Column(JSONType, nullable=False, default=list)

    status = Column(String(20), default="DRAFT", nullable=False, index=True)  # DRAFT, PUBLISHED, CANCELLED
    published_date = Column(DateTime(timezone=True))
    notified_at = Column(DateTime(timezone=True))
    created_by_id = Column(Uuid(as_uuid=True))

    rsvps = relationship("EventRsvp", back_populates="event", cascade="all, delete-orphan")

    @property
    def is_published(self) -> bool:
        return self.status == "PUBLISHED"


class EventRsvp(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "event_rsvps"

    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), index=True)

    attendee_name = Column(String(255), nullable=False)
    attendee_email = Column(String(255), nullable=False)
    status = Column(String(20), default="GOING", nullable=False)

    # Reminder bookkeeping
    reminder_day_sent = Column(Boolean, default=False, nullable=False)
    reminder_hour_sent = Column(Boolean, default=False, nullable=False)

    event = relationship("Event", back_populates="rsvps")
    organization = relationship("Organization", back_populates="rsvps")

    __table_args__ = (
        UniqueConstraint("event_id", "attendee_email", name="uq_event_rsvps_event_email"),
    )
