"""Custom email history: sent and scheduled bulk emails."""

from sqlalchemy import Column, DateTime, Integer, String, Text, Uuid

from coalition.models.base import Base, JSONType, TimestampMixin, UUIDMixin

EMAIL_STATUSES = ("SCHEDULED", "SENT", "FAILED")


class EmailHistory(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "email_history"

    subject = Column(String(500), nullable=False)
    body = Column(Text, nullable=False)
    recipient_emails = Column(JSONType, nullable=False, default=list)
    recipient_count = Column(Integer, default=0, nullable=False)

    status = Column(String(20), nullable=False, index=True)  # SCHEDULED, SENT, FAILED
    scheduled_for = Column(DateTime(timezone=True), index=True)
    sent_at = Column(DateTime(timezone=True))
    sent_count = Column(Integer, default=0, nullable=False)
    failed_count = Column(Integer, default=0, nullable=False)
    created_by_id = Column(Uuid(as_uuid=True))
