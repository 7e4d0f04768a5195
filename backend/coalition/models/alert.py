"""Alert model: priority notices with an optional response questionnaire."""

from sqlalchemy import Boolean, Column, DateTime, String, Text, Uuid, Index
from sqlalchemy.orm import relationship

from coalition.models.base import Base, JSONType, TimestampMixin, UUIDMixin

ALERT_PRIORITIES = ("URGENT", "MEDIUM", "LOW")


class Alert(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "alerts"

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    priority = Column(String(10), default="MEDIUM", nullable=False, index=True)

    # Targeting and questionnaire
    tags = Column(JSONType, nullable=False, default=list)
    questions = Column(JSONType, nullable=False, default=list)
    attachment_urls = Column(JSONType, nullable=False, default=list)

    # Publication lifecycle
    is_published = Column(Boolean, default=False, nullable=False, index=True)
    published_date = Column(DateTime(timezone=True))
    notified_at = Column(DateTime(timezone=True))
    created_by_id = Column(Uuid(as_uuid=True))

    responses = relationship("AlertResponse", back_populates="alert", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_alert_published_priority", "is_published", "priority"),
    )
