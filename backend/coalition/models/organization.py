"""Organization model: member organizations and coalition administrators."""

from sqlalchemy import Boolean, Column, String, Text, Index
from sqlalchemy.orm import relationship

from coalition.models.base import Base, JSONType, TimestampMixin, UUIDMixin

ORGANIZATION_STATUSES = ("PENDING", "ACTIVE", "INACTIVE", "REJECTED")
ORGANIZATION_ROLES = ("ADMIN", "MEMBER")
ORGANIZATION_SIZES = ("SMALL", "MEDIUM", "LARGE")


class Organization(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "organizations"

    # Identity provider subject
    auth_user_id = Column(String(255), unique=True, nullable=False, index=True)

    # Identity
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    website = Column(String(500))

    # Primary contact
    primary_contact_name = Column(String(255))
    primary_contact_email = Column(String(255))
    primary_contact_phone = Column(String(50))

    # Targeting attributes
    region = Column(String(100), index=True)
    organization_size = Column(String(20))  # SMALL, MEDIUM, LARGE
    tags = Column(JSONType, nullable=False, default=list)

    # Membership
    status = Column(String(20), default="PENDING", nullable=False, index=True)
    role = Column(String(20), default="MEMBER", nullable=False)

    # Notification preferences
    notify_announcements = Column(Boolean, default=True, nullable=False)
    notify_surveys = Column(Boolean, default=True, nullable=False)
    notify_events = Column(Boolean, default=True, nullable=False)

    # Relationships
    alert_responses = relationship("AlertResponse", back_populates="organization")
    survey_responses = relationship("SurveyResponse", back_populates="organization")
    rsvps = relationship("EventRsvp", back_populates="organization")

    __table_args__ = (
        Index("idx_org_status_role", "status", "role"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    @property
    def contact_email(self) -> str | None:
        """Address notifications go to."""
        return self.primary_contact_email or self.email
