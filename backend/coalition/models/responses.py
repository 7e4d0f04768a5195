"""Alert and survey response models.

One response per (item, organization) is enforced by a unique constraint;
the API checks first to return a friendly error, the constraint closes the race.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Uuid, UniqueConstraint, func
from sqlalchemy.orm import relationship

from coalition.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class AlertResponse(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "alert_responses"

    alert_id = Column(Uuid(as_uuid=True), ForeignKey("alerts.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True)
    answers = Column(JSONType, nullable=False, default=dict)
    submitted_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    alert = relationship("Alert", back_populates="responses")
    organization = relationship("Organization", back_populates="alert_responses")

    __table_args__ = (
        UniqueConstraint("alert_id", "organization_id", name="uq_alert_responses_alert_org"),
    )


class SurveyResponse(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "survey_responses"

    survey_id = Column(Uuid(as_uuid=True), ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True)
    answers = Column(JSONType, nullable=False, default=dict)
    submitted_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    survey = relationship("Survey", back_populates="responses")
    organization = relationship("Organization", back_populates="survey_responses")

    __table_args__ = (
        UniqueConstraint("survey_id", "organization_id", name="uq_survey_responses_survey_org"),
    )
