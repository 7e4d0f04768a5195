"""Survey model."""

from sqlalchemy import Boolean, Column, DateTime, String, Text, Uuid
from sqlalchemy.orm import relationship

from coalition.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class Survey(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "surveys"

    title = Column(String(255), nullable=False)
    description = Column(Text)
    questions = Column(JSONType, nullable=False, default=list)
    tags = Column(JSONType, nullable=False, default=list)

    is_active = Column(Boolean, default=True, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False, index=True)
    due_date = Column(DateTime(timezone=True))
    published_date = Column(DateTime(timezone=True))
    notified_at = Column(DateTime(timezone=True))
    created_by_id = Column(Uuid(as_uuid=True))

    responses = relationship("SurveyResponse", back_populates="survey", cascade="all, delete-orphan")
