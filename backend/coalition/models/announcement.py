"""Announcement model."""

from sqlalchemy import Boolean, Column, DateTime, String, Text, Uuid

from coalition.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class Announcement(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "announcements"

    title = Column(String(255), nullable=False)
    slug = Column(String(280), unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False)

    tags = Column(JSONType, nullable=False, default=list)
    attachment_urls = Column(JSONType, nullable=False, default=list)

    is_published = Column(Boolean, default=False, nullable=False, index=True)
    published_date = Column(DateTime(timezone=True), index=True)
    notified_at = Column(DateTime(timezone=True))
    created_by_id = Column(Uuid(as_uuid=True))
