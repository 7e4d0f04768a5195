"""Editable page content blocks for the public site."""

from sqlalchemy import Column, String, Text, UniqueConstraint

from coalition.models.base import Base, TimestampMixin, UUIDMixin

CONTENT_TYPES = ("text", "richtext", "image")


class PageContent(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "page_contents"

    page = Column(String(100), nullable=False, index=True)
    section = Column(String(100), nullable=False)
    content_key = Column(String(100), nullable=False)
    content_value = Column(Text, nullable=False, default="")
    content_type = Column(String(20), nullable=False)  # text, richtext, image

    __table_args__ = (
        UniqueConstraint("page", "section", "content_key", name="uq_page_contents_page_section_key"),
    )
