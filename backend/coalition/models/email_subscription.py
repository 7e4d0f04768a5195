"""Individual email subscribers: people outside member organizations who follow public notices."""

from sqlalchemy import Boolean, Column, String

from coalition.models.base import Base, JSONType, TimestampMixin, UUIDMixin

SUBSCRIPTION_TYPES = ("ANNOUNCEMENT", "ALERT", "SURVEY")


class EmailSubscription(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "email_subscriptions"

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    subscription_types = Column(JSONType, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Notification builders greet organizations by contact name first
    primary_contact_name = None

    @property
    def contact_email(self) -> str:
        return self.email
