"""Import every model so relationship strings resolve and metadata is complete."""

from coalition.models.base import Base  # noqa: F401
from coalition.models.organization import Organization  # noqa: F401
from coalition.models.alert import Alert  # noqa: F401
from coalition.models.announcement import Announcement  # noqa: F401
from coalition.models.event import Event, EventRsvp  # noqa: F401
from coalition.models.survey import Survey  # noqa: F401
from coalition.models.responses import AlertResponse, SurveyResponse  # noqa: F401
from coalition.models.page_content import PageContent  # noqa: F401
from coalition.models.email_history import EmailHistory  # noqa: F401
from coalition.models.email_subscription import EmailSubscription  # noqa: F401
