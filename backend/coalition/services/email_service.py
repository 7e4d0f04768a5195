"""Outbound email through a Resend-compatible HTTP API."""

import logging
import re
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup

from coalition.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class EmailDeliveryError(Exception):
    """Raised when a single message could not be handed to the email API."""


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str | None = None


def html_to_text(html: str) -> str:
    """Plain-text alternative for an HTML body."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    text = soup.get_text("\n")
    lines = [re.sub(r"[ \t]+", " ", line).strip() for line in text.splitlines()]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


class EmailService:
    """
    Thin client for the email provider.

    Both a blocking ``send`` (Celery workers) and ``send_async`` (API
    requests) are provided; each delivers one message and raises
    ``EmailDeliveryError`` on any failure.
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        from_email: str | None = None,
        reply_to: str | None = None,
        timeout: float | None = None,
    ):
        self.api_url = api_url or settings.email_api_url
        self.api_key = api_key if api_key is not None else settings.email_api_key
        self.from_email = from_email or settings.email_from
        self.reply_to = reply_to if reply_to is not None else settings.email_reply_to
        self.timeout = timeout or settings.email_timeout_seconds

    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_url)

    def _payload(self, message: EmailMessage) -> dict:
        payload = {
            "from": self.from_email,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text or html_to_text(message.html),
        }
        if self.reply_to:
            payload["reply_to"] = self.reply_to
        return payload

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _check_configured(self) -> None:
        if not self.is_configured():
            raise EmailDeliveryError("Email delivery is not configured (EMAIL_API_KEY missing)")

    def send(self, message: EmailMessage) -> str | None:
        """Send one message synchronously. Returns the provider message id."""
        self._check_configured()
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.api_url, json=self._payload(message), headers=self._headers())
                response.raise_for_status()
                return response.json().get("id")
        except httpx.HTTPStatusError as e:
            raise EmailDeliveryError(f"Email API returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise EmailDeliveryError(f"Email API request failed: {e}") from e

    async def send_async(self, message: EmailMessage) -> str | None:
        """Send one message asynchronously. Returns the provider message id."""
        self._check_configured()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.api_url, json=self._payload(message), headers=self._headers())
                response.raise_for_status()
                return response.json().get("id")
        except httpx.HTTPStatusError as e:
            raise EmailDeliveryError(f"Email API returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise EmailDeliveryError(f"Email API request failed: {e}") from e


def get_email_service() -> EmailService:
    """FastAPI dependency."""
    return EmailService()
