from __future__ import annotations

import base64
import logging
import uuid
from dataclasses import dataclass, field
from html import escape
from typing import Any, Optional, Protocol, Sequence

import httpx

from menuhub.core import config

logger = logging.getLogger(__name__)
EMAIL_PREFIX = "[EMAIL]"


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class EmailSendResult:
    status: str
    provider_message_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "sent"


class EmailSender(Protocol):
    def send(
        self,
        to: str,
        subject: str,
        html: str,
        attachments: Optional[Sequence[EmailAttachment]] = None,
    ) -> EmailSendResult:
        ...


class ResendEmailSender:
    """Sends through the Resend HTTP API. One attempt per message; failures are logged and reported."""

    def __init__(
        self,
        *,
        api_key: str,
        sender: str,
        api_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport

    def send(
        self,
        to: str,
        subject: str,
        html: str,
        attachments: Optional[Sequence[EmailAttachment]] = None,
    ) -> EmailSendResult:
        if not self.api_key:
            logger.error("%s api key missing, email not sent to=%s", EMAIL_PREFIX, to)
            return EmailSendResult(status="failed", error="Email provider is not configured")

        payload: dict[str, Any] = {"from": self.sender, "to": [to], "subject": subject, "html": html}
        if attachments:
            payload["attachments"] = [
                {"filename": attachment.filename, "content": base64.b64encode(attachment.content).decode("ascii")}
                for attachment in attachments
            ]
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.api_url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            logger.error("%s transport error to=%s error=%s", EMAIL_PREFIX, to, exc)
            return EmailSendResult(status="failed", error=str(exc))

        if not 200 <= response.status_code < 300:
            error = f"HTTP {response.status_code}: {response.text[:200]}"
            logger.error("%s send failed to=%s error=%s", EMAIL_PREFIX, to, error)
            return EmailSendResult(status="failed", error=error)

        message_id = None
        try:
            message_id = response.json().get("id")
        except ValueError:
            logger.warning("%s response without json body to=%s", EMAIL_PREFIX, to)
        logger.info("%s sent to=%s message_id=%s", EMAIL_PREFIX, to, message_id)
        return EmailSendResult(status="sent", provider_message_id=message_id)


@dataclass
class MockEmailSender:
    """Keeps messages in memory and logs them; used in dev and tests."""

    outbox: list[dict[str, Any]] = field(default_factory=list)

    def send(
        self,
        to: str,
        subject: str,
        html: str,
        attachments: Optional[Sequence[EmailAttachment]] = None,
    ) -> EmailSendResult:
        message_id = f"mock-{uuid.uuid4().hex[:10]}"
        self.outbox.append(
            {
                "id": message_id,
                "to": to,
                "subject": subject,
                "html": html,
                "attachments": list(attachments or []),
            }
        )
        logger.info("%s mock email to=%s subject=%s", EMAIL_PREFIX, to, subject)
        return EmailSendResult(status="sent", provider_message_id=message_id)


def get_email_sender() -> EmailSender:
    if config.EMAIL_PROVIDER == "resend":
        return ResendEmailSender(api_key=config.EMAIL_API_KEY, sender=config.EMAIL_FROM, api_url=config.EMAIL_API_URL)
    return MockEmailSender()


def render_welcome_email(*, restaurant_name: str, menu_url: str, admin_url: str, subdomain: str) -> str:
    name = escape(restaurant_name)
    return (
        f"<h1>Welcome to MenuHub, {name}!</h1>"
        f"<p>Your digital menu is live at <a href=\"{escape(menu_url)}\">{escape(menu_url)}</a>.</p>"
        f"<p>Your restaurant address is <strong>{escape(subdomain)}.{escape(config.PUBLIC_BASE_DOMAIN)}</strong>.</p>"
        f"<p>Manage categories, items and promotions from the "
        f"<a href=\"{escape(admin_url)}\">admin panel</a>.</p>"
        "<p>Your QR code is attached; print it and place it on your tables.</p>"
    )
