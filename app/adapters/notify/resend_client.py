"""Resend email relay for new-submission notifications."""

from __future__ import annotations

import html
import logging

import httpx

from app.core.errors import UpstreamAppError
from app.core.http import get_async_client

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


def render_notification_html(
    *,
    name: str,
    email: str,
    message: str,
    client_ip: str,
    record_id: object | None = None,
) -> str:
    """Render the notification body; user-supplied text is HTML-escaped."""

    body = html.escape(message).replace("\n", "<br>")
    parts = [
        "<h2>New Contact Form Submission</h2>",
        f"<p><strong>Name:</strong> {html.escape(name)}</p>",
        f"<p><strong>Email:</strong> {html.escape(email)}</p>",
        "<p><strong>Message:</strong></p>",
        f"<p>{body}</p>",
        f"<p><strong>IP:</strong> {html.escape(client_ip)}</p>",
    ]
    if record_id is not None:
        parts.append(f"<p><strong>Record ID:</strong> {html.escape(str(record_id))}</p>")
    return "\n".join(parts)


class ResendEmailClient:
    def __init__(
        self,
        api_key: str,
        *,
        sender: str,
        recipient: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._recipient = recipient
        self._timeout = timeout_seconds
        self._transport = transport

    async def send(self, *, subject: str, html_body: str) -> None:
        """Send one email.

        Raises:
            UpstreamAppError: If Resend is unreachable or rejects the message.
        """
        headers = {"Authorization": f"Bearer {self._api_key}"}
        payload = {
            "from": self._sender,
            "to": self._recipient,
            "subject": subject,
            "html": html_body,
        }
        try:
            async with get_async_client(timeout_seconds=self._timeout, transport=self._transport) as client:
                response = await client.post(RESEND_URL, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise UpstreamAppError(
                code="email_unreachable",
                message="Failed to send notification email",
                details={"upstream": "resend"},
            ) from exc

        if not response.is_success:
            raise UpstreamAppError(
                code="email_rejected",
                message="Failed to send notification email",
                details={"http_status": response.status_code, "upstream": "resend"},
            )
        logger.info("email.sent", extra={"status_code": response.status_code})
