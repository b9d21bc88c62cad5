"""Contact submission pipeline.

Runs after the rate limit gate has admitted the request:
1. Validate the JSON payload shape
2. Verify the Turnstile token when a secret is configured
3. Persist, via the contact worker when configured, else the local database
4. Notify by email when configured; failures are logged, never surfaced
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from app.adapters.captcha.turnstile import TurnstileClient
from app.adapters.contact_worker.client import ContactWorkerClient
from app.adapters.notify.resend_client import ResendEmailClient, render_notification_html
from app.core.errors import ConfigurationAppError, UpstreamAppError, ValidationAppError
from app.core.logging import hash_for_log
from app.repositories.contacts import ContactsRepository
from app.schemas.contact import ContactRequest, ContactResponse

logger = logging.getLogger(__name__)

THANK_YOU_MESSAGE = "Thank you for your message! I'll get back to you soon."


def parse_contact_payload(body: Any) -> ContactRequest:
    """Validate a decoded JSON body.

    Raises:
        ValidationAppError: ``Missing fields`` when name, email or message is
            absent or blank, or the body is not an object.
    """
    if not isinstance(body, dict):
        raise ValidationAppError(code="missing_fields", message="Missing fields")
    try:
        return ContactRequest.model_validate(body)
    except ValidationError as exc:
        raise ValidationAppError(
            code="missing_fields",
            message="Missing fields",
            details={"context": {"fields": sorted({str(e["loc"][0]) for e in exc.errors() if e["loc"]})}},
        ) from exc


@dataclass
class ClientInfo:
    ip: str
    user_agent: str = ""


class ContactService:
    """Orchestrates captcha, persistence and notification for one submission.

    Every collaborator is optional; which ones are present is decided by
    configuration when the service is built.
    """

    def __init__(
        self,
        *,
        captcha: TurnstileClient | None = None,
        worker: ContactWorkerClient | None = None,
        repository: ContactsRepository | None = None,
        notifier: ResendEmailClient | None = None,
    ) -> None:
        self._captcha = captcha
        self._worker = worker
        self._repository = repository
        self._notifier = notifier

    async def submit(self, payload: ContactRequest, client: ClientInfo) -> ContactResponse:
        """Run the pipeline for a validated payload.

        Raises:
            ValidationAppError: Captcha token missing or rejected.
            ConfigurationAppError: No persistence target is configured.
            UpstreamAppError: The worker or captcha service failed.
        """
        await self._check_captcha(payload, client)

        if self._worker is not None:
            worker_body = await self._worker.submit(
                name=payload.name,
                email=payload.email,
                message=payload.message,
                client_ip=client.ip,
                user_agent=client.user_agent,
            )
            record_id = worker_body.get("id")
            response = ContactResponse(message=THANK_YOU_MESSAGE, worker=worker_body)
        elif self._repository is not None:
            contact = await self._repository.create(
                name=payload.name,
                email=payload.email,
                message=payload.message,
                ip=client.ip,
            )
            record_id = contact.id
            response = ContactResponse(message=THANK_YOU_MESSAGE, id=contact.id)
        else:
            logger.error("contact.no_persistence", extra={"reason": "worker_and_database_missing"})
            raise ConfigurationAppError(code="server_misconfiguration", message="Server misconfiguration")

        logger.info(
            "contact.saved",
            extra={
                "target": "worker" if self._worker is not None else "database",
                "record_id": record_id,
                "client_hash": hash_for_log(client.ip),
            },
        )

        await self._notify(payload, client, record_id)
        return response

    async def _check_captcha(self, payload: ContactRequest, client: ClientInfo) -> None:
        if self._captcha is None:
            return
        if not payload.turnstile_token:
            raise ValidationAppError(code="captcha_required", message="Captcha required")
        if not await self._captcha.verify(payload.turnstile_token, remote_ip=client.ip):
            raise ValidationAppError(code="captcha_failed", message="Captcha verification failed")

    async def _notify(self, payload: ContactRequest, client: ClientInfo, record_id: Any) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.send(
                subject=f"New Contact Form Submission from {payload.name}",
                html_body=render_notification_html(
                    name=payload.name,
                    email=payload.email,
                    message=payload.message,
                    client_ip=client.ip,
                    record_id=record_id,
                ),
            )
        except UpstreamAppError as exc:
            # The submission is already stored; a lost notification is not fatal.
            logger.error("email.failed", extra={"error_code": exc.code})
