"""Client for the worker that owns contact persistence.

The worker authenticates callers with a shared secret in ``X-Signature`` and
is the single writer of the contacts table when it is deployed.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from app.core.errors import UpstreamAppError
from app.core.http import get_async_client

logger = logging.getLogger(__name__)


class ContactWorkerClient:
    def __init__(
        self,
        url: str,
        secret: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._secret = secret
        self._timeout = timeout_seconds
        self._transport = transport

    async def submit(
        self,
        *,
        name: str,
        email: str,
        message: str,
        client_ip: str,
        user_agent: str = "",
    ) -> dict[str, Any]:
        """Forward a submission and return the worker's JSON body.

        A non-JSON success body is tolerated and yields an empty dict.

        Raises:
            UpstreamAppError: If the worker is unreachable or answers non-2xx;
                ``details["http_status"]`` mirrors the worker status.
        """
        headers = {
            "Content-Type": "application/json",
            "X-Signature": self._secret,
            "X-Forwarded-For": client_ip,
            "X-Client-UA": user_agent,
        }
        body = {"name": name, "email": email, "message": message}

        try:
            async with get_async_client(timeout_seconds=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, headers=headers, json=body)
        except httpx.HTTPError as exc:
            logger.error("contact_worker.unreachable", extra={"error_type": type(exc).__name__})
            raise UpstreamAppError(
                code="worker_unreachable",
                message="Failed to save message",
                details={"http_status": 502, "upstream": "contact_worker"},
            ) from exc

        if not response.is_success:
            # Worker body may contain internals; keep it in logs only.
            logger.error(
                "contact_worker.error",
                extra={"status_code": response.status_code, "worker_body": response.text[:500]},
            )
            raise UpstreamAppError(
                code="worker_error",
                message="Failed to save message",
                details={"http_status": response.status_code, "upstream": "contact_worker"},
            )

        try:
            parsed = json.loads(response.text)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
