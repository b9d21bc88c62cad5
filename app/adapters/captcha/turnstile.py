"""Cloudflare Turnstile verification relay."""

from __future__ import annotations

import logging

import httpx

from app.core.errors import UpstreamAppError
from app.core.http import get_async_client

logger = logging.getLogger(__name__)

SITEVERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


class TurnstileClient:
    """Verifies Turnstile tokens against the siteverify endpoint."""

    def __init__(
        self,
        secret: str,
        *,
        timeout_seconds: float = 10.0,
        verify_url: str = SITEVERIFY_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._secret = secret
        self._timeout = timeout_seconds
        self._verify_url = verify_url
        self._transport = transport

    async def verify(self, token: str, *, remote_ip: str | None = None) -> bool:
        """Return True if Turnstile accepts ``token``.

        Raises:
            UpstreamAppError: If siteverify cannot be reached or answers with
                something other than JSON.
        """
        form = {"secret": self._secret, "response": token, "remoteip": remote_ip or ""}
        try:
            async with get_async_client(timeout_seconds=self._timeout, transport=self._transport) as client:
                response = await client.post(self._verify_url, data=form)
            result = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("captcha.unreachable", extra={"error_type": type(exc).__name__})
            raise UpstreamAppError(
                code="captcha_unreachable",
                message="Captcha verification failed",
                details={"http_status": 502, "upstream": "turnstile"},
            ) from exc

        success = bool(isinstance(result, dict) and result.get("success"))
        if not success:
            logger.info(
                "captcha.rejected",
                extra={"error_codes": result.get("error-codes") if isinstance(result, dict) else None},
            )
        return success
