"""Outbound HTTP client construction."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

USER_AGENT = "talktech-site-api/0.1"


@asynccontextmanager
async def get_async_client(
    *,
    timeout_seconds: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield a short-lived client for one outbound call.

    ``transport`` lets tests substitute ``httpx.MockTransport``.
    """
    headers = {"User-Agent": USER_AGENT}
    async with httpx.AsyncClient(timeout=timeout_seconds, headers=headers, transport=transport) as client:
        yield client
