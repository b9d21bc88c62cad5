from __future__ import annotations

import json
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from app.api.dependencies import get_contact_service
from app.core.errors import ValidationAppError
from app.core.rate_limit import client_identity, enforce_contact_rate_limit
from app.services.contact_service import ClientInfo, ContactService, parse_contact_payload

router = APIRouter(tags=["Contact"])

NO_STORE = {"Cache-Control": "no-store"}


@router.post(
    "/contact",
    dependencies=[Depends(enforce_contact_rate_limit)],
)
async def submit_contact(
    request: Request,
    service: Annotated[ContactService, Depends(get_contact_service)],
) -> JSONResponse:
    """Accept a contact form submission.

    The rate limit gate runs first; the body is only read once the client
    has been admitted, so a throttled client never costs a parse.

    Body:
        ``{"name": str, "email": str, "message": str, "turnstileToken"?: str}``

    Returns:
        JSONResponse: ``{"ok": true, "message": ...}`` plus ``id`` (local
            storage) or ``worker`` (proxied storage).

    Raises:
        ValidationAppError: 400 for malformed JSON, missing fields or captcha failure.
        RateLimitExceededError: 429 from the gate.
    """
    try:
        body = json.loads(await request.body() or b"null")
    except ValueError as exc:
        raise ValidationAppError(code="invalid_json", message="Invalid JSON body") from exc

    payload = parse_contact_payload(body)
    client = ClientInfo(
        ip=client_identity(request),
        user_agent=request.headers.get("user-agent", ""),
    )
    result = await service.submit(payload, client)
    return JSONResponse(result.model_dump(exclude_none=True), headers=NO_STORE)


@router.options("/contact", status_code=204)
async def contact_preflight() -> Response:
    return Response(status_code=204, headers=NO_STORE)
