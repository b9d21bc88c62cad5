"""Admin API: listing, deleting and summarising contact submissions.

All routes require admin authentication (see ``app.core.auth``).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from app.adapters.kv.base import KVNamespaceError
from app.api.dependencies import get_contacts_repository, get_kv
from app.core.auth import require_admin
from app.core.config import settings
from app.core.errors import ValidationAppError
from app.core.rate_limit import build_rate_limit_key
from app.repositories.contacts import ContactsRepository
from app.schemas.admin import ContactsPage, Pagination, RateLimitInfo, StatsResponse, StatsTotals

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"], dependencies=[Depends(require_admin)])

NO_STORE = {"Cache-Control": "no-store"}

Repository = Annotated[ContactsRepository, Depends(get_contacts_repository)]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/api/admin/contacts")
async def list_contacts(
    repository: Repository,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> JSONResponse:
    """Return one page of contacts, newest first, with pagination metadata."""

    total = await repository.count()
    contacts = await repository.list_recent(limit=limit, offset=(page - 1) * limit)
    body = ContactsPage(
        data=[c.to_dict() for c in contacts],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )
    return JSONResponse(body.model_dump(), headers=NO_STORE)


@router.delete("/api/admin/contacts")
async def delete_contact(
    repository: Repository,
    contact_id: Annotated[str | None, Query(alias="id")] = None,
) -> JSONResponse:
    """Delete a contact by id (query parameter)."""

    if not contact_id:
        raise ValidationAppError(code="id_required", message="ID required")
    try:
        parsed_id = int(contact_id)
    except ValueError as exc:
        raise ValidationAppError(code="invalid_id", message="Invalid ID") from exc

    deleted = await repository.delete(parsed_id)
    logger.info("admin.contact_deleted", extra={"contact_id": parsed_id, "matched": deleted})
    return JSONResponse({"ok": True, "message": "Contact deleted"}, headers=NO_STORE)


@router.get("/api/admin/stats")
async def contact_stats(request: Request, repository: Repository) -> JSONResponse:
    """Dashboard summary: totals, recent contacts, daily series, top domains."""

    stats = await repository.stats()
    recent = await repository.list_recent(limit=5)

    body = StatsResponse(
        stats=StatsTotals(**stats["totals"]),
        recentContacts=[c.to_dict(include_message=False) for c in recent],
        dailyStats=stats["daily"],
        topDomains=stats["top_domains"],
        rateLimitInfo=await _rate_limit_info(request),
        lastUpdated=_now_iso(),
    )
    return JSONResponse(body.model_dump(), headers=NO_STORE)


async def _rate_limit_info(request: Request) -> RateLimitInfo | None:
    """Count live contact rate limit keys when the limiter uses the KV store."""

    kv = get_kv(request)
    if kv is None:
        return None
    prefix = build_rate_limit_key(settings.rate_limit.route_tag, "")
    try:
        keys = await kv.list_keys(prefix=prefix)
    except KVNamespaceError as exc:
        logger.error("admin.rate_limit_info_failed", extra={"error_msg": str(exc)})
        return None
    return RateLimitInfo(activeRateLimits=len(keys), lastCheck=_now_iso())


@router.get("/api/messages")
async def latest_messages(repository: Repository) -> JSONResponse:
    """Return the ten most recent contacts."""

    contacts = await repository.list_recent(limit=10)
    return JSONResponse({"ok": True, "rows": [c.to_dict() for c in contacts]}, headers=NO_STORE)
