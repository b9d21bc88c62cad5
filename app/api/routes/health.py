from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.core.config import settings

router = APIRouter(tags=["Health"])

NO_STORE = {"Cache-Control": "no-store"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/health")
def health_check(request: Request) -> JSONResponse:
    """Report which collaborators are configured.

    Only checks presence of bindings and secrets; the stores are never
    touched, so this endpoint cannot fail because a backend is down.

    Returns:
        JSONResponse: ``{"status": "ok", "timestamp", "services": {...}}``.
    """

    cfg = settings.app
    state = request.app.state

    def configured(flag: bool) -> str:
        return "configured" if flag else "not configured"

    def bound(flag: bool) -> str:
        return "bound" if flag else "not configured"

    return JSONResponse(
        {
            "status": "ok",
            "timestamp": _now_iso(),
            "services": {
                "worker": configured(bool(cfg.contact_worker_url)),
                "turnstile": configured(bool(cfg.turnstile_secret_value)),
                "database": bound(getattr(state, "engine", None) is not None),
                "kv": bound(getattr(state, "kv", None) is not None),
                "email": configured(bool(cfg.resend_api_key)),
            },
        },
        headers=NO_STORE,
    )


@router.get("/ping")
def ping() -> JSONResponse:
    """Liveness probe."""

    return JSONResponse({"ok": True, "service": "ping", "time": _now_iso()}, headers=NO_STORE)
