"""FastAPI dependencies resolving store handles and services from app state.

Handles are bound once at startup (see ``app.core.app_factory``) and read
from ``request.app.state``, which keeps routes free of module globals and
lets tests build apps with their own stores.
"""

from __future__ import annotations

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from app.adapters.captcha.turnstile import TurnstileClient
from app.adapters.contact_worker.client import ContactWorkerClient
from app.adapters.kv.base import AbstractKVNamespace
from app.adapters.notify.resend_client import ResendEmailClient
from app.core.config import settings
from app.core.errors import ConfigurationAppError
from app.repositories.contacts import ContactsRepository
from app.services.contact_service import ContactService


def get_engine(request: Request) -> AsyncEngine | None:
    return getattr(request.app.state, "engine", None)


def get_kv(request: Request) -> AbstractKVNamespace | None:
    return getattr(request.app.state, "kv", None)


def get_contacts_repository(request: Request) -> ContactsRepository:
    """Return a repository over the bound database.

    Raises:
        ConfigurationAppError: If no database is bound.
    """
    engine = get_engine(request)
    if engine is None:
        raise ConfigurationAppError(code="database_not_configured", message="Database not configured")
    return ContactsRepository(engine)


def get_contact_service(request: Request) -> ContactService:
    """Assemble the contact pipeline from configuration and bound stores."""

    cfg = settings.app
    timeout = cfg.http_timeout_seconds

    captcha = None
    if cfg.turnstile_secret_value:
        captcha = TurnstileClient(cfg.turnstile_secret_value, timeout_seconds=timeout)

    worker = None
    if cfg.contact_worker_url and cfg.webhook_secret:
        worker = ContactWorkerClient(cfg.contact_worker_url, cfg.webhook_secret, timeout_seconds=timeout)

    engine = get_engine(request)
    repository = ContactsRepository(engine) if engine is not None else None

    notifier = None
    if cfg.resend_api_key and cfg.notification_email:
        notifier = ResendEmailClient(
            cfg.resend_api_key,
            sender=cfg.notification_from,
            recipient=cfg.notification_email,
            timeout_seconds=timeout,
        )

    return ContactService(captcha=captcha, worker=worker, repository=repository, notifier=notifier)
