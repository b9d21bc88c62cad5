from __future__ import annotations

from app.adapters.notify.resend_client import ResendEmailClient

__all__ = ["ResendEmailClient"]
