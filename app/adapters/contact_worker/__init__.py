from __future__ import annotations

from app.adapters.contact_worker.client import ContactWorkerClient

__all__ = ["ContactWorkerClient"]
