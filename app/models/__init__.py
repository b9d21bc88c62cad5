from __future__ import annotations

from app.models.contact import Contact
from app.models.rate_limit import RateLimitRow

__all__ = ["Contact", "RateLimitRow"]
