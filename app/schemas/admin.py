"""Pydantic schemas for the admin API."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


class ContactsPage(BaseModel):
    ok: bool = True
    data: list[dict[str, Any]]
    pagination: Pagination


class StatsTotals(BaseModel):
    total: int = 0
    today: int = 0
    week: int = 0
    month: int = 0


class RateLimitInfo(BaseModel):
    """Snapshot of live contact rate limit keys in the KV namespace."""

    activeRateLimits: int
    lastCheck: str


class StatsResponse(BaseModel):
    ok: bool = True
    stats: StatsTotals
    recentContacts: list[dict[str, Any]] = Field(default_factory=list)
    dailyStats: list[dict[str, Any]] = Field(default_factory=list)
    topDomains: list[dict[str, Any]] = Field(default_factory=list)
    rateLimitInfo: RateLimitInfo | None = None
    lastUpdated: str
