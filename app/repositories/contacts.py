"""Contacts persistence over the relational store.

Date arithmetic in ``stats`` uses SQLite date functions, which is what the
edge database (D1) speaks.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, func, select, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.db.session import create_sessionmaker
from app.models.contact import Contact

_STATS_TOTALS_SQL = text(
    """
    SELECT
        COUNT(*) AS total,
        SUM(CASE WHEN DATE(created_at) = DATE('now') THEN 1 ELSE 0 END) AS today,
        SUM(CASE WHEN DATE(created_at) >= DATE('now', '-7 days') THEN 1 ELSE 0 END) AS week,
        SUM(CASE WHEN DATE(created_at) >= DATE('now', 'start of month') THEN 1 ELSE 0 END) AS month
    FROM contacts
    """
)

_DAILY_SQL = text(
    """
    SELECT DATE(created_at) AS date, COUNT(*) AS count
    FROM contacts
    WHERE DATE(created_at) >= DATE('now', '-30 days')
    GROUP BY DATE(created_at)
    ORDER BY date DESC
    """
)

_TOP_DOMAINS_SQL = text(
    """
    SELECT SUBSTR(email, INSTR(email, '@') + 1) AS domain, COUNT(*) AS count
    FROM contacts
    GROUP BY domain
    ORDER BY count DESC, domain ASC
    LIMIT :limit
    """
)


class ContactsRepository:
    """CRUD and reporting queries for the ``contacts`` table."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._sessions: async_sessionmaker[AsyncSession] = create_sessionmaker(engine)

    async def create(self, *, name: str, email: str, message: str, ip: str | None) -> Contact:
        async with self._sessions() as session:
            contact = Contact(name=name, email=email, message=message, ip=ip)
            session.add(contact)
            await session.commit()
            await session.refresh(contact)
            return contact

    async def count(self) -> int:
        async with self._sessions() as session:
            return int(await session.scalar(select(func.count()).select_from(Contact)) or 0)

    async def list_recent(self, *, limit: int, offset: int = 0) -> list[Contact]:
        """Return contacts newest first."""
        stmt = (
            select(Contact)
            .order_by(Contact.created_at.desc(), Contact.id.desc())
            .limit(limit)
            .offset(offset)
        )
        async with self._sessions() as session:
            return list((await session.scalars(stmt)).all())

    async def delete(self, contact_id: int) -> bool:
        """Delete one contact; returns False if no row matched."""
        async with self._sessions() as session:
            result = await session.execute(delete(Contact).where(Contact.id == contact_id))
            await session.commit()
            return bool(result.rowcount)

    async def stats(self, *, top_domains: int = 5) -> dict[str, Any]:
        """Totals, 30-day daily counts and the most common email domains."""
        async with self._engine.connect() as conn:
            totals = (await conn.execute(_STATS_TOTALS_SQL)).mappings().one()
            daily = (await conn.execute(_DAILY_SQL)).mappings().all()
            domains = (await conn.execute(_TOP_DOMAINS_SQL, {"limit": top_domains})).mappings().all()

        return {
            "totals": {key: int(totals[key] or 0) for key in ("total", "today", "week", "month")},
            "daily": [dict(row) for row in daily],
            "top_domains": [dict(row) for row in domains],
        }
