"""Fixed-window counters for the relational rate limit backend.

Rows are written only through the conditional upsert in
``app.adapters.rate_limit.relational``; the model exists so the table is
created alongside the rest of the schema.
"""

from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.session import Base


class RateLimitRow(Base):
    __tablename__ = "rate_limits"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False)
    # Unix seconds at which the window resets
    expires: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
