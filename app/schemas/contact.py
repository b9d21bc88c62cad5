"""Pydantic schemas for contact form submissions."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContactRequest(BaseModel):
    """Payload posted by the site's contact form."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Sender's name.")
    email: str = Field(..., min_length=1, description="Sender's email address.")
    message: str = Field(..., min_length=1, description="Free-text message (multi-line).")
    turnstile_token: str | None = Field(
        default=None,
        alias="turnstileToken",
        description="Cloudflare Turnstile token, required when captcha is enabled.",
    )


class ContactResponse(BaseModel):
    """Body returned after a successful submission."""

    ok: bool = True
    message: str = Field(..., description="Thank-you text shown to the visitor.")
    id: int | None = Field(default=None, description="Row id when stored locally.")
    worker: dict[str, Any] | None = Field(
        default=None,
        description="Worker response body when persistence is proxied.",
    )
