from __future__ import annotations

from app.adapters.captcha.turnstile import TurnstileClient

__all__ = ["TurnstileClient"]
