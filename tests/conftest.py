"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment so settings never pick up a developer's .env file
or live collaborator credentials.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ["APP_ENV"] = "testing"

for _name in (
    "STORE_KV_URL",
    "STORE_DATABASE_URL",
    "CONTACT_WORKER_URL",
    "WEBHOOK_SECRET",
    "TURNSTILE_SECRET_KEY",
    "TURNSTILE_SECRET",
    "RESEND_API_KEY",
    "NOTIFICATION_EMAIL",
    "RATE_LIMIT_WINDOW_SECS",
    "RATE_LIMIT_MAX",
):
    os.environ.pop(_name, None)

os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402


class FakeClock:
    """Deterministic clock returning UNIX seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
