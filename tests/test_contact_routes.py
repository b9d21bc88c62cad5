"""Tests for POST /api/contact against a local in-memory database."""

import pytest
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.config import StoreSettings
from app.services.contact_service import THANK_YOU_MESSAGE

MEMORY_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def client():
    app = create_app(StoreSettings(database_url=MEMORY_DB_URL))
    with TestClient(app) as client:
        yield client


def test_valid_submission_is_stored_locally(client: TestClient) -> None:
    response = client.post(
        "/api/contact",
        json={"name": "Ada", "email": "ada@example.com", "message": "Hi\nthere"},
        headers={"CF-Connecting-IP": "203.0.113.9"},
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True, "message": THANK_YOU_MESSAGE, "id": 1}
    assert response.headers["Cache-Control"] == "no-store"


def test_stored_submission_is_visible_to_admin(client: TestClient) -> None:
    client.post(
        "/api/contact",
        json={"name": "  Ada ", "email": "ada@example.com", "message": "Hello"},
        headers={"CF-Connecting-IP": "203.0.113.9"},
    )

    rows = client.get("/api/messages", headers={"x-admin-secret": "test-admin-secret"}).json()["rows"]

    assert rows[0]["name"] == "Ada"
    assert rows[0]["ip"] == "203.0.113.9"


@pytest.mark.parametrize(
    "body",
    [
        {"email": "ada@example.com", "message": "Hello"},
        {"name": "Ada", "email": "", "message": "Hello"},
        {"name": "Ada", "email": "ada@example.com", "message": "   "},
        ["not", "an", "object"],
    ],
)
def test_missing_fields_are_rejected(client: TestClient, body) -> None:
    response = client.post("/api/contact", json=body)

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Missing fields"}


def test_malformed_json_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/api/contact",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Invalid JSON body"}


def test_empty_body_is_missing_fields(client: TestClient) -> None:
    response = client.post("/api/contact")

    assert response.status_code == 400
    assert response.json()["error"] == "Missing fields"


def test_preflight_returns_no_content(client: TestClient) -> None:
    response = client.options("/api/contact")

    assert response.status_code == 204
    assert response.content == b""


def test_without_persistence_target_returns_misconfiguration() -> None:
    app = create_app(StoreSettings())

    with TestClient(app) as client:
        response = client.post(
            "/api/contact",
            json={"name": "Ada", "email": "ada@example.com", "message": "Hello"},
        )

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Server misconfiguration"}
