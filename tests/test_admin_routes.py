"""Tests for the admin API: authentication, listing, deletion and stats."""

from functools import partial

import pytest
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.config import StoreSettings
from app.repositories.contacts import ContactsRepository

MEMORY_DB_URL = "sqlite+aiosqlite:///:memory:"
ADMIN_HEADERS = {"x-admin-secret": "test-admin-secret"}


@pytest.fixture
def app():
    return create_app(StoreSettings(kv_url="memory://", database_url=MEMORY_DB_URL))


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def _seed(client: TestClient, app, count: int) -> None:
    repository = ContactsRepository(app.state.engine)
    domains = ["example.com", "example.com", "talktech.io"]
    for i in range(count):
        client.portal.call(
            partial(
                repository.create,
                name=f"Person {i}",
                email=f"p{i}@{domains[i % len(domains)]}",
                message=f"Message {i}",
                ip="203.0.113.1",
            )
        )


# ---- Authentication ----


@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/api/admin/contacts"),
        ("DELETE", "/api/admin/contacts?id=1"),
        ("GET", "/api/admin/stats"),
        ("GET", "/api/messages"),
    ],
)
def test_admin_routes_require_authentication(client: TestClient, method: str, path: str) -> None:
    response = client.request(method, path)

    assert response.status_code == 401
    assert response.json() == {"ok": False, "error": "Unauthorized"}


def test_wrong_admin_secret_is_rejected(client: TestClient) -> None:
    response = client.get("/api/admin/contacts", headers={"x-admin-secret": "nope"})

    assert response.status_code == 401


def test_cloudflare_access_header_is_accepted(client: TestClient) -> None:
    response = client.get(
        "/api/admin/contacts",
        headers={"cf-access-authenticated-user-email": "owner@talktech.io"},
    )

    assert response.status_code == 200


# ---- Listing ----


def test_list_contacts_paginates_newest_first(client: TestClient, app) -> None:
    _seed(client, app, 12)

    first = client.get("/api/admin/contacts?page=1&limit=5", headers=ADMIN_HEADERS).json()
    last = client.get("/api/admin/contacts?page=3&limit=5", headers=ADMIN_HEADERS).json()

    assert first["pagination"] == {"page": 1, "limit": 5, "total": 12, "pages": 3}
    assert [c["id"] for c in first["data"]] == [12, 11, 10, 9, 8]
    assert [c["id"] for c in last["data"]] == [2, 1]


def test_list_contacts_rejects_oversized_limit(client: TestClient) -> None:
    response = client.get("/api/admin/contacts?limit=500", headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Invalid request"}


def test_messages_returns_ten_latest(client: TestClient, app) -> None:
    _seed(client, app, 12)

    body = client.get("/api/messages", headers=ADMIN_HEADERS).json()

    assert body["ok"] is True
    assert len(body["rows"]) == 10
    assert body["rows"][0]["message"] == "Message 11"


# ---- Deletion ----


def test_delete_contact(client: TestClient, app) -> None:
    _seed(client, app, 2)

    response = client.delete("/api/admin/contacts?id=1", headers=ADMIN_HEADERS)
    remaining = client.get("/api/admin/contacts", headers=ADMIN_HEADERS).json()

    assert response.json() == {"ok": True, "message": "Contact deleted"}
    assert [c["id"] for c in remaining["data"]] == [2]


@pytest.mark.parametrize(
    "query, error",
    [("", "ID required"), ("?id=abc", "Invalid ID")],
)
def test_delete_contact_validates_id(client: TestClient, query: str, error: str) -> None:
    response = client.delete(f"/api/admin/contacts{query}", headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": error}


# ---- Stats ----


def test_stats_summarises_contacts(client: TestClient, app) -> None:
    _seed(client, app, 6)
    client.post(
        "/api/contact",
        json={"name": "Ada", "email": "ada@example.com", "message": "Hi"},
        headers={"CF-Connecting-IP": "198.51.100.3"},
    )

    body = client.get("/api/admin/stats", headers=ADMIN_HEADERS).json()

    assert body["stats"] == {"total": 7, "today": 7, "week": 7, "month": 7}
    assert len(body["recentContacts"]) == 5
    assert "message" not in body["recentContacts"][0]
    assert body["topDomains"][0] == {"domain": "example.com", "count": 5}
    assert body["dailyStats"][0]["count"] == 7
    assert body["rateLimitInfo"]["activeRateLimits"] == 1


def test_stats_without_kv_omits_rate_limit_info() -> None:
    app = create_app(StoreSettings(database_url=MEMORY_DB_URL))

    with TestClient(app) as client:
        body = client.get("/api/admin/stats", headers=ADMIN_HEADERS).json()

    assert body["rateLimitInfo"] is None
    assert body["stats"]["total"] == 0


def test_admin_without_database_is_server_error() -> None:
    app = create_app(StoreSettings())

    with TestClient(app) as client:
        response = client.get("/api/admin/contacts", headers=ADMIN_HEADERS)

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Database not configured"}
