from __future__ import annotations

from app.core.app_factory import create_app
from app.core.config import StoreSettings


def test_admin_paths_require_admin_secret_scheme():
    schema = create_app(StoreSettings()).openapi()

    assert schema["components"]["securitySchemes"]["AdminSecret"]["name"] == "x-admin-secret"
    assert schema["paths"]["/api/admin/contacts"]["get"]["security"] == [{"AdminSecret": []}]
    assert schema["paths"]["/api/messages"]["get"]["security"] == [{"AdminSecret": []}]
    assert "security" not in schema["paths"]["/api/contact"]["post"]


def test_tags_are_documented_once():
    app = create_app(StoreSettings())
    app.openapi()
    schema = app.openapi()

    names = [tag["name"] for tag in schema["tags"]]
    assert names.count("Contact") == 1
    assert {"Contact", "Admin", "Health"} <= set(names)
