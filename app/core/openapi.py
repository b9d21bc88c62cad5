"""OpenAPI customization.

Adds the admin secret security scheme and marks the admin paths as
requiring it. Cloudflare Access is enforced at the edge and does not appear
in the schema.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

ADMIN_PATH_PREFIXES = ("/api/admin", "/api/messages")

TAGS = [
    {"name": "Contact", "description": "Public contact form submission (rate limited)."},
    {"name": "Admin", "description": "Contact review and dashboard statistics."},
    {"name": "Health", "description": "Liveness and configuration checks."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and admin security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "AdminSecret",
            {
                "type": "apiKey",
                "in": "header",
                "name": "x-admin-secret",
                "description": "Development fallback when Cloudflare Access is not in front of the API.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing = {t.get("name") for t in tags}
        tags.extend(tag for tag in TAGS if tag["name"] not in existing)

        for path, methods in schema.get("paths", {}).items():
            if not path.startswith(ADMIN_PATH_PREFIXES):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = [{"AdminSecret": []}]

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
