"""OpenAPI customization: bearer auth scheme and tag descriptions.

Bearer auth is optional everywhere (guests are served), so operations list
both the BearerAuth requirement and an empty one.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Auth", "description": "Demo accounts, login and registration."},
    {"name": "Chat", "description": "AI chat, rate limited per caller tier."},
    {"name": "Status", "description": "Quota status, tier limits and debug views."},
    {"name": "Health", "description": "Liveness checks."},
]

# Operations that never look at the Authorization header
_PUBLIC_SUFFIXES = ("/health", "/login", "/register", "/users", "/limits")


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the security scheme."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("securitySchemes", {}).setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Token from POST /api/login. Omit to be served as a guest.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing = {t.get("name") for t in tags}
        tags.extend(t for t in TAGS_METADATA if t["name"] not in existing)

        for path, methods in schema.get("paths", {}).items():
            security = [] if path.endswith(_PUBLIC_SUFFIXES) else [{"BearerAuth": []}, {}]
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = security

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
