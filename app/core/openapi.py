"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- Bearer JWT security scheme with per-path overrides

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

# Paths reachable without a token
PUBLIC_PATHS = ("/health", "/auth/signup", "/auth/login")


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and security.

    - Injects components.securitySchemes for bearer JWT auth
    - Marks all operations as requiring a token by default, then exempts
      public endpoints by setting ``security: []``
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Token from POST /auth/login, sent as 'Authorization: Bearer <token>'.",
            },
        )

        schema.setdefault("security", [{"BearerAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {"name": "Auth", "description": "Signup and login."},
            {"name": "Users", "description": "User administration."},
            {"name": "Products", "description": "Product catalog."},
            {"name": "Orders", "description": "Orders with race-safe stock reservation."},
            {"name": "Audit", "description": "Audit trail of security-relevant actions."},
            {"name": "Health", "description": "Liveness and readiness checks."},
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            if path in PUBLIC_PATHS:
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
