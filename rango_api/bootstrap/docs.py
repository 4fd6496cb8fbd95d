from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from fastapi.responses import HTMLResponse, JSONResponse

from rango_api.config import EnvConfig

DOCS_PREFIX = "/docs"
DOCS_JSON_PATH = f"{DOCS_PREFIX}/json"

OPENAPI_DESCRIPTION = "API for managing restaurants, products, promotions and menus"
OPENAPI_CONTACT: dict[str, str] = {"name": "Elvis Leite", "email": "elvis@example.com"}

OPENAPI_TAGS: list[dict[str, str]] = [
    {"name": "Health", "description": "API health check"},
    {"name": "Auth", "description": "Authentication and tokens"},
    {"name": "Restaurants", "description": "Restaurant management"},
    {"name": "Products", "description": "Product management"},
    {"name": "Promotions", "description": "Promotion management"},
    {"name": "Menu", "description": "Consolidated menu"},
    {"name": "Files", "description": "Image uploads"},
]

SECURITY_SCHEMES: dict[str, dict[str, str]] = {
    "Bearer": {
        "type": "apiKey",
        "name": "Authorization",
        "in": "header",
        "description": "JWT token, sent as: Bearer {token}",
    },
    "ApiKey": {
        "type": "apiKey",
        "name": "x-api-key",
        "in": "header",
        "description": "API key for external consumers",
    },
}

SWAGGER_UI_PARAMETERS: dict[str, Any] = {"docExpansion": "list", "deepLinking": False}

logger = logging.getLogger("rango_api.docs")


class SwaggerConfig:
    def __init__(self, config: EnvConfig) -> None:
        self.config = config

    def build_openapi(self, server: FastAPI) -> dict[str, Any]:
        schema = get_openapi(
            title=server.title,
            version=server.version,
            description=OPENAPI_DESCRIPTION,
            routes=server.routes,
            tags=OPENAPI_TAGS,
            servers=[{"url": f"http://localhost:{self.config.listen_port}"}],
            contact=OPENAPI_CONTACT,
        )
        schema.setdefault("components", {})["securitySchemes"] = SECURITY_SCHEMES
        schema["security"] = [{name: []} for name in SECURITY_SCHEMES]
        return schema

    async def register(self, server: FastAPI) -> FastAPI:
        """Expose Swagger UI at ``/docs`` and the document at ``/docs/json``.

        The document is generated on first request, so routes registered after
        this call are still described.
        """
        if not self.config.DOCS_ENABLED:
            logger.info("docs_disabled")
            return server
        if getattr(server.state, "docs_registered", False):
            return server

        def openapi() -> dict[str, Any]:
            if server.openapi_schema is None:
                server.openapi_schema = self.build_openapi(server)
            return server.openapi_schema

        server.openapi = openapi  # type: ignore[method-assign]

        @server.get(DOCS_JSON_PATH, include_in_schema=False)
        async def openapi_document() -> JSONResponse:
            return JSONResponse(server.openapi())

        @server.get(DOCS_PREFIX, include_in_schema=False)
        async def swagger_ui() -> HTMLResponse:
            return get_swagger_ui_html(
                openapi_url=DOCS_JSON_PATH,
                title=f"{server.title} - Docs",
                swagger_ui_parameters=SWAGGER_UI_PARAMETERS,
            )

        server.state.docs_registered = True
        return server
