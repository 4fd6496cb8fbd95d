from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rango_api.bootstrap.middleware import register_core_middleware
from rango_api.config import EnvConfig
from rango_api.container import DATABASE, ServiceRegistry
from rango_api.errors import error_response, http_exception_response
from rango_api.version import APP_VERSION

APP_TITLE = "API Lista Rango"

logger = logging.getLogger("rango_api.server")


class ServerFactory:
    """Builds an inert FastAPI application; binding a port is left to the driver."""

    def __init__(self, config: EnvConfig, *, registry: ServiceRegistry | None = None) -> None:
        self.config = config
        self.registry = registry

    def build(self, config: EnvConfig | None = None) -> FastAPI:
        config = config or self.config
        registry = self.registry

        @asynccontextmanager
        async def _lifespan(_api: FastAPI) -> AsyncIterator[None]:
            try:
                yield
            finally:
                engine = registry.peek(DATABASE) if registry is not None else None
                if engine is not None and hasattr(engine, "dispose"):
                    engine.dispose()
                    logger.info("database_engine_disposed")

        api = FastAPI(
            title=APP_TITLE,
            version=APP_VERSION,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=_lifespan,
        )
        api.state.config = config
        api.state.route_groups = set()
        api.state.route_keys = set()

        register_core_middleware(api, config)
        _register_exception_handlers(api)
        return api


def _register_exception_handlers(api: FastAPI) -> None:
    @api.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return http_exception_response(request, exc)

    @api.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(
            request,
            status_code=422,
            code="VALIDATION_ERROR",
            message="; ".join(err.get("msg", "invalid request") for err in exc.errors()) or "invalid request",
            details=exc.errors(),
        )

    @api.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, _exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", extra={"request_id": getattr(request.state, "request_id", None)})
        return error_response(request, status_code=500, code="INTERNAL_ERROR", message="Internal Server Error")
