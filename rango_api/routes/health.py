from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from rango_api.routes.base import RouteGroup
from rango_api.schemas import ErrorResponse, HealthResponse


class HealthRoutes(RouteGroup):
    name = "health"
    tags = ("Health",)

    def attach(self, router: APIRouter) -> None:
        @router.get(
            "/health",
            summary="Health check",
            description="Reports that the API is up and answering requests",
            response_model=HealthResponse,
            responses={500: {"model": ErrorResponse}},
        )
        async def health() -> HealthResponse:
            return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))
