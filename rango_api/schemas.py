from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    code: str = Field(examples=["NOT_FOUND"])
    message: str = Field(examples=["Not Found"])
    request_id: Optional[str] = Field(default=None, examples=["c752262e-cf42-4075-917b-95ffcb5ceeeb"])
    details: Any = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "code": "NOT_FOUND",
                "message": "Not Found",
                "request_id": "c752262e-cf42-4075-917b-95ffcb5ceeeb",
            }
        }
    )


class HealthResponse(BaseModel):
    status: str = Field(examples=["ok"])
    timestamp: datetime = Field(examples=["2026-01-01T12:00:00.000000+00:00"])
