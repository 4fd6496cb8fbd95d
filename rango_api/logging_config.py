from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from rango_api.errors import ConfigError, RegistrationError
from rango_api.version import APP_VERSION

SERVICE_NAME = "rango-api"

_handler: Optional[logging.Handler] = None


class JsonFormatter(logging.Formatter):
    """One JSON object per line, stamped with the service, version and runtime mode.

    Bootstrap failures carry their structured context: the invalid fields of a
    ``ConfigError`` and the route group of a ``RegistrationError``.
    """

    EXTRA_FIELDS = ("request_id", "phase", "route_group", "token", "path", "error")

    def __init__(self, *, environment: Optional[str] = None) -> None:
        super().__init__()
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "version": APP_VERSION,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.environment:
            payload["environment"] = self.environment
        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info:
            exc = record.exc_info[1]
            if isinstance(exc, ConfigError):
                payload["invalid_fields"] = exc.fields
            elif isinstance(exc, RegistrationError):
                payload.setdefault("route_group", exc.group)
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(*, level: str = "INFO", json_logs: bool = True, environment: Optional[str] = None) -> None:
    """Install (or swap) the service's single root handler.

    Handlers added by anything else, such as a test runner, are left alone.
    """
    global _handler

    root = logging.getLogger()
    handler = logging.StreamHandler()
    if json_logs:
        handler.setFormatter(JsonFormatter(environment=environment))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))

    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    root.setLevel(level.upper())
    _handler = handler
