from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Any, List, Literal

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rango_api.errors import ConfigError

NodeEnv = Literal["development", "test", "production"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Port = Annotated[int, Field(gt=0, le=65535)]

DEFAULT_ENV_FILE = ".env"
TEST_ENV_FILE = ".env.test"


class EnvConfig(BaseSettings):
    """Validated, read-only snapshot of the process configuration."""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        frozen=True,
    )

    NODE_ENV: NodeEnv = "production"
    API_PORT: Port = 3333
    DEV_PORT: Port = 3004
    CORS_ORIGIN: str = "*"

    DATABASE_CLIENT: str = "pg"
    DATABASE_HOST: str = "localhost"
    DATABASE_URL: str = ""

    LOG_LEVEL: LogLevel = "INFO"
    LOG_JSON: bool = True
    DOCS_ENABLED: bool = True

    @model_validator(mode="before")
    @classmethod
    def _blank_means_default(cls, data: Any) -> Any:
        # Only non-string fields fall back to their default on "".
        if not isinstance(data, Mapping):
            return data
        cleaned = dict(data)
        for name, field in cls.model_fields.items():
            if field.annotation is str:
                continue
            value = cleaned.get(name)
            if isinstance(value, str) and not value.strip():
                cleaned.pop(name)
        return cleaned

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @staticmethod
    def _parse_csv(value: str) -> List[str]:
        return [item.strip() for item in value.split(",") if item.strip()]

    @property
    def listen_port(self) -> int:
        return self.DEV_PORT if self.NODE_ENV == "development" else self.API_PORT

    @property
    def is_test(self) -> bool:
        return self.NODE_ENV == "test"

    @property
    def cors_allow_origins_list(self) -> List[str]:
        # A blank value allows no origin at all.
        return self._parse_csv(self.CORS_ORIGIN)


def env_file_for(node_env: str | None, base_dir: str | Path | None = None) -> Path:
    """Return the dotenv file read for the given runtime mode."""
    name = TEST_ENV_FILE if node_env == "test" else DEFAULT_ENV_FILE
    root = Path(base_dir) if base_dir is not None else Path.cwd()
    return root / name


def _problems(exc: ValidationError) -> list[tuple[str, str]]:
    problems: list[tuple[str, str]] = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[0]) if loc else "__root__"
        problems.append((field, str(err.get("msg", "invalid value"))))
    return problems


def load(source: Mapping[str, str] | None = None, *, base_dir: str | Path | None = None) -> EnvConfig:
    """Validate configuration into an ``EnvConfig`` or raise ``ConfigError``.

    With an explicit ``source`` only that mapping is validated. Without one the
    process environment is read together with ``.env`` (or ``.env.test`` when
    ``NODE_ENV=test``); real environment variables take precedence over the file.
    """
    try:
        if source is not None:
            return EnvConfig.model_validate(dict(source))
        env_file = env_file_for(os.environ.get("NODE_ENV"), base_dir)
        return EnvConfig(_env_file=env_file)  # type: ignore[call-arg]
    except ValidationError as exc:
        raise ConfigError(_problems(exc)) from exc
