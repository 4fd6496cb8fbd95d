from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine

from rango_api.config import EnvConfig
from rango_api.errors import ConfigError

DRIVER_BY_CLIENT = {
    "pg": "postgresql+psycopg",
    "postgres": "postgresql+psycopg",
    "postgresql": "postgresql+psycopg",
    "sqlite": "sqlite",
}


def database_url(config: EnvConfig) -> str:
    explicit = config.DATABASE_URL.strip()
    if explicit:
        return explicit

    client = config.DATABASE_CLIENT.strip().lower()
    driver = DRIVER_BY_CLIENT.get(client)
    if driver is None:
        supported = ", ".join(sorted(DRIVER_BY_CLIENT))
        raise ConfigError([("DATABASE_CLIENT", f"unsupported client {client!r} (expected one of: {supported})")])
    if driver == "sqlite":
        return "sqlite://"
    return URL.create(driver, host=config.DATABASE_HOST.strip() or "localhost").render_as_string(hide_password=False)


def init_db(url: str) -> Engine:
    # create_engine does not connect; the first checkout does.
    return create_engine(url, pool_pre_ping=True, future=True)
