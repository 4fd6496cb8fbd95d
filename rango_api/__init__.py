from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from fastapi import FastAPI

from rango_api.config import EnvConfig
from rango_api.container import ENV_CONFIG, ROUTER, SERVER_FACTORY, SWAGGER_CONFIG, ServiceRegistry, build_container
from rango_api.errors import BootstrapError
from rango_api.logging_config import configure_logging

logger = logging.getLogger("rango_api.bootstrap")


@dataclass(frozen=True)
class BootstrapResult:
    server: FastAPI
    config: EnvConfig


async def main(container: ServiceRegistry | None = None) -> BootstrapResult:
    """Assemble the application: config, server, docs, then routes.

    The order is fixed. Docs are attached before routes so the generated
    document covers every route. Any failure propagates and no server is
    returned.
    """
    if container is None:
        container = build_container()

    phase = "config"
    try:
        config = container.resolve(ENV_CONFIG)
        configure_logging(level=config.LOG_LEVEL, json_logs=config.LOG_JSON, environment=config.NODE_ENV)
        logger.info("config_loaded", extra={"phase": phase})

        phase = "server"
        server = container.resolve(SERVER_FACTORY).build(config)
        logger.info("server_built", extra={"phase": phase})

        phase = "docs"
        await container.resolve(SWAGGER_CONFIG).register(server)
        logger.info("docs_registered", extra={"phase": phase})

        phase = "routes"
        await container.resolve(ROUTER).register(server)
        logger.info("routes_registered", extra={"phase": phase})
    except BootstrapError as exc:
        logger.error("bootstrap_failed", extra={"phase": phase, "error": str(exc)})
        raise

    return BootstrapResult(server=server, config=config)


def create_app(container: ServiceRegistry | None = None) -> FastAPI:
    """Synchronous wrapper around ``main``; call it outside a running event loop."""
    return asyncio.run(main(container)).server
