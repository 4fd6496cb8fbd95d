import asyncio
import logging
import sys

import uvicorn

from rango_api import main
from rango_api.errors import BootstrapError
from rango_api.logging_config import configure_logging

LISTEN_HOST = "0.0.0.0"

logger = logging.getLogger("rango_api.driver")


def run() -> int:
    try:
        result = asyncio.run(main())
    except BootstrapError:
        configure_logging()
        logger.exception("startup_failed")
        return 1

    port = result.config.listen_port
    logger.info("api_starting", extra={"path": f"http://localhost:{port}/docs"})
    uvicorn.run(result.server, host=LISTEN_HOST, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(run())
