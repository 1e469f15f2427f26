"""Run the proxy: ``python -m ttb_cachex``."""

import logging
import sys

import uvicorn

from ttb_cachex.app import create_app
from ttb_cachex.config import Settings
from ttb_cachex.exceptions import ConfigurationError

logger = logging.getLogger("ttb_cachex")


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        logger.error("ERROR: %s", exc)
        return 1

    logging.getLogger().setLevel(settings.log_level)
    logger.info("Cache proxy server listening on port %s", settings.port)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
