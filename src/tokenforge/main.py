"""
Entry point for running the tokenforge token endpoint.

Serves ``POST /token`` with uvicorn on the host and port from settings.
"""

import asyncio
import traceback

import uvicorn

from tokenforge.auth.routes import create_app
from tokenforge.auth.service import TokenService
from tokenforge.config import get_settings
from tokenforge.core import configure_logging, logger


async def main() -> None:
    """Build the token service from settings and serve it until shutdown."""
    settings = get_settings()
    configure_logging(settings.debug)
    try:
        service = TokenService.from_settings(settings)
        app = create_app(service, debug=settings.debug)

        logger.info("Setting up token endpoint on %s:%s...", settings.host, settings.port)
        config = uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level="debug" if settings.debug else "info",
        )
        await uvicorn.Server(config).serve()

    except Exception as e:
        logger.error("Error in main function: %s", e)
        logger.debug("Traceback: %s", traceback.format_exc())
        raise


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
