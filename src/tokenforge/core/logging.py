"""Logging configuration for the tokenforge token endpoint.

Every record carries the id of the token request being served (see
``track_request``), so interleaved async requests can be told apart.
"""

import logging
import os
import sys
from contextvars import ContextVar

LOGGER_NAME = "tokenforge"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(request_id)s%(message)s"

# Id of the request being handled by the current task
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    """Stamps ``record.request_id`` with ``[<id>] `` or an empty string."""

    def filter(self, record):
        request_id = request_id_ctx.get()
        record.request_id = f"[{request_id}] " if request_id else ""
        return True


def _debug_from_env() -> bool:
    return os.getenv("TOKENFORGE_DEBUG", "").lower() in ("true", "1", "yes")


def configure_logging(debug: bool | None = None) -> logging.Logger:
    """Configure stderr logging and return the ``tokenforge`` logger.

    Args:
        debug: Log at DEBUG level; read from ``TOKENFORGE_DEBUG`` when None

    Returns:
        The package logger
    """
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    package_logger = logging.getLogger(LOGGER_NAME)

    # Handlers without the filter would fail on %(request_id)s
    for handler in [*logging.root.handlers, *package_logger.handlers]:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())

    if debug is None:
        debug = _debug_from_env()
    package_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    package_logger.debug("Debug logging enabled")

    return package_logger


logger = configure_logging()
