"""Request tracking for tokenforge endpoints."""

import functools
import time
import traceback
import uuid
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from .logging import logger, request_id_ctx

P = ParamSpec("P")
R = TypeVar("R")


def track_request(
    endpoint_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Give each call a request id and log its outcome and duration.

    The id is visible to every log record emitted while the call runs. The
    HTTP status is logged when the result has one. Arguments are never
    logged: they carry client secrets, passwords and codes.

    Args:
        endpoint_name: Name used in the log lines
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            token = request_id_ctx.set(uuid.uuid4().hex[:8])
            started = time.perf_counter()
            logger.info("Starting %s request", endpoint_name)

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "Failed %s after %.3fs: %s",
                    endpoint_name,
                    time.perf_counter() - started,
                    e,
                )
                logger.debug("Traceback: %s", traceback.format_exc())
                raise
            else:
                status = getattr(result, "status_code", None)
                logger.info(
                    "Completed %s%s in %.3fs",
                    endpoint_name,
                    f" ({status})" if status is not None else "",
                    time.perf_counter() - started,
                )
                return result
            finally:
                request_id_ctx.reset(token)

        return wrapper

    return decorator
