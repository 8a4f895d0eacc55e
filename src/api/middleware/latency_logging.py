"""Request latency logging middleware for performance monitoring."""

import logging
import re
import time
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

# Thresholds for log levels (in milliseconds)
SLOW_REQUEST_THRESHOLD_MS = 1000
VERY_SLOW_REQUEST_THRESHOLD_MS = 3000

QUIET_PATHS = ("/health", "/health/ready")

# Conversation detail is re-fetched by every open chat on a timer
_POLLED_PATH = re.compile(
    r"^/api/v1/conversations/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_polled_request(method: str, path: str) -> bool:
    """Check whether a request is a synchronizer poll of a conversation."""
    return method == "GET" and bool(_POLLED_PATH.match(path))


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Middleware to log request latency.

    Health checks and conversation polls are logged at debug level unless
    they fail or run slow; everything else is logged at info or above.

    Args:
        request: The incoming request.
        call_next: The next middleware/handler in the chain.

    Returns:
        Response: The response from the handler.
    """
    start_time = time.perf_counter()

    method = request.method
    path = request.url.path
    quiet = path in QUIET_PATHS or is_polled_request(method, path)

    response = None
    error_occurred = False

    try:
        response = await call_next(request)
        return response
    except Exception:
        error_occurred = True
        raise
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code if response else 500

        log_data = {
            "method": method,
            "path": path,
            "status_code": status_code,
            "latency_ms": round(latency_ms, 2),
            "error": error_occurred,
        }
        log_msg = f"{method} {path} - {status_code} - {latency_ms:.2f}ms"

        if error_occurred or status_code >= 500:
            logger.error(log_msg, extra=log_data)
        elif latency_ms > VERY_SLOW_REQUEST_THRESHOLD_MS:
            logger.error(f"VERY SLOW REQUEST: {log_msg}", extra=log_data)
        elif latency_ms > SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(f"SLOW REQUEST: {log_msg}", extra=log_data)
        elif status_code >= 400:
            logger.warning(log_msg, extra=log_data)
        elif quiet:
            logger.debug(log_msg, extra=log_data)
        else:
            logger.info(log_msg, extra=log_data)
