"""Per-request id, response timing and one access log line per request.

An incoming ``X-Request-ID`` is reused when it is a short token of safe
characters, so ids from the frontend proxy show up in our logs; anything
else is replaced with a fresh id.
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..core.logging_config import request_id_var

logger = logging.getLogger(__name__)

_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._\-]{1,64}")

# Health checks get no access log line.
_QUIET_PATHS = frozenset({"/health"})


def resolve_request_id(header_value):
    if header_value and _VALID_REQUEST_ID.fullmatch(header_value):
        return header_value
    return uuid.uuid4().hex[:16]


class RequestContextMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get("x-request-id"))
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{elapsed_ms}ms"

            path = request.url.path
            if path not in _QUIET_PATHS:
                level = logging.WARNING if response.status_code >= 500 else logging.INFO
                logger.log(
                    level,
                    "%s %s -> %d (%.1fms)", request.method, path, response.status_code, elapsed_ms,
                    extra={"method": request.method, "path": path,
                           "status_code": response.status_code, "duration_ms": elapsed_ms},
                )
            return response
        finally:
            request_id_var.reset(token)
