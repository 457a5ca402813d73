"""
Storefront Backend — Request Logging Middleware
=================================================

One access-log line per request: method, path, status, duration, request
id, client IP and, once get_current_actor has resolved a token, the acting
user id. Level follows the status: 5xx ERROR, 4xx WARNING, everything else
INFO. /health is skipped (probes hit it every few seconds).

Never logged: bodies (passwords, file bytes) and the Authorization header.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("storefront.access")

SKIPPED_PATHS = {"/health"}


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        fields = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": elapsed_ms,
            "client_ip": request.client.host if request.client else "unknown",
            # Set by get_current_actor; absent for anonymous requests
            "actor_id": getattr(request.state, "actor_id", None),
        }
        logger.log(
            _level_for(response.status_code),
            "%(method)s %(path)s %(status)d %(duration_ms).1fms [%(request_id)s] actor=%(actor_id)s from %(client_ip)s",
            fields,
            extra=fields,
        )
        return response
