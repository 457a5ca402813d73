"""
Storefront Backend — Auth Endpoint Rate Limiting
==================================================

What:  Per-IP sliding window limiter on the credential endpoints
       (RATE_LIMITED_PATHS, login and register by default).
Why:   Slows password guessing and bulk account creation. Catalog
       endpoints are not limited.

Algorithm: Sliding Window Log
    1. Each IP keeps the timestamps of its recent requests
    2. Timestamps older than the window are dropped on every request
    3. At rate_limit_requests timestamps the request is rejected with 429
       and Retry-After set to when the oldest one leaves the window

State is in-process memory. With several workers each keeps its own
window, so the effective limit scales with the worker count.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings
from app.errors import storefront_error_response
from app.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        limited_paths: Optional[Iterable[str]] = None,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        super().__init__(app)
        self.limited_paths = set(
            limited_paths if limited_paths is not None else settings.rate_limited_paths_list
        )
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path.rstrip("/") not in self.limited_paths:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window_seconds

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= self.max_requests:
            retry_after = int(recent[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s on %s: %d requests in %ds window",
                client_ip,
                request.url.path,
                len(recent),
                self.window_seconds,
            )
            return storefront_error_response(RateLimitExceededError(retry_after=retry_after))

        recent.append(now)

        self._seen += 1
        if self._seen % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
