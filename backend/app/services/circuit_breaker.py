"""
Storefront Backend — Circuit Breaker
======================================

Protects request handlers from a failing image host: after
`failure_threshold` consecutive upload failures the circuit OPENS and
uploads fail immediately with CircuitBreakerOpenError instead of each
request waiting through timeouts and retries.

State Machine:
    CLOSED ──(failures >= threshold)──▶ OPEN
    OPEN ──(recovery_timeout elapsed)──▶ HALF_OPEN
    HALF_OPEN ──(success)──▶ CLOSED
    HALF_OPEN ──(failure)──▶ OPEN

State is per process. Uvicorn async workers serve all requests of a process
from one event loop, so plain attributes are enough here.
"""

import logging
import time
from typing import Optional

from app.exceptions import CircuitBreakerOpenError

logger = logging.getLogger(__name__)


class CircuitBreaker:
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60, name: str = "upload"):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.name = name
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if a call may proceed.

        Raises:
            CircuitBreakerOpenError if the circuit is OPEN and the recovery
            timeout has not elapsed yet.
        """
        if self.state != self.OPEN:
            return True

        elapsed = time.monotonic() - (self.last_failure_time or 0)
        if elapsed >= self.recovery_timeout:
            logger.info("Circuit breaker '%s' HALF_OPEN after %.1fs", self.name, elapsed)
            self.state = self.HALF_OPEN
            return True

        remaining = max(int(self.recovery_timeout - elapsed), 1)
        raise CircuitBreakerOpenError(recovery_time=remaining)

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker '%s' CLOSED (service recovered)", self.name)
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.monotonic()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker '%s' back to OPEN (probe failed)", self.name)
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker '%s' OPEN after %d consecutive failures",
                self.name,
                self.failure_count,
            )
            self.state = self.OPEN
