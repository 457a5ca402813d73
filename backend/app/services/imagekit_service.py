"""
Storefront Backend — ImageKit Upload Service
==============================================

What:  ImageUploader backed by the ImageKit upload API.
How:   Multipart POST to imagekit_upload_url with HTTP basic auth (private
       key as the username, empty password). The JSON reply carries the
       public `url`, which is what gets stored on the product.

Resilience Strategy:
    1. tenacity retries transport errors and 5xx replies with exponential
       backoff + jitter (retry_max_attempts in total)
    2. 4xx replies are not retried: the request itself is wrong (bad key,
       rejected file) and repeating it cannot succeed
    3. A circuit breaker opens after cb_failure_threshold consecutive failed
       uploads so later requests fail fast with 503
    4. Every failure leaves this module as UpstreamError; httpx exceptions
       never reach the services
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import Settings
from app.exceptions import CircuitBreakerOpenError, UpstreamError
from app.services.circuit_breaker import CircuitBreaker
from app.services.upload_base import ImageUploader, UploadResult

logger = logging.getLogger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


class ImageKitUploader(ImageUploader):
    """
    ImageKit client with retries and a circuit breaker.

    `transport` exists so tests can plug in httpx.MockTransport; production
    uses httpx's default network transport.
    """

    def __init__(
        self,
        private_key: str,
        upload_url: str,
        folder: str = "/products",
        timeout: float = 30.0,
        max_attempts: int = 3,
        min_wait: float = 1,
        max_wait: float = 8,
        circuit_breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.private_key = private_key
        self.upload_url = upload_url
        self.folder = folder
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait
        self.circuit_breaker = circuit_breaker or CircuitBreaker(name="imagekit")
        self._transport = transport

        logger.info(
            "ImageKitUploader initialized (folder=%s, attempts=%d, breaker threshold=%d)",
            folder,
            max_attempts,
            self.circuit_breaker.failure_threshold,
        )

    async def upload(self, file_buffer: bytes, file_name: str) -> UploadResult:
        """
        Upload one image.

        Raises:
            CircuitBreakerOpenError: too many recent failures
            UpstreamError: ImageKit rejected the file or stayed unreachable
        """
        request_id = uuid.uuid4().hex[:8]
        self.circuit_breaker.can_execute()

        start = time.perf_counter()
        try:
            payload = await self._post_with_retry(file_buffer, file_name)
        except CircuitBreakerOpenError:
            raise
        except httpx.HTTPStatusError as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "[%s] ImageKit rejected %s with HTTP %d",
                request_id,
                file_name,
                e.response.status_code,
            )
            raise UpstreamError(
                message="Image upload failed. Please try again later.",
                context={"request_id": request_id, "status": e.response.status_code},
            )
        except httpx.HTTPError as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] ImageKit unreachable for %s: %s", request_id, file_name, e)
            raise UpstreamError(
                message="Image upload service is unreachable. Please try again later.",
                context={"request_id": request_id, "error_type": type(e).__name__},
            )

        url = payload.get("url")
        if not url:
            self.circuit_breaker.record_failure()
            logger.error("[%s] ImageKit reply for %s had no url", request_id, file_name)
            raise UpstreamError(
                message="Image upload returned an unexpected response.",
                context={"request_id": request_id},
            )

        self.circuit_breaker.record_success()
        logger.info(
            "[%s] Uploaded %s (%d bytes) in %.0fms",
            request_id,
            file_name,
            len(file_buffer),
            (time.perf_counter() - start) * 1000,
        )
        return UploadResult(url=url, file_id=payload.get("fileId"), name=payload.get("name"))

    async def _post_with_retry(self, file_buffer: bytes, file_name: str) -> Dict[str, Any]:
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(initial=self.min_wait, max=self.max_wait, jitter=1),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            async for attempt in retrying:
                with attempt:
                    response = await client.post(
                        self.upload_url,
                        data={
                            "fileName": file_name,
                            "folder": self.folder,
                            "useUniqueFileName": "true",
                        },
                        files={"file": (file_name, file_buffer)},
                        auth=(self.private_key, ""),
                    )
                    response.raise_for_status()
                    return response.json()
        # AsyncRetrying with reraise=True either returns above or raises
        raise UpstreamError(message="Image upload failed")

    async def health_check(self) -> bool:
        """
        Reports whether uploads are currently being attempted.

        ImageKit has no free unauthenticated ping, so this reflects the
        circuit breaker and configuration rather than a network call.
        """
        return bool(self.private_key) and self.circuit_breaker.state != CircuitBreaker.OPEN


def build_imagekit_uploader(config: Settings) -> ImageKitUploader:
    return ImageKitUploader(
        private_key=config.imagekit_private_key,
        upload_url=config.imagekit_upload_url,
        folder=config.imagekit_folder,
        timeout=config.upload_timeout,
        max_attempts=config.retry_max_attempts,
        min_wait=config.retry_min_wait,
        max_wait=config.retry_max_wait,
        circuit_breaker=CircuitBreaker(
            failure_threshold=config.cb_failure_threshold,
            recovery_timeout=config.cb_recovery_timeout,
            name="imagekit",
        ),
    )
