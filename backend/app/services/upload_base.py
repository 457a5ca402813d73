"""
Storefront Backend — Image Uploader Interface
===============================================

What:  Abstract contract for the external image-hosting collaborator.
Why:   Product services only need "bytes + file name in, URL out". Keeping
       that behind an ABC lets the hosted backend (ImageKit) and the local
       disk backend be swapped by configuration, and lets tests inject fakes.

Contract:
    upload(file_buffer, file_name) -> UploadResult
        Stores the bytes and returns a retrievable URL.
        Raises UpstreamError (or CircuitBreakerOpenError) on failure; never
        leaks transport-specific exceptions.
    health_check() -> bool
        Cheap reachability probe used by GET /health.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UploadedImage:
    """An image received from a multipart request, already read into memory."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class UploadResult:
    url: str
    file_id: Optional[str] = None
    name: Optional[str] = None


class ImageUploader(ABC):
    """Abstract image-hosting client."""

    @abstractmethod
    async def upload(self, file_buffer: bytes, file_name: str) -> UploadResult:
        """Store `file_buffer` under `file_name` and return its public URL."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...
