"""
Storefront Backend — Local Disk Upload Service
================================================

What:  ImageUploader that writes images under storage_root and serves them
       back through GET /api/files/{path}.
Who:   Selected with UPLOAD_BACKEND=local (development and tests).

Layout:
    <storage_root>/YYYY/MM/DD/<uuid hex>-<file name>

The uuid prefix keeps names unique even when two uploads in the same
millisecond get the same IMG-<millis> name.
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Tuple

import aiofiles

from app.exceptions import UpstreamError
from app.services.upload_base import ImageUploader, UploadResult

logger = logging.getLogger(__name__)


class LocalImageUploader(ImageUploader):
    def __init__(self, storage_root: str, public_base_url: str = "/api/files"):
        self.storage_root = Path(storage_root).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        self.storage_root.mkdir(parents=True, exist_ok=True)

    def _storage_path(self, file_name: str) -> Tuple[Path, str]:
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        # Only the final path component of file_name is used
        relative_path = f"{date_dir}/{uuid.uuid4().hex}-{Path(file_name).name}"
        return self.storage_root / relative_path, relative_path

    async def upload(self, file_buffer: bytes, file_name: str) -> UploadResult:
        absolute_path, relative_path = self._storage_path(file_name)
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(file_buffer)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", absolute_path, e)
            raise UpstreamError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": relative_path},
            )

        logger.info("Image stored: %s (%d bytes)", relative_path, len(file_buffer))
        return UploadResult(
            url=f"{self.public_base_url}/{relative_path}",
            file_id=relative_path,
            name=absolute_path.name,
        )

    async def health_check(self) -> bool:
        return self.storage_root.is_dir()
