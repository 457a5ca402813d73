"""
Image uploader selection.

`image_uploader` is the process-wide uploader picked by UPLOAD_BACKEND.
Product and admin services take it as a constructor argument, so tests
swap it by assigning a fake to `service.uploader`.
"""

import logging

from app.config import Settings, settings
from app.services.imagekit_service import build_imagekit_uploader
from app.services.local_storage_service import LocalImageUploader
from app.services.upload_base import ImageUploader

logger = logging.getLogger(__name__)


def build_image_uploader(config: Settings) -> ImageUploader:
    if config.upload_backend == "local":
        logger.info("Using local image storage at %s", config.storage_root)
        return LocalImageUploader(
            storage_root=config.storage_root,
            public_base_url=config.public_files_url,
        )
    logger.info("Using ImageKit image uploads (folder=%s)", config.imagekit_folder)
    return build_imagekit_uploader(config)


image_uploader = build_image_uploader(settings)
