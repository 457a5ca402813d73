"""
Storefront Backend — Image File Validation
============================================

What:  Validates uploaded product images and names them for the image host.
Who:   Called by ProductService and AdminService before every upload.

Validation order (cheapest first):
    1. Extension check: no bytes read
    2. Size check: rejects empty files and files over max_file_size
    3. Declared content type check: must be an image/* type when present
    4. Content check: libmagic reads the leading bytes, so a renamed PDF
       or executable is rejected whatever its name and declared type

Naming:
    Files are renamed to IMG-<epoch millis>.<ext>. The original client file
    name is never sent to the image host, so it cannot carry path segments
    or odd characters into stored URLs.
"""

import logging
import time
from pathlib import Path
from typing import Optional

import magic

from app.config import settings
from app.exceptions import ValidationError
from app.services.upload_base import UploadedImage

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}
ALLOWED_MIME_TYPES = {"image/png", "image/jpeg", "image/webp", "image/gif"}


class FileService:
    def __init__(self, max_file_size: Optional[int] = None):
        self.max_file_size = max_file_size or settings.max_file_size

    def validate_extension(self, filename: str) -> str:
        """
        Returns the normalized extension without the dot (e.g. "jpg").

        Raises:
            ValidationError if the extension is missing or not an image type.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext.lstrip(".")

    def validate_size(self, size: int) -> None:
        if size == 0:
            raise ValidationError(message="Uploaded image is empty", field="image")
        if size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"Image is too large ({size / (1024 * 1024):.1f}MB). Maximum is {max_mb:.0f}MB.",
                field="image",
                context={"max_size_bytes": self.max_file_size, "actual_size": size},
            )

    def validate_content_type(self, content_type: Optional[str]) -> None:
        # Browsers and curl always send one; absent means a hand-built request
        if content_type and not content_type.startswith("image/"):
            raise ValidationError(
                message=f"Content type '{content_type}' is not an image",
                field="image",
                context={"content_type": content_type},
            )

    def validate_mime_type(self, content: bytes) -> str:
        """
        Detect the real type from the file header (magic numbers).

        Returns:
            The detected MIME type, e.g. "image/jpeg".
        """
        try:
            mime_type = magic.from_buffer(content[:2048], mime=True)
        except magic.MagicException as e:
            logger.warning("libmagic could not classify upload: %s", e)
            raise ValidationError(
                message="Could not verify the image type",
                field="image",
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=f"File content is '{mime_type}', not a supported image",
                field="image",
                context={"detected_type": mime_type, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )
        return mime_type

    def validate(self, image: UploadedImage) -> str:
        """Runs every check and returns the normalized extension."""
        ext = self.validate_extension(image.filename)
        self.validate_size(image.size)
        self.validate_content_type(image.content_type)
        self.validate_mime_type(image.content)
        return ext

    @staticmethod
    def generate_file_name(extension: str) -> str:
        """IMG-<epoch millis>.<ext>, e.g. IMG-1718000000000.jpg"""
        return f"IMG-{int(time.time() * 1000)}.{extension}"

    def prepare(self, image: UploadedImage) -> str:
        """Validate `image` and return the file name to upload it under."""
        ext = self.validate(image)
        file_name = self.generate_file_name(ext)
        logger.debug("Prepared upload %s (%d bytes)", file_name, image.size)
        return file_name


file_service = FileService()
