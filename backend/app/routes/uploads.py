"""Multipart file helpers shared by the product and dashboard routes."""

import logging
from typing import List, Optional, Sequence

from fastapi import UploadFile

from app.services.upload_base import UploadedImage

logger = logging.getLogger(__name__)


async def read_upload(file: Optional[UploadFile]) -> Optional[UploadedImage]:
    """
    Read an UploadFile fully into memory and close it.

    Browsers submit an empty, nameless part when a file input is left
    blank; that counts as no file.
    """
    if file is None or not file.filename:
        return None
    try:
        content = await file.read()
    finally:
        await file.close()
    logger.debug("Received upload %s (%d bytes)", file.filename, len(content))
    return UploadedImage(filename=file.filename, content=content, content_type=file.content_type)


async def read_uploads(files: Optional[Sequence[UploadFile]]) -> List[UploadedImage]:
    images = []
    for file in files or ():
        image = await read_upload(file)
        if image is not None:
            images.append(image)
    return images
