"""
Storefront Backend — Stored Image Route
=========================================

Serves images written by LocalImageUploader (UPLOAD_BACKEND=local). With
the ImageKit backend product URLs point at the ImageKit CDN and this route
is unused.
"""

import mimetypes
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.config import settings
from app.exceptions import NotFoundError, ValidationError
from app.schemas.common import ErrorResponse

router = APIRouter(prefix="/api", tags=["Files"])


@router.get(
    "/files/{file_path:path}",
    summary="Serve a stored product image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Invalid path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    storage_root = Path(settings.storage_root).resolve()
    full_path = (storage_root / file_path).resolve()

    # Reject anything that resolves outside the storage root (../ traversal)
    if not full_path.is_relative_to(storage_root):
        raise ValidationError(message="Invalid file path", field="path")

    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    media_type, _ = mimetypes.guess_type(full_path.name)
    return FileResponse(
        path=str(full_path),
        media_type=media_type or "application/octet-stream",
        headers={"Cache-Control": "public, max-age=86400"},
    )
