"""
Uploads Router

Image upload for school records.

Endpoints:
- POST /upload - Store an image and return the path to save on a school
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile, status
from pydantic import BaseModel, Field

from school_directory.core.auth import SessionUser, get_current_user
from school_directory.core.config import settings
from school_directory.core.errors import ValidationError
from school_directory.modules.uploads.storage import ImageStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})

# Chunk size for reading uploads (64 KB)
CHUNK_SIZE_BYTES = 64 * 1024


class UploadResponse(BaseModel):
    message: str
    file_path: str = Field(..., serialization_alias="filePath")
    success: bool = True


async def read_file_with_size_limit(file: UploadFile, max_size: int) -> bytes:
    """
    Read an upload in chunks, failing as soon as it exceeds `max_size`.

    Raises:
        ValidationError: If the file is too large
    """
    chunks: list[bytes] = []
    total_size = 0

    while True:
        chunk = await file.read(CHUNK_SIZE_BYTES)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_size:
            raise ValidationError(
                f"File too large. Maximum size: {max_size // (1024 * 1024)}MB",
                extra={"field": "file"},
            )
        chunks.append(chunk)

    return b"".join(chunks)


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload School Image",
    description="""
Upload an image (JPEG, PNG, GIF or WebP) as multipart field `file`.

Returns `filePath`, the value to send as `image` when adding a school.
""",
    responses={
        400: {"description": "No file, unsupported type, empty, or too large"},
        401: {"description": "Not authenticated"},
    },
)
async def upload_image(
    file: UploadFile | None = File(None),
    user: SessionUser = Depends(get_current_user),
    storage: ImageStorage = Depends(get_storage),
) -> UploadResponse:
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(
            "Only JPEG, PNG, GIF and WebP images are allowed",
            extra={"field": "file"},
        )

    content = await read_file_with_size_limit(file, settings.max_upload_size_bytes)
    if not content:
        raise ValidationError("Uploaded file is empty", extra={"field": "file"})

    file_path = await storage.save(content, file.filename, content_type)
    logger.info(f"User {user.id} uploaded image {file_path}")

    return UploadResponse(message="File uploaded successfully", file_path=file_path)
