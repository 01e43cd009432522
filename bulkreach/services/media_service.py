"""
Media service — validation and storage of a campaign's single attachment.

Uploads are checked before the funding protocol runs:
  - at most MEDIA_MAX_BYTES (5MB by default)
  - an image, video or PDF, judged by both the MIME type and the file
    extension

Accepted files are written under MEDIA_ROOT with a unique name only after
the campaign has been funded, so a rejected request never leaves a file
behind. If the funding then fails to commit, the written file is
discarded again.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

import aiofiles
from fastapi import UploadFile

from bulkreach.config import settings
from bulkreach.exceptions import InvalidArgumentError
from bulkreach.models.campaign import MediaType

logger = logging.getLogger(__name__)

_ALLOWED_EXTENSIONS = {
    MediaType.IMAGE: {"jpeg", "jpg", "png", "gif", "webp"},
    MediaType.VIDEO: {"mp4", "mpeg", "mov", "avi"},
    MediaType.PDF: {"pdf"},
}


@dataclass
class StagedMedia:
    """A validated upload waiting to be written to storage."""
    type: MediaType
    url: str
    filename: str
    size: int
    mime_type: str
    content: bytes

    @property
    def path(self) -> Path:
        return Path(settings.MEDIA_ROOT) / self.filename


def media_type_for(mime_type: str) -> MediaType | None:
    """Map a MIME type to a media category, or None if it isn't allowed."""
    if mime_type.startswith("image/"):
        return MediaType.IMAGE
    if mime_type.startswith("video/"):
        return MediaType.VIDEO
    if mime_type == "application/pdf":
        return MediaType.PDF
    return None


def validate_media(filename: str, mime_type: str, size: int) -> MediaType:
    """
    Check an upload's size, MIME type and extension.

    Raises:
        InvalidArgumentError: If the file is too large or not an
                              image/video/PDF.
    """
    if size > settings.MEDIA_MAX_BYTES:
        limit_mb = settings.MEDIA_MAX_BYTES // (1024 * 1024)
        raise InvalidArgumentError(f"File size exceeds the allowed limit of {limit_mb}MB.")

    category = media_type_for(mime_type)
    extension = Path(filename).suffix.lower().lstrip(".")
    if category is None or extension not in _ALLOWED_EXTENSIONS[category]:
        raise InvalidArgumentError(
            "Invalid file type. Only images, videos, and PDFs are allowed."
        )
    return category


async def stage_upload(upload: UploadFile) -> StagedMedia:
    """Read and validate an uploaded file without writing it anywhere."""
    # Read one byte past the limit so oversized files are detected without
    # buffering all of them
    content = await upload.read(settings.MEDIA_MAX_BYTES + 1)
    original_name = upload.filename or ""
    mime_type = upload.content_type or "application/octet-stream"

    category = validate_media(original_name, mime_type, len(content))

    stored_name = f"{uuid.uuid4()}{Path(original_name).suffix.lower()}"
    return StagedMedia(
        type=category,
        url=f"{settings.MEDIA_URL_PREFIX.rstrip('/')}/{stored_name}",
        filename=stored_name,
        size=len(content),
        mime_type=mime_type,
        content=content,
    )


async def store(media: StagedMedia) -> Path:
    """Write a staged upload to MEDIA_ROOT and return its path."""
    path = media.path
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "wb") as f:
        await f.write(media.content)
    logger.info(f"Stored campaign media {media.filename} ({media.size} bytes)")
    return path


def discard(media: StagedMedia) -> None:
    """Remove a stored upload whose campaign never got committed."""
    media.path.unlink(missing_ok=True)
    logger.warning(f"Discarded campaign media {media.filename}")
