"""
Modern Blog API — Upload Storage Service
==========================================

What:  Validates uploaded images (featured images, inline pictures) and writes
       them to the local storage volume.
How:   extension → size → content sniffing (python-magic) → async write
       (aiofiles) to storage_root/YYYY/MM/DD/<uuid>.<ext>.
Who:   POST /api/upload.

The returned URL is `<upload_url_prefix>/<relative path>`. Serving that path is
the job of the static file server in front of the API.

Stored names are fresh UUIDs, so no part of the client's filename reaches the
file system.
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from blog_api.config import settings
from blog_api.exceptions import FileStorageError, ValidationError
from blog_api.schemas.common import UploadResponse

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


class FileService:
    """
    Directory Structure:
        uploads/
        └── 2025/
            └── 10/
                └── 19/
                    ├── a1b2c3d4-....jpg
                    └── e5f6g7h8-....png
    """

    def __init__(self, storage_root: Optional[str] = None):
        # None means "read settings at use time" so tests can patch settings
        self._storage_root = storage_root

    @property
    def storage_root(self) -> Path:
        return Path(self._storage_root or settings.storage_root).resolve()

    def validate_extension(self, filename: str) -> str:
        """Return the lowercased extension or raise ValidationError."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Reject empty files and files over max_upload_size.

        content_length is the client-reported size and is checked too, since
        some clients send a smaller body than they announce.
        """
        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty", field="file")

        max_mb = settings.max_upload_size / (1024 * 1024)
        if (content_length and content_length > settings.max_upload_size) or (
            actual_size > settings.max_upload_size
        ):
            raise ValidationError(
                message=f"File is too large. Maximum size is {max_mb:.0f}MB.",
                field="file",
                context={"actual_size": actual_size, "reported_size": content_length},
            )

    def validate_mime_type(self, content: bytes) -> str:
        """
        Sniff the content type from the file's leading bytes.

        Raises:
            ValidationError: content is not one of ALLOWED_MIME_TYPES
            FileStorageError: libmagic could not be loaded or failed
        """
        try:
            import magic

            mime_type = magic.from_buffer(content[:2048], mime=True)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=f"File content type '{mime_type}' is not an allowed image type.",
                field="file",
                context={"detected_mime": mime_type},
            )
        return mime_type

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """Return (absolute_path, relative_path) for a new YYYY/MM/DD/<uuid><ext> file."""
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        relative_path = f"{date_dir}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        absolute_path, relative_path = self._generate_storage_path(extension)
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save the uploaded file. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return str(absolute_path), relative_path

    async def save_upload(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> UploadResponse:
        """Full pipeline: validate, store, and build the public URL."""
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content)

        _, relative_path = await self.store_file(content, ext)

        prefix = settings.upload_url_prefix.rstrip("/")
        return UploadResponse(
            url=f"{prefix}/{relative_path}",
            filename=Path(relative_path).name,
            size=len(content),
        )


file_service = FileService()
