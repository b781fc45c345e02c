"""
Modern Blog API — Upload Route Handler
========================================

What:  POST /api/upload, authenticated image upload for post media.
How:   Reads the multipart `file` field, hands it to FileService, returns the
       public URL. The file is always closed, success or failure.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from blog_api.middleware.auth import get_current_user
from blog_api.models.user import User
from blog_api.schemas.common import ErrorResponse, UploadResponse
from blog_api.services.file_service import file_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Uploads"])


@router.post(
    "/upload",
    status_code=201,
    response_model=UploadResponse,
    responses={
        400: {"description": "Unsupported, empty or oversized file", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
    },
    summary="Upload an image",
    description="PNG, JPEG, GIF or WebP. Returns the path the static server exposes it under.",
)
async def upload_image(
    file: UploadFile = File(..., description="Image file"),
    current_user: User = Depends(get_current_user),
) -> UploadResponse:
    try:
        content = await file.read()
        logger.info(
            "Upload from %s: filename=%s size=%d",
            current_user.username,
            file.filename or "unknown",
            len(content),
        )
        return await file_service.save_upload(
            filename=file.filename or "",
            content=content,
            content_length=file.size,
        )
    finally:
        await file.close()
