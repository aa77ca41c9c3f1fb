"""Attachment upload endpoint."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from chatrelay.api import deps
from chatrelay.config import Settings
from chatrelay.services.uploads import UploadService
from chatrelay.utils.exceptions import UploadError, handle_upload_error

router = APIRouter(tags=["uploads"])


@router.post("/upload")
async def upload_file(
    file: Optional[UploadFile] = File(default=None),
    settings: Settings = Depends(deps.get_app_settings),
) -> dict[str, str]:
    """Store an image or audio attachment and return its public URL."""

    service = UploadService(settings.UPLOAD_DIR, settings.BASE_URL, settings.UPLOAD_MAX_BYTES)
    try:
        file_url = await service.store(file)
    except UploadError as exc:
        raise handle_upload_error(exc) from exc
    return {"fileUrl": file_url}
