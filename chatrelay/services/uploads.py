"""Storage of chat attachments on the local filesystem."""
from __future__ import annotations

import secrets
import time
from pathlib import Path
from urllib.parse import quote

from fastapi import UploadFile
from loguru import logger

from chatrelay.utils.exceptions import UploadError

ALLOWED_CONTENT_PREFIXES = ("image/", "audio/")
NO_FILE_MESSAGE = "No file provided or file too large."
WRONG_TYPE_MESSAGE = "Only images and audio files are allowed."


class UploadService:
    """Validate an uploaded attachment and store it under a unique name."""

    def __init__(self, upload_dir: Path, base_url: str, max_bytes: int):
        self.upload_dir = upload_dir
        self.base_url = base_url.rstrip("/")
        self.max_bytes = max_bytes

    async def store(self, upload: UploadFile | None) -> str:
        """Persist the file and return the public URL it is served from."""

        if upload is None or not upload.filename:
            raise UploadError(NO_FILE_MESSAGE)

        content_type = upload.content_type or ""
        if not content_type.startswith(ALLOWED_CONTENT_PREFIXES):
            raise UploadError(WRONG_TYPE_MESSAGE, {"content_type": content_type})

        data = await upload.read(self.max_bytes + 1)
        if not data or len(data) > self.max_bytes:
            raise UploadError(NO_FILE_MESSAGE, {"max_bytes": self.max_bytes})

        filename = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}-{Path(upload.filename).name}"
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        (self.upload_dir / filename).write_bytes(data)
        logger.info("Stored upload", filename=filename, size=len(data), content_type=content_type)
        return f"{self.base_url}/uploads/{quote(filename)}"
