"""Attachment file storage.

Files land in the uploads directory under a generated name; messages
only ever reference the returned URL, size and type.
"""

import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from ..config import MAX_UPLOAD_BYTES
from ..errors import ValidationError
from ..logging_config import get_logger

logger = get_logger(__name__)


class UploadTooLarge(ValidationError):
    """File exceeds the upload limit."""


@dataclass
class StoredFile:
    url: str
    file_name: str
    size: int
    content_type: str | None


class AttachmentStore:
    """Writes uploaded files to disk and issues their public URLs."""

    def __init__(
        self,
        uploads_dir: Path,
        public_base_url: str = "",
        max_bytes: int = MAX_UPLOAD_BYTES,
    ):
        self._dir = Path(uploads_dir)
        self._base_url = public_base_url.rstrip("/")
        self._max_bytes = max_bytes
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def save(
        self, original_name: str, data: bytes | None, content_type: str | None = None
    ) -> StoredFile:
        """Store file content under a generated name. Empty files are allowed."""
        if data is None:
            raise ValidationError("No file uploaded")
        if len(data) > self._max_bytes:
            raise UploadTooLarge(f"File exceeds {self._max_bytes} bytes")

        stored_name = self._generate_name(original_name)
        (self._dir / stored_name).write_bytes(data)

        logger.info(
            "File stored",
            extra={"context": {"file": stored_name, "size": len(data), "type": content_type}},
        )
        return StoredFile(
            url=f"{self._base_url}/uploads/{stored_name}",
            file_name=original_name,
            size=len(data),
            content_type=content_type,
        )

    @staticmethod
    def _generate_name(original_name: str) -> str:
        # never trust the client's name beyond its extension
        suffix = Path(original_name or "").suffix.lower()
        if not suffix[1:].isalnum():
            suffix = ""
        return f"file-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"
