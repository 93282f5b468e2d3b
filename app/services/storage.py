"""Local file storage for equipment documents."""
import logging
import re
from pathlib import Path
from typing import Optional

from app import errors
from app.config import settings
from app.models.equipment import DocumentKind

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def safe_filename(filename: str) -> str:
    """Replace everything outside [A-Za-z0-9._-] with '_'."""
    return re.sub(r"[^a-zA-Z0-9._-]", "_", filename)


def content_type_for(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


class LocalStorage:
    """Stores files below ``root`` and serves them under ``url_prefix``."""

    def __init__(self, root: str, url_prefix: str, max_size_mb: int = 20):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_size = max_size_mb * 1024 * 1024

    def storage_path(self, equipment_id: int, kind: DocumentKind, filename: str) -> str:
        return f"equipment/{equipment_id}/{kind.value}_{safe_filename(filename)}"

    def url_for(self, path: str) -> str:
        return f"{self.url_prefix}/{path}"

    def save(self, equipment_id: int, kind: DocumentKind, filename: str, data: bytes) -> str:
        """Write the file and return its public URL."""
        if not filename:
            raise errors.ValidationError("Filename is required")
        if len(data) > self.max_size:
            raise errors.ValidationError(
                f"File size cannot exceed {self.max_size // (1024 * 1024)}MB"
            )

        path = self.storage_path(equipment_id, kind, filename)
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Stored %s (%d bytes)", path, len(data))
        return self.url_for(path)

    def delete(self, url: Optional[str]) -> bool:
        """Remove the file behind a URL this storage handed out.

        URLs pointing elsewhere are left alone. Returns whether a file was removed.
        """
        if not url or not url.startswith(self.url_prefix + "/"):
            return False
        path = url[len(self.url_prefix) + 1:]
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents or not target.is_file():
            return False
        target.unlink()
        logger.info("Deleted %s", path)
        return True


def get_storage() -> LocalStorage:
    """Storage dependency."""
    return LocalStorage(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX, settings.MAX_UPLOAD_SIZE_MB)
