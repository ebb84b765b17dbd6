# servicehub/services/upload_service.py
"""
Local disk storage for booking attachments.

Files are validated (count, MIME family, size), written to the uploads
directory under a generated name and served by the static mount at
``/uploads``. Callers that fail after saving hand the stored paths back
to ``cleanup`` so no orphaned files remain.
"""

from dataclasses import dataclass
import logging
from pathlib import Path
import re
import secrets
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

from fastapi import UploadFile

from ..core.config import settings
from ..core.constants import ALLOWED_UPLOAD_MIME_PREFIXES, UPLOADS_URL_PREFIX
from ..core.exceptions import ValidationException

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
MAX_SAFE_NAME_LENGTH = 100
MAX_ORIGINAL_NAME_LENGTH = 255


@dataclass
class IncomingFile:
    """A file read from the request, not yet stored."""

    filename: str
    content_type: str
    data: bytes


@dataclass
class StoredFile:
    path: Path
    stored_name: str
    original_name: str
    mimetype: str
    size_bytes: int

    @property
    def url(self) -> str:
        return f"{UPLOADS_URL_PREFIX}/{self.stored_name}"

    def to_attachment(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "filename": self.original_name,
            "mimetype": self.mimetype,
            "size_bytes": self.size_bytes,
        }


def safe_filename(name: Optional[str]) -> str:
    """Reduce a client filename to a safe basename."""
    base = Path(name or "").name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned[-MAX_SAFE_NAME_LENGTH:] or "file"


def generate_stored_name(original: Optional[str]) -> str:
    """``{timestamp_ms}-{random}-{safe original name}``"""
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}-{safe_filename(original)}"


class UploadService:
    """Validate and store booking attachments on local disk."""

    def __init__(
        self,
        uploads_dir: Optional[str] = None,
        max_bytes: Optional[int] = None,
        max_files: Optional[int] = None,
    ) -> None:
        self.uploads_dir = Path(uploads_dir or settings.uploads_dir)
        self.max_bytes = max_bytes or settings.upload_max_bytes
        self.max_files = max_files or settings.upload_max_files

    def check_count(self, count: int) -> None:
        if count > self.max_files:
            raise ValidationException(f"A maximum of {self.max_files} attachments is allowed")

    def _too_large(self, filename: str, size_bytes: int) -> ValidationException:
        return ValidationException(
            f"File {filename} exceeds the {self.max_bytes // (1024 * 1024)}MB limit",
            details={"filename": filename, "size_bytes": size_bytes},
        )

    async def read_upload(self, upload: UploadFile) -> IncomingFile:
        """
        Read one multipart part without buffering more than the size limit.

        Raises:
            ValidationException: If the declared or actual size is over the limit
        """
        filename = upload.filename or ""
        if upload.size is not None and upload.size > self.max_bytes:
            raise self._too_large(filename, upload.size)
        data = await upload.read(self.max_bytes + 1)
        if len(data) > self.max_bytes:
            raise self._too_large(filename, len(data))
        return IncomingFile(filename=filename, content_type=upload.content_type or "", data=data)

    def validate(self, files: Sequence[IncomingFile]) -> None:
        """
        Raises:
            ValidationException: Too many files, a disallowed type, or a file over the size limit
        """
        self.check_count(len(files))

        for incoming in files:
            mimetype = (incoming.content_type or "").lower()
            if not mimetype.startswith(ALLOWED_UPLOAD_MIME_PREFIXES):
                raise ValidationException(
                    "Invalid file type! Only images and videos are allowed.",
                    details={"filename": incoming.filename, "mimetype": mimetype},
                )
            if len(incoming.data) > self.max_bytes:
                raise self._too_large(incoming.filename, len(incoming.data))

    def save_all(self, files: Sequence[IncomingFile]) -> List[StoredFile]:
        """Validate then write every file. Partial writes are removed on failure."""
        self.validate(files)
        if not files:
            return []

        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        stored: List[StoredFile] = []
        try:
            for incoming in files:
                stored_name = generate_stored_name(incoming.filename)
                original_name = (incoming.filename or stored_name)[:MAX_ORIGINAL_NAME_LENGTH]
                path = self.uploads_dir / stored_name
                path.write_bytes(incoming.data)
                stored.append(
                    StoredFile(
                        path=path,
                        stored_name=stored_name,
                        original_name=original_name,
                        mimetype=(incoming.content_type or "").lower(),
                        size_bytes=len(incoming.data),
                    )
                )
        except OSError:
            self.cleanup(item.path for item in stored)
            raise

        logger.info(f"[UPLOADS] Stored {len(stored)} file(s) in {self.uploads_dir}")
        return stored

    def cleanup(self, paths: Iterable[Path]) -> int:
        """Delete stored files; missing files are skipped. Returns the number removed."""
        removed = 0
        for path in paths:
            try:
                Path(path).unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error(f"[UPLOADS] Failed to delete {path}: {e}")
        if removed:
            logger.info(f"[UPLOADS] Cleaned up {removed} file(s)")
        return removed
