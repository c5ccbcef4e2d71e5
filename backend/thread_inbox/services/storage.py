"""Attachment storage for chat images.

Files land on local disk under ``UPLOAD_DIR`` and are served from
``UPLOAD_URL_PREFIX``. A failed upload never leaves a partial file behind;
a successful upload whose message is never created stays as an orphan.
"""

import logging
import mimetypes
import os
import uuid
from typing import BinaryIO, Iterable

from ..core.config import settings
from ..utils.errors import UploadError

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024

_EXT_BY_TYPE = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class LocalAttachmentStorage:
    def __init__(
        self,
        root: str,
        url_prefix: str = "/uploads",
        max_bytes: int = 10 * 1024 * 1024,
        allowed_prefixes: Iterable[str] = ("image/",),
    ):
        self.root = os.path.abspath(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = int(max_bytes)
        self.allowed_prefixes = tuple(p.lower() for p in allowed_prefixes)

    def _content_type(self, filename: str | None, content_type: str | None) -> str:
        ct = (content_type or "").split(";")[0].strip().lower()
        if not ct or ct == "application/octet-stream":
            ct = (mimetypes.guess_type(filename or "")[0] or "").lower()
        return ct

    def _extension(self, filename: str | None, ct: str) -> str:
        _, ext = os.path.splitext(filename or "")
        if ext:
            return ext.lower()
        return _EXT_BY_TYPE.get(ct, ".jpg")

    def upload(self, filename: str | None, content_type: str | None, fileobj: BinaryIO) -> str:
        """Store ``fileobj`` and return its public URL; raises ``UploadError``."""
        ct = self._content_type(filename, content_type)
        if not ct or not any(ct.startswith(p) for p in self.allowed_prefixes):
            raise UploadError("Only image uploads are allowed")

        unique_name = f"{uuid.uuid4().hex}{self._extension(filename, ct)}"
        save_path = os.path.join(self.root, unique_name)
        written = 0
        try:
            os.makedirs(self.root, exist_ok=True)
            with open(save_path, "wb") as buffer:
                while True:
                    chunk = fileobj.read(_CHUNK)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise UploadError(f"File exceeds {self.max_bytes} bytes")
                    buffer.write(chunk)
        except UploadError:
            self._discard(save_path)
            raise
        except OSError as exc:
            self._discard(save_path)
            logger.error("Attachment write failed: %s", exc)
            raise UploadError("Could not store file") from exc

        if written == 0:
            self._discard(save_path)
            raise UploadError("File is empty")

        logger.info("Stored attachment %s (%d bytes, %s)", unique_name, written, ct)
        return f"{self.url_prefix}/{unique_name}"

    def _discard(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove partial upload %s: %s", path, exc)


def get_attachment_storage() -> LocalAttachmentStorage:
    return LocalAttachmentStorage(
        settings.UPLOAD_DIR,
        url_prefix=settings.UPLOAD_URL_PREFIX,
        max_bytes=settings.UPLOAD_MAX_BYTES,
        allowed_prefixes=settings.upload_allowed_prefixes,
    )
