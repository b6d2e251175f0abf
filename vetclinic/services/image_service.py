"""
Filesystem storage for pet pictures.

Files are named ``<uuid4 hex><extension>`` under one directory. The
identifier handed back to callers is that file name; anything that is not a
plain file name produced this way is rejected.
"""

import logging
import re
import uuid
from pathlib import Path
from typing import Iterable, Optional, Union

from vetclinic.core.exceptions import ClinicError, NotFoundError, ValidationError
from vetclinic.domain.interfaces import IImageStorage

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = ("png", "jpg", "jpeg", "gif", "webp")
_IDENTIFIER_PATTERN = re.compile(r"^[0-9a-f]{32}\.(?:" + "|".join(ALLOWED_EXTENSIONS) + r")$")


def allowed_extension(filename: str) -> str:
    """Return the lower-cased extension of ``filename`` or raise ValidationError."""
    suffix = Path(filename or "").suffix.lower().lstrip(".")
    if suffix not in ALLOWED_EXTENSIONS:
        raise ValidationError.single(
            "file", f"Unsupported image type. Allowed: {', '.join(ALLOWED_EXTENSIONS)}"
        )
    return suffix


class LocalImageStorage(IImageStorage):
    """Stores image bytes on the local filesystem."""

    def __init__(self, base_dir: Union[str, Path]) -> None:
        self.base_dir = Path(base_dir)

    def store(self, data: bytes, filename: str) -> str:
        if not data:
            raise ValidationError.single("file", "Uploaded file is empty")
        extension = allowed_extension(filename)
        identifier = f"{uuid.uuid4().hex}.{extension}"

        self.base_dir.mkdir(parents=True, exist_ok=True)
        (self.base_dir / identifier).write_bytes(data)
        logger.info(
            "Image stored",
            extra={"context": {"image_id": identifier, "size_bytes": len(data)}},
        )
        return identifier

    def load(self, identifier: str) -> bytes:
        path = self._path_for(identifier)
        if not path.is_file():
            raise NotFoundError("Image", identifier)
        return path.read_bytes()

    def delete(self, identifier: str) -> None:
        path = self._path_for(identifier)
        path.unlink(missing_ok=True)
        logger.info("Image deleted", extra={"context": {"image_id": identifier}})

    def _path_for(self, identifier: str) -> Path:
        if not identifier or not _IDENTIFIER_PATTERN.fullmatch(identifier):
            raise ValidationError.single("image_id", "Invalid image identifier")
        return self.base_dir / identifier


def discard_images(storage: Optional[IImageStorage], identifiers: Iterable[str]) -> None:
    """Remove images whose records are already gone.

    Runs after the owning transaction committed, so a failure is logged and
    leaves an orphan file rather than undoing the delete.
    """
    if storage is None:
        return
    for identifier in identifiers:
        try:
            storage.delete(identifier)
        except (OSError, ClinicError):
            logger.error(
                "Failed to delete stored image",
                exc_info=True,
                extra={"context": {"image_id": identifier}},
            )
