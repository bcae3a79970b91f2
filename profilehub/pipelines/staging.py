"""Request-scoped temporary storage for uploaded photos."""

import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from profilehub import config
from profilehub.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhotoUpload:
    """A photo as received from the client."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class StagedPhoto:
    """A photo held in a temporary file until it reaches the blob store.

    ``release()`` removes the file; calling it again is a no-op.
    """

    def __init__(self, upload: PhotoUpload, path: str):
        self.filename = upload.filename
        self.content_type = upload.content_type
        self.size = upload.size
        self.path = path
        self.released = False

    def read(self) -> bytes:
        with open(self.path, "rb") as fh:
            return fh.read()

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass
        logger.debug(f"Released staged photo {self.path}")


class PhotoStager:
    """Writes uploads to ``upload_dir`` and guarantees their removal."""

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = upload_dir or config.UPLOAD_DIR

    def _write(self, upload: PhotoUpload) -> StagedPhoto:
        os.makedirs(self.upload_dir, exist_ok=True)
        fd, path = tempfile.mkstemp(dir=self.upload_dir, prefix="staged-", suffix=os.path.splitext(upload.filename)[1])
        with os.fdopen(fd, "wb") as fh:
            fh.write(upload.data)
        return StagedPhoto(upload, path)

    @contextmanager
    def stage(self, upload: Optional[PhotoUpload]) -> Iterator[Optional[StagedPhoto]]:
        """Yield a staged photo (or None when nothing was uploaded) and release it on exit."""
        if upload is None:
            yield None
            return
        staged = self._write(upload)
        try:
            yield staged
        finally:
            staged.release()


def check_photo(staged: Optional[StagedPhoto], *, required: bool) -> None:
    """Validate presence, type and size of a staged photo.

    Raises:
        ValidationError: on the ``photo`` field
    """
    if staged is None:
        if required:
            raise ValidationError.single("photo", "Photo is required")
        return
    if staged.content_type not in config.ALLOWED_PHOTO_TYPES:
        raise ValidationError.single("photo", "Only image files are allowed")
    if staged.size > config.MAX_PHOTO_BYTES:
        raise ValidationError.single("photo", f"Photo must be at most {config.MAX_PHOTO_BYTES // (1024 * 1024)}MB")
