import base64
import logging
import mimetypes
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
from uuid import uuid4

from fastapi import UploadFile

from app.core.errors import ImageProcessingFailure, InvalidUpload

logger = logging.getLogger("uvicorn.error")

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
UPLOAD_MAX_BYTES = int(os.getenv("UPLOAD_MAX_BYTES", str(5 * 1024 * 1024)))
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}


def configure_uploads(upload_dir: str) -> None:
    global UPLOAD_DIR
    UPLOAD_DIR = upload_dir


class StagedImage:
    """An uploaded image written to the upload area for one request."""

    def __init__(self, path: Path, mime_type: str, filename: str) -> None:
        self.path = path
        self.mime_type = mime_type
        self.filename = filename
        self.released = False

    def read_base64(self) -> str:
        try:
            data = self.path.read_bytes()
        except OSError as exc:
            logger.exception("upload_read_error path=%s", self.path)
            raise ImageProcessingFailure("Failed to process image file.", details="Could not read image file.") from exc
        return base64.b64encode(data).decode("ascii")

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self.path.unlink(missing_ok=True)
        logger.info("Deleted temporary file: %s", self.path)


def _declared_mime_type(upload: UploadFile) -> str:
    if upload.content_type and upload.content_type.startswith("image/"):
        return upload.content_type
    guessed, _ = mimetypes.guess_type(upload.filename or "")
    return guessed or "application/octet-stream"


@contextmanager
def staged_image(upload: Optional[UploadFile]) -> Iterator[Optional[StagedImage]]:
    """Stage ``upload`` on disk for the duration of the ``with`` block.

    Yields ``None`` when no file was sent. The staged file is removed exactly
    once when the block exits, whether it returns or raises.
    """
    if upload is None or not upload.filename:
        yield None
        return

    extension = Path(upload.filename).suffix.lower()
    if extension not in ALLOWED_IMAGE_EXTENSIONS:
        raise InvalidUpload("Only image files are allowed!")
    data = upload.file.read(UPLOAD_MAX_BYTES + 1)
    if not data:
        raise InvalidUpload("Uploaded image is empty.")
    if len(data) > UPLOAD_MAX_BYTES:
        raise InvalidUpload(f"Image too large. Max size is {UPLOAD_MAX_BYTES // (1024 * 1024)}MB.")

    upload_dir = Path(UPLOAD_DIR)
    path = upload_dir / f"image-{int(time.time() * 1000)}-{uuid4().hex[:9]}{extension}"
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as exc:
        logger.exception("upload_stage_error path=%s", path)
        path.unlink(missing_ok=True)
        raise ImageProcessingFailure("Failed to process image file.", details=str(exc)[:220]) from exc

    staged = StagedImage(path=path, mime_type=_declared_mime_type(upload), filename=upload.filename)
    try:
        yield staged
    finally:
        staged.release()
