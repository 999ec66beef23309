import logging
import os
import secrets
import shutil
import time
from pathlib import Path
from typing import BinaryIO, Optional

from .errors import ValidationError

logger = logging.getLogger(__name__)


class ImageStore:
    """Writes uploaded dish images under one directory with collision-free names."""

    def __init__(self, upload_dir: str):
        self.upload_dir = Path(upload_dir)

    def save(self, filename: Optional[str], fileobj: BinaryIO, content_type: Optional[str] = None) -> str:
        if content_type and not content_type.startswith("image/"):
            raise ValidationError("Not an image! Please upload an image.")
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        ext = os.path.splitext(filename or "")[1].lower()
        name = f"image-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"
        path = self.upload_dir / name
        with open(path, "wb") as out:
            shutil.copyfileobj(fileobj, out)
        logger.info("Stored image %s", path.as_posix())
        return path.as_posix()


def remove_image(path: str) -> bool:
    """Delete an image file. False if it was already gone; other OSErrors propagate."""
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    return True
