"""Image uploads: validation plus a bucket-based file store served under MEDIA_URL."""
import logging
import uuid
from functools import lru_cache
from pathlib import Path

from config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
}
MAX_IMAGE_BYTES = 5 * 1024 * 1024

PRODUCT_IMAGES_BUCKET = "product-images"


class UploadRejected(Exception):
    pass


def validate_image(content_type: str, size: int) -> None:
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise UploadRejected("Invalid file type. Only JPEG, PNG, GIF, WEBP and SVG images are allowed.")
    if size > MAX_IMAGE_BYTES:
        raise UploadRejected("File is too large. Maximum size is 5MB.")
    if size == 0:
        raise UploadRejected("File is empty.")


class LocalFileStorage:
    def __init__(self, root, base_url: str = "/media"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def upload(self, bucket: str, filename: str, data: bytes, content_type: str) -> str:
        validate_image(content_type, len(data))
        ext = ALLOWED_IMAGE_TYPES[content_type]
        name = f"{uuid.uuid4().hex}{ext}"
        target = self.root / bucket / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Stored upload %s as %s/%s", filename, bucket, name)
        return f"{self.base_url}/{bucket}/{name}"


@lru_cache
def get_file_storage() -> LocalFileStorage:
    return LocalFileStorage(settings.MEDIA_ROOT, settings.MEDIA_URL)
