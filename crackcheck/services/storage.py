"""Object storage on local disk: <storage_dir>/<bucket>/<key>, served by the app under /storage."""
import logging
import secrets
import time
from pathlib import Path

from crackcheck.core.config import settings

logger = logging.getLogger(__name__)

CRACK_IMAGES_BUCKET = "crack-images"
IMAGES_BUCKET = "images"
BLOG_THUMBNAIL_PREFIX = "blog_thumbnails"

EXTENSIONS_BY_TYPE = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
}


class StorageError(Exception):
    pass


def storage_root() -> Path:
    return Path(settings.storage_dir).resolve()


def object_key(prefix: str, filename: str | None, content_type: str | None = None) -> str:
    """'<prefix>/<epoch ms>-<random>.<ext>'"""
    ext = ""
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[-1].lower()
    if not ext.isalnum() or len(ext) > 5:
        ext = EXTENSIONS_BY_TYPE.get(content_type or "", "bin")
    return f"{prefix}/{int(time.time() * 1000)}-{secrets.token_hex(4)}.{ext}"


def public_url(bucket: str, key: str) -> str:
    return f"{settings.public_base_url}/storage/{bucket}/{key}"


def put_object(bucket: str, key: str, data: bytes) -> str:
    root = storage_root()
    path = (root / bucket / key).resolve()
    if root not in path.parents:
        raise StorageError(f"Invalid object key: {key}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        logger.exception("Storage write failed: %s/%s", bucket, key)
        raise StorageError(str(e)) from e
    return public_url(bucket, key)
