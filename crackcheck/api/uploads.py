"""Image uploads into local object storage."""
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from crackcheck.api.deps import CurrentUser, get_current_user, require_admin
from crackcheck.constants import MAX_IMAGES_PER_ANALYSIS
from crackcheck.core.config import settings
from crackcheck.services.storage import (
    BLOG_THUMBNAIL_PREFIX,
    CRACK_IMAGES_BUCKET,
    IMAGES_BUCKET,
    StorageError,
    object_key,
    put_object,
)

log = logging.getLogger("crackcheck")

router = APIRouter(prefix="/api/upload", tags=["uploads"])


async def _read_image(file: UploadFile, max_mb: int) -> bytes:
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed")
    try:
        content = await file.read()
    except Exception as e:
        log.exception("upload read error: %s", e)
        raise HTTPException(status_code=400, detail="File could not be read.")
    if not content:
        raise HTTPException(status_code=400, detail="File is empty.")
    if len(content) > max_mb * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"File size must be less than {max_mb}MB")
    return content


@router.post("")
async def upload_images(
    files: list[UploadFile] | None = File(None),
    user: CurrentUser = Depends(get_current_user),
):
    """multipart/form-data, field name 'files' (1 to 3 images)."""
    if not files:
        raise HTTPException(status_code=400, detail="No files provided")
    if len(files) > MAX_IMAGES_PER_ANALYSIS:
        raise HTTPException(status_code=400, detail=f"Maximum {MAX_IMAGES_PER_ANALYSIS} files allowed")

    # Validate everything before writing anything
    contents = [(f, await _read_image(f, settings.upload_max_mb)) for f in files]
    urls = []
    for f, data in contents:
        key = object_key(user.id, f.filename, f.content_type)
        try:
            urls.append(put_object(CRACK_IMAGES_BUCKET, key, data))
        except StorageError:
            raise HTTPException(status_code=500, detail=f"Failed to upload {f.filename}")
    log.info("upload: user=%s files=%s", user.id, len(urls))
    return {"message": "Files uploaded successfully", "urls": urls}


@router.post("/thumbnail")
async def upload_thumbnail(
    file: UploadFile | None = File(None),
    admin: CurrentUser = Depends(require_admin),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    data = await _read_image(file, settings.thumbnail_max_mb)
    key = object_key(BLOG_THUMBNAIL_PREFIX, file.filename, file.content_type)
    try:
        url = put_object(IMAGES_BUCKET, key, data)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to upload thumbnail")
    return {"message": "Thumbnail uploaded successfully", "url": url}
