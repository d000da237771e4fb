import logging
from pathlib import Path
from uuid import uuid4

from fastapi import HTTPException, UploadFile

from .. import config
from ..utils.error_handlers import get_error_message, handle_file_upload_error
from ..utils.validation import sanitize_filename

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads"
UPLOAD_CHUNK_BYTES = 1024 * 1024  # 1MB
ALLOWED_PHOTO_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}
ALLOWED_PHOTO_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
}


async def save_profile_photo(file: UploadFile) -> str:
    """
    Validate and store a profile photo under UPLOAD_DIR.

    Returns the public URL path (`/uploads/<uuid>-<name>`).
    """
    if not file or not file.filename:
        raise HTTPException(status_code=400, detail=get_error_message("invalid_file_type"))

    original_filename = sanitize_filename(Path(file.filename).name)

    ext = Path(original_filename).suffix.lower()
    if ext not in ALLOWED_PHOTO_EXTENSIONS:
        raise HTTPException(status_code=400, detail=get_error_message("invalid_file_type"))

    if file.content_type and file.content_type.lower() not in ALLOWED_PHOTO_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail=get_error_message("invalid_file_type"))

    stored_filename = f"{uuid4()}-{original_filename}"
    dest = Path(config.UPLOAD_DIR) / stored_filename
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise handle_file_upload_error(e, original_filename)

    # Save file with size validation
    size = 0
    try:
        with open(dest, "wb") as out:
            while True:
                chunk = await file.read(UPLOAD_CHUNK_BYTES)
                if not chunk:
                    break
                size += len(chunk)
                if size > config.MAX_PHOTO_BYTES:
                    raise HTTPException(status_code=413, detail=get_error_message("file_too_large"))
                out.write(chunk)
    except HTTPException:
        dest.unlink(missing_ok=True)
        raise
    except OSError as e:
        dest.unlink(missing_ok=True)
        raise handle_file_upload_error(e, original_filename)

    if size == 0:
        dest.unlink(missing_ok=True)
        raise HTTPException(status_code=400, detail=get_error_message("file_corrupted"))

    logger.info("Stored profile photo %s (%d bytes)", stored_filename, size)
    return f"{UPLOADS_URL_PREFIX}/{stored_filename}"


def delete_profile_photo(photo_url: str | None) -> None:
    """Best-effort removal of a stored photo, used when registration fails after upload."""
    if not photo_url or not photo_url.startswith(f"{UPLOADS_URL_PREFIX}/"):
        return
    path = Path(config.UPLOAD_DIR) / Path(photo_url).name
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove orphaned photo %s: %s", path, e)
