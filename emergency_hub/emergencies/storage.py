import io
import logging
import os
import time
from typing import List, Optional, Tuple

import cloudinary
import cloudinary.api
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from .models import PhotoUpload
from emergency_hub.shared import config
from emergency_hub.shared.errors import PartialUploadFailure, ValidationError
from emergency_hub.shared.utils import with_timeout

logger = logging.getLogger("emergencies.storage")


def _ensure_cloudinary_configured() -> None:
    """Configure Cloudinary from env; raise informative error if missing."""
    if not all([config.CLOUDINARY_CLOUD_NAME, config.CLOUDINARY_API_KEY, config.CLOUDINARY_API_SECRET]):
        raise RuntimeError(
            "Cloudinary env vars missing. Set CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET."
        )
    cloudinary.config(
        cloud_name=config.CLOUDINARY_CLOUD_NAME,
        api_key=config.CLOUDINARY_API_KEY,
        api_secret=config.CLOUDINARY_API_SECRET,
        secure=True,
    )


def photo_path(timestamp_ms: int, index: int, filename: str) -> str:
    """Blob path for a photo: emergency-images/{timestamp}-{index}-{filename}"""
    return f"{config.IMAGE_FOLDER}/{timestamp_ms}-{index}-{os.path.basename(filename)}"


def check_photo_count(photos: List[PhotoUpload]) -> None:
    if len(photos) > config.MAX_PHOTOS:
        raise ValidationError(f"Maximum {config.MAX_PHOTOS} images allowed")


def rejection_reason(photo: PhotoUpload) -> Optional[str]:
    """Why a photo cannot be stored, or None if it is acceptable."""
    if not photo.content_type or not photo.content_type.startswith("image/"):
        return "not an image"
    if photo.size == 0:
        return "empty file"
    if photo.size > config.MAX_PHOTO_BYTES:
        return "larger than 5MB"
    return None


async def upload_photo(photo: PhotoUpload, path: str) -> str:
    """Upload one photo to Cloudinary and return the secure URL."""
    _ensure_cloudinary_configured()
    public_id, _ = os.path.splitext(path)
    result = await run_in_threadpool(
        cloudinary.uploader.upload,
        io.BytesIO(photo.data),
        public_id=public_id,
        resource_type="image",
        overwrite=False,
    )
    secure_url = result.get("secure_url") or result.get("url")
    if not secure_url:
        raise RuntimeError("Cloudinary upload did not return a URL")
    logger.debug("Cloudinary upload successful: %s", secure_url)
    return secure_url


async def upload_photos(photos: List[PhotoUpload]) -> Tuple[List[str], PartialUploadFailure]:
    """
    Upload photos one by one, each under its own time box.

    Photos that are invalid, fail or time out are skipped and recorded;
    the caller still gets every URL that made it.
    """
    urls: List[str] = []
    failures = PartialUploadFailure()
    timestamp_ms = int(time.time() * 1000)

    for index, photo in enumerate(photos):
        reason = rejection_reason(photo)
        if reason:
            logger.warning(f"Image {index + 1} ({photo.filename}) skipped: {reason}")
            failures.add(index, photo.filename, reason)
            continue
        try:
            url = await with_timeout(
                upload_photo(photo, photo_path(timestamp_ms, index, photo.filename)),
                config.UPLOAD_TIMEOUT_SECONDS,
                f"Image upload {index + 1}",
            )
            urls.append(url)
        except Exception as e:
            logger.error(f"Failed to upload image {index + 1} ({photo.filename}): {e}")
            failures.add(index, photo.filename, str(e) or e.__class__.__name__)

    logger.info(f"Uploaded {len(urls)}/{len(photos)} images")
    return urls, failures


async def ping_storage() -> bool:
    """Return True when Cloudinary credentials work."""
    try:
        _ensure_cloudinary_configured()
        await run_in_threadpool(cloudinary.api.ping)
        return True
    except Exception as e:
        logger.warning(f"Storage ping failed: {e}")
        return False
