"""
Media hosting

Binary assets (videos, thumbnails, avatars) live on Cloudinary. Uploaded
files are first written to a local temp directory, forwarded, and the
local copy is removed whether or not the upload succeeded.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from bson import ObjectId
from fastapi import Request, UploadFile
from starlette.concurrency import run_in_threadpool

from settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class MediaAsset:
    url: str
    public_id: str
    duration: Optional[float] = None


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """Recover the asset identifier from a stored delivery URL (last path segment, no extension)."""
    if not url:
        return None
    return url.rstrip("/").split("/")[-1].split(".")[0] or None


class MediaHost:
    def __init__(self, settings: Settings):
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        self.upload_dir = settings.upload_dir

    async def save_temp(self, file: UploadFile) -> str:
        os.makedirs(self.upload_dir, exist_ok=True)
        ext = os.path.splitext(file.filename or "")[1]
        path = os.path.join(self.upload_dir, f"{ObjectId()}{ext}")
        with open(path, "wb") as f:
            f.write(await file.read())
        return path

    def upload(self, local_path: Optional[str]) -> Optional[MediaAsset]:
        if not local_path:
            return None
        try:
            response = cloudinary.uploader.upload(local_path, resource_type="auto")
            return MediaAsset(
                url=response["url"],
                public_id=response["public_id"],
                duration=response.get("duration"),
            )
        except (CloudinaryError, OSError) as exc:
            logger.error("Cloudinary upload of %s failed: %s", local_path, exc)
            return None
        finally:
            if os.path.exists(local_path):
                os.remove(local_path)

    async def upload_file(self, file: Optional[UploadFile]) -> Optional[MediaAsset]:
        if file is None:
            return None
        path = await self.save_temp(file)
        # The SDK upload is a blocking HTTP call
        return await run_in_threadpool(self.upload, path)

    def delete(self, public_id: Optional[str], resource_type: str = "image") -> bool:
        # A failed remote delete never fails the request; the asset is left orphaned
        if not public_id:
            logger.warning("Skipping remote delete: no public id")
            return False
        try:
            response = cloudinary.uploader.destroy(public_id, resource_type=resource_type)
        except (CloudinaryError, OSError) as exc:
            logger.warning("Cloudinary delete of %s failed: %s", public_id, exc)
            return False
        if response.get("result") != "ok":
            logger.warning("Cloudinary delete of %s %s returned %s", resource_type, public_id, response.get("result"))
            return False
        return True

    def delete_url(self, url: Optional[str], resource_type: str = "image") -> bool:
        return self.delete(public_id_from_url(url), resource_type=resource_type)


def get_media_host(request: Request) -> MediaHost:
    return request.app.state.media
