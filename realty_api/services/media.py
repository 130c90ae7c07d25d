"""
Media service for sending property photos to Cloudinary.
Accepts base64 data URIs or remote URLs and returns the hosted image URL.
"""

from typing import Any, Dict, Optional
import logging

import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from realty_api.config import Settings
from realty_api.utils.exceptions import UpstreamError

logger = logging.getLogger(__name__)


class MediaService:
    """
    Upload adapter for the external image host.

    The Cloudinary SDK is blocking, so uploads run in the thread pool.
    Credentials come from the settings object rather than the global SDK
    configuration.
    """

    DATA_IMAGE_PREFIX = "data:image/"
    URL_PREFIX = "http"

    def __init__(self, settings: Settings):
        self.credentials: Dict[str, Any] = {
            "cloud_name": settings.cloudinary_cloud_name,
            "api_key": settings.cloudinary_api_key,
            "api_secret": settings.cloudinary_api_secret,
            "secure": True,
        }

    @classmethod
    def is_embedded_image(cls, value: Optional[str]) -> bool:
        return bool(value) and value.startswith(cls.DATA_IMAGE_PREFIX)

    @classmethod
    def is_external_url(cls, value: Optional[str]) -> bool:
        return bool(value) and value.startswith(cls.URL_PREFIX)

    async def upload(self, payload: str) -> str:
        """
        Upload an image and return its durable URL.

        Args:
            payload: data:image/... URI or a remote image URL

        Returns:
            HTTPS URL of the hosted image

        Raises:
            UpstreamError: If the host rejects the upload or cannot be reached
        """
        try:
            result = await run_in_threadpool(cloudinary.uploader.upload, payload, **self.credentials)
        except Exception as e:
            logger.error(f"Image upload failed: {e}", exc_info=True)
            raise UpstreamError("Image upload failed", reason=str(e)) from e

        url = result.get("secure_url") or result.get("url")
        if not url:
            logger.error(f"Image host returned no URL (public_id: {result.get('public_id')})")
            raise UpstreamError("Image host returned no URL")

        logger.info(f"Uploaded image {result.get('public_id')}")
        return url

    async def resolve_photo_update(self, photo: Optional[str]) -> Optional[str]:
        """
        Decide the stored photo value for an update.

        - data:image/... payload: uploaded, the new URL is returned
        - http(s) URL: returned verbatim
        - anything else, including absent: None, meaning leave the photo alone
        """
        if self.is_embedded_image(photo):
            return await self.upload(photo)
        if self.is_external_url(photo):
            return photo
        return None
