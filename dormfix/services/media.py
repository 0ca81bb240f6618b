# dormfix/services/media.py
import logging
import time

import httpx
from cloudinary.utils import api_sign_request

from dormfix.config import Settings
from dormfix.errors import UpstreamError

logger = logging.getLogger(__name__)

CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"


class MediaUploadGateway:
    """Stores image bytes on Cloudinary and returns the HTTPS delivery URL."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self.http = http
        self.cloud_name = settings.cloudinary_cloud_name
        self.api_key = settings.cloudinary_api_key
        self.api_secret = settings.cloudinary_api_secret
        self.folder = settings.upload_folder
        # Cap the longest edge and let the host pick the quality
        edge = settings.max_image_edge
        self.transformation = f"c_limit,h_{edge},w_{edge}/q_auto"

    async def upload(self, image_bytes: bytes) -> str:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise UpstreamError("Image upload failed", "Cloudinary is not configured")

        params = {
            "folder": self.folder,
            "timestamp": str(int(time.time())),
            "transformation": self.transformation,
        }
        data = {
            **params,
            "api_key": self.api_key,
            "signature": api_sign_request(params, self.api_secret),
        }

        try:
            response = await self.http.post(
                CLOUDINARY_UPLOAD_URL.format(cloud_name=self.cloud_name),
                data=data,
                files={"file": ("upload", image_bytes, "application/octet-stream")},
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Cloudinary rejected upload: %s %s", exc.response.status_code, exc.response.text)
            raise UpstreamError("Image upload failed", f"Media host returned {exc.response.status_code}")
        except (httpx.RequestError, ValueError) as exc:
            logger.error("Cloudinary upload error: %s", exc)
            raise UpstreamError("Image upload failed", str(exc))

        url = body.get("secure_url")
        if not url:
            raise UpstreamError("Image upload failed", "Media host returned no URL")
        return url
