"""Image storage adapters implementing the ``ImageStore`` port.

``CloudinaryUploader`` talks to Cloudinary's signed upload REST endpoint
with ``httpx``; the API secret only ever takes part in the request signature
and is never sent, logged or shown in ``repr``. ``ImageStoreStub`` keeps
uploads in memory for tests and local development.
"""

import hashlib
import logging
import time
import uuid
from collections import OrderedDict
from typing import Dict, Optional

import httpx

from .. import settings
from ..middleware import REQUEST_ID_CTX
from .domain import ImageStore, ImageUploadError, check_image_filename

logger = logging.getLogger(__name__)


def sign_params(params: Dict[str, str], api_secret: str) -> str:
    """Compute Cloudinary's SHA-1 request signature.

    Parameters are sorted by name, joined as ``k=v`` pairs with ``&``, and
    the secret is appended before hashing.

    Args:
        params: Parameters taking part in the signature (not ``file``,
            ``api_key`` or ``signature``).
        api_secret: Cloudinary API secret.

    Returns:
        str: Hex-encoded SHA-1 digest.
    """
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


class CloudinaryUploader(ImageStore):
    """HTTP client for Cloudinary's image upload API."""

    def __init__(
        self,
        cloud_name: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
        folder: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self.cloud_name = cloud_name or settings.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key or settings.CLOUDINARY_API_KEY
        self._api_secret = api_secret or settings.CLOUDINARY_API_SECRET
        self.folder = folder if folder is not None else settings.CLOUDINARY_FOLDER
        self.base_url = (base_url or settings.CLOUDINARY_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.GATEWAY_TIMEOUT_SECS

    def __repr__(self) -> str:
        return f"CloudinaryUploader(cloud_name={self.cloud_name!r}, folder={self.folder!r}, api_secret='***')"

    def upload(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        """Upload an image and return its ``secure_url``.

        Raises:
            UnsupportedImage: When the filename is not jpg, jpeg or png.
            ImageUploadError: On transport errors, non-2xx answers, or an
                answer without a URL.
        """
        check_image_filename(filename)
        params = {"folder": self.folder, "timestamp": str(int(time.time()))}
        data = dict(params, api_key=self.api_key, signature=sign_params(params, self._api_secret))
        headers = {}
        rid = REQUEST_ID_CTX.get()
        if rid and rid != "-":
            headers["X-Request-ID"] = rid

        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(
                    f"{self.base_url}/{self.cloud_name}/image/upload",
                    data=data,
                    files={"file": (filename, content, content_type or "application/octet-stream")},
                    headers=headers or None,
                )
        except httpx.RequestError as e:
            logger.error("image upload transport error", extra={"error": type(e).__name__})
            raise ImageUploadError("Image upload failed") from None

        if not (200 <= resp.status_code < 300):
            logger.error("image upload rejected", extra={"http_status": resp.status_code})
            raise ImageUploadError("Image upload failed")

        try:
            body = resp.json()
        except ValueError:
            body = {}
        url = (body.get("secure_url") or body.get("url")) if isinstance(body, dict) else None
        if not url:
            raise ImageUploadError("Image upload failed")
        logger.info("image uploaded", extra={"image_url": url})
        return url


class ImageStoreStub(ImageStore):
    """Stub implementation of ``ImageStore`` keeping the last ``max_entries``
    uploads in memory."""

    def __init__(self, base_url: str = "https://images.invalid", max_entries: int = 100):
        self.base_url = base_url
        self.max_entries = max_entries
        self.uploads: "OrderedDict[str, bytes]" = OrderedDict()

    def upload(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        ext = check_image_filename(filename)
        url = f"{self.base_url}/{settings.CLOUDINARY_FOLDER}/{uuid.uuid4().hex}.{ext}"
        self.uploads[url] = content
        while len(self.uploads) > self.max_entries:
            self.uploads.popitem(last=False)
        return url
