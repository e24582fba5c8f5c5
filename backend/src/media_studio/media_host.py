"""Thin wrapper around the Cloudinary SDK.

Route handlers and processors only talk to :class:`MediaHost`, which keeps the
SDK's global configuration in one place and turns SDK failures into
:class:`~.exceptions.UploadError`.
"""

from __future__ import annotations

import io
import logging
from typing import Any, Dict

import cloudinary
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
import cloudinary.utils

from . import config
from .exceptions import ConfigurationError, UploadError

logger = logging.getLogger(__name__)


class MediaHost:
    def __init__(
        self,
        cloud_name: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
    ):
        self.cloud_name = cloud_name or config.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key or config.CLOUDINARY_API_KEY
        self.api_secret = api_secret or config.CLOUDINARY_API_SECRET
        cloudinary.config(
            cloud_name=self.cloud_name,
            api_key=self.api_key,
            api_secret=self.api_secret,
            secure=True,
        )

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def require_credentials(self) -> None:
        if not self.configured:
            raise ConfigurationError("Missing Cloudinary credentials")

    def upload_bytes(self, data: bytes, **options: Any) -> Dict[str, Any]:
        """Upload raw bytes and return the SDK's response dict."""
        try:
            result = cloudinary.uploader.upload(io.BytesIO(data), **options)
        except cloudinary.exceptions.Error as exc:
            raise UploadError(f"Upload to media host failed: {exc}") from exc
        logger.info(
            "Uploaded %s bytes as %s (%s)",
            result.get("bytes"),
            result.get("public_id"),
            options.get("resource_type", "image"),
        )
        return result

    def upload_remote(self, source_public_id: str, **options: Any) -> Dict[str, Any]:
        """Re-upload an existing asset by URL, used to trigger detection add-ons."""
        return cloudinary.uploader.upload(self.url(source_public_id), **options)

    def resource(self, public_id: str, **options: Any) -> Dict[str, Any]:
        return cloudinary.api.resource(public_id, **options)

    def url(self, public_id: str, **options: Any) -> str:
        url, _options = cloudinary.utils.cloudinary_url(public_id, **options)
        return url

    def signed_url(self, public_id: str, **options: Any) -> str:
        return self.url(public_id, sign_url=True, type="upload", **options)

    def verify_notification(
        self, body: str, timestamp: str | None, signature: str | None, valid_for: int
    ) -> bool:
        if not timestamp or not signature:
            return False
        try:
            return cloudinary.utils.verify_notification_signature(
                body, int(timestamp), signature, valid_for=valid_for
            )
        except (TypeError, ValueError):
            return False
