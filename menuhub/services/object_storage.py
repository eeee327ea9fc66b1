from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile

from menuhub.core import config
from menuhub.core.errors import MenuHubError, StorageFailure, UploadFailed, ValidationError

logger = logging.getLogger(__name__)
STORAGE_PREFIX = "[OBJECT_STORAGE]"

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}
ALLOWED_FOLDERS = {"menu-items", "promotions", "logos", "categories"}


class ObjectStorage(Protocol):
    def upload(self, file: UploadFile, *, tenant_id: int, folder: str) -> str:
        ...

    def delete(self, url: str) -> bool:
        ...


def _sanitize_key_part(part: str) -> str:
    return part.strip().strip("/")


def build_object_key(tenant_id: int, folder: str, filename: Optional[str], content_type: str) -> str:
    extension = Path(filename or "").suffix.lower() or ALLOWED_IMAGE_TYPES.get(content_type, "")
    return "/".join(["tenants", str(tenant_id), _sanitize_key_part(folder), f"{uuid4().hex}{extension}"])


def validate_image_upload(file: UploadFile) -> int:
    """Check type and size of an uploaded image; returns its size in bytes."""
    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(f"Unsupported image type: {content_type or 'unknown'}")
    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)
    if size == 0:
        raise ValidationError("Uploaded file is empty")
    if size > config.UPLOAD_MAX_BYTES:
        raise ValidationError(f"Image is larger than {config.UPLOAD_MAX_BYTES // (1024 * 1024)} MB")
    return size


class R2ObjectStorage:
    """S3-compatible bucket on Cloudflare R2."""

    def __init__(
        self,
        *,
        account_id: str,
        access_key_id: str,
        secret_access_key: str,
        bucket_name: str,
        public_url: str,
    ) -> None:
        self.bucket_name = bucket_name
        self.public_url = public_url.rstrip("/")
        self._client = boto3.client(
            "s3",
            endpoint_url=f"https://{account_id}.r2.cloudflarestorage.com",
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name="auto",
        )

    def upload(self, file: UploadFile, *, tenant_id: int, folder: str) -> str:
        validate_image_upload(file)
        content_type = (file.content_type or "").lower()
        object_key = build_object_key(tenant_id, folder, file.filename, content_type)
        try:
            file.file.seek(0)
            self._client.upload_fileobj(
                file.file,
                self.bucket_name,
                object_key,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error(
                "%s upload failed tenant_id=%s key=%s error=%s",
                STORAGE_PREFIX,
                tenant_id,
                object_key,
                exc,
            )
            raise UploadFailed() from exc
        logger.info("%s uploaded tenant_id=%s key=%s", STORAGE_PREFIX, tenant_id, object_key)
        return f"{self.public_url}/{object_key}"

    def key_for_url(self, url: str) -> Optional[str]:
        prefix = f"{self.public_url}/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):]

    def delete(self, url: str) -> bool:
        """Delete an object previously returned by ``upload``; foreign urls are left alone."""
        object_key = self.key_for_url(url)
        if object_key is None:
            return False
        try:
            self._client.delete_object(Bucket=self.bucket_name, Key=object_key)
        except (BotoCoreError, ClientError) as exc:
            logger.error("%s delete failed key=%s error=%s", STORAGE_PREFIX, object_key, exc)
            raise StorageFailure() from exc
        logger.info("%s deleted key=%s", STORAGE_PREFIX, object_key)
        return True


def get_object_storage() -> ObjectStorage:
    missing = [
        name
        for name, value in (
            ("R2_ACCOUNT_ID", config.R2_ACCOUNT_ID),
            ("R2_ACCESS_KEY_ID", config.R2_ACCESS_KEY_ID),
            ("R2_SECRET_ACCESS_KEY", config.R2_SECRET_ACCESS_KEY),
            ("R2_BUCKET_NAME", config.R2_BUCKET_NAME),
            ("R2_PUBLIC_URL", config.R2_PUBLIC_URL),
        )
        if not value
    ]
    if missing:
        logger.error("%s storage not configured missing=%s", STORAGE_PREFIX, missing)
        raise StorageFailure("Image storage is not configured")
    return R2ObjectStorage(
        account_id=config.R2_ACCOUNT_ID,
        access_key_id=config.R2_ACCESS_KEY_ID,
        secret_access_key=config.R2_SECRET_ACCESS_KEY,
        bucket_name=config.R2_BUCKET_NAME,
        public_url=config.R2_PUBLIC_URL,
    )


def discard_stored_image(storage: ObjectStorage, url: Optional[str]) -> None:
    """Best-effort removal of an image that is no longer referenced."""
    if not url:
        return
    try:
        storage.delete(url)
    except MenuHubError as exc:
        logger.warning("%s orphaned object left behind url=%s error=%s", STORAGE_PREFIX, url, exc.detail)
