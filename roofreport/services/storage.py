"""Object storage for photo binaries, signatures and generated PDFs.

Two backends share one small async interface:
  S3Storage    any S3-compatible bucket (AWS, R2, MinIO) via boto3
  LocalStorage a directory on disk, used when no bucket is configured

boto3 is synchronous, so every call is pushed onto a worker thread.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
from functools import lru_cache
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from roofreport.core.config import settings
from roofreport.core.exceptions import NotFoundError, StorageError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sanitise_filename(filename: str) -> str:
    name = _UNSAFE_CHARS.sub("_", Path(filename or "file").name).strip("._")
    return name[:120] or "file"


def photo_key(report_id: str, filename: str, timestamp_ms: int) -> str:
    return f"reports/{report_id}/photos/{timestamp_ms}-{sanitise_filename(filename)}"


def signature_key(report_id: str) -> str:
    return f"reports/{report_id}/signatures/signature.png"


def complaint_pdf_key(complaint_id: str, complaint_number: str) -> str:
    return f"complaints/{complaint_id}/{sanitise_filename(complaint_number)}.pdf"


class ObjectStorage:
    """Interface shared by the storage backends."""

    name = "abstract"

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store `data` under `key` and return its public URL."""
        raise NotImplementedError

    async def get(self, key: str) -> bytes:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError

    def presigned_put_url(self, key: str, content_type: str) -> str | None:
        """Direct-to-store upload URL, or None when uploads must go through the API."""
        return None

    def public_url(self, key: str) -> str:
        raise NotImplementedError


class S3Storage(ObjectStorage):
    name = "s3"

    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: str | None = None,
        region: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        public_base_url: str | None = None,
        presign_expiry: int = 3600,
    ):
        self._bucket = bucket
        self._public_base_url = public_base_url
        self._endpoint_url = endpoint_url
        self._presign_expiry = presign_expiry
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("S3 upload failed key=%s", key)
            raise StorageError(f"Failed to store object '{key}'") from exc
        return self.public_url(key)

    async def get(self, key: str) -> bytes:
        try:
            response = await asyncio.to_thread(
                self._client.get_object, Bucket=self._bucket, Key=key
            )
            return await asyncio.to_thread(response["Body"].read)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFoundError("Stored object", key) from exc
            logger.exception("S3 download failed key=%s", key)
            raise StorageError(f"Failed to read object '{key}'") from exc
        except BotoCoreError as exc:
            logger.exception("S3 download failed key=%s", key)
            raise StorageError(f"Failed to read object '{key}'") from exc

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self._bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("S3 delete failed key=%s", key)
            raise StorageError(f"Failed to delete object '{key}'") from exc

    def presigned_put_url(self, key: str, content_type: str) -> str | None:
        try:
            return self._client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self._bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=self._presign_expiry,
            )
        except (BotoCoreError, ClientError):
            logger.warning("Could not presign upload for key=%s", key)
            return None

    def public_url(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url.rstrip('/')}/{key}"
        if self._endpoint_url:
            return f"{self._endpoint_url.rstrip('/')}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.amazonaws.com/{key}"


class LocalStorage(ObjectStorage):
    """Files under `root`, served by the app at `url_prefix`."""

    name = "local"

    def __init__(self, root: str | Path, url_prefix: str = "/media"):
        self._root = Path(root).resolve()
        self._url_prefix = url_prefix.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if self._root not in path.parents:
            raise StorageError(f"Invalid storage key '{key}'")
        return path

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            logger.exception("Local write failed key=%s", key)
            raise StorageError(f"Failed to store object '{key}'") from exc
        return self.public_url(key)

    async def get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise NotFoundError("Stored object", key)
        return await asyncio.to_thread(path.read_bytes)

    async def delete(self, key: str) -> None:
        path = self._path(key)
        await asyncio.to_thread(path.unlink, missing_ok=True)

    def public_url(self, key: str) -> str:
        return f"{self._url_prefix}/{key}"


@lru_cache
def get_storage() -> ObjectStorage:
    """Storage backend chosen from settings. Overridden in tests."""
    if settings.s3_enabled:
        logger.info("Using S3 storage bucket=%s", settings.storage_bucket)
        return S3Storage(
            settings.storage_bucket,
            endpoint_url=settings.storage_endpoint_url,
            region=settings.storage_region,
            access_key_id=settings.storage_access_key_id,
            secret_access_key=settings.storage_secret_access_key,
            public_base_url=settings.storage_public_url,
            presign_expiry=settings.presigned_url_expiry_seconds,
        )
    logger.info("Using local storage dir=%s", settings.media_dir)
    return LocalStorage(settings.media_dir)
