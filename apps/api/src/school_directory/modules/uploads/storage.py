"""
Image Storage Backends

Pluggable storage for uploaded school images.

- LocalImageStorage: writes to a directory served by a static mount
- S3ImageStorage: uploads to an S3-compatible bucket (AWS S3, DigitalOcean
  Spaces, MinIO) and returns the public URL

The backend is chosen with STORAGE_BACKEND (local | s3).
"""

import asyncio
import logging
import re
import secrets
import time
from abc import ABC, abstractmethod
from pathlib import Path, PurePath

import boto3
from botocore.client import Config

from school_directory.core.config import Settings, settings

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def build_filename(original_name: str | None) -> str:
    """
    Unique, filesystem-safe name: `{timestamp}-{random}-{original name}`.

    Directory components are dropped, whitespace becomes `-`, and other
    unsafe characters are removed.
    """
    base = PurePath((original_name or "").replace("\\", "/")).name
    base = re.sub(r"\s+", "-", base.strip())
    base = _UNSAFE_FILENAME_CHARS.sub("", base).lstrip(".") or "image"
    timestamp = int(time.time() * 1000)
    return f"{timestamp}-{secrets.token_hex(4)}-{base}"


class ImageStorage(ABC):
    """Storage backend for uploaded images."""

    @abstractmethod
    async def save(self, content: bytes, filename: str, content_type: str) -> str:
        """
        Persist an image.

        Args:
            content: File bytes
            filename: Original client filename
            content_type: MIME type

        Returns:
            Path or URL to store on the school record
        """


class LocalImageStorage(ImageStorage):
    """Writes images to a local directory served at `url_prefix`."""

    def __init__(self, upload_dir: str | Path, url_prefix: str):
        self.upload_dir = Path(upload_dir)
        self.url_prefix = "/" + url_prefix.strip("/")

    async def save(self, content: bytes, filename: str, content_type: str) -> str:
        name = build_filename(filename)
        path = self.upload_dir / name

        def _write() -> None:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

        await asyncio.to_thread(_write)
        logger.info(f"Stored image locally: {path} ({len(content)} bytes)")
        return f"{self.url_prefix}/{name}"


class S3ImageStorage(ImageStorage):
    """Uploads images to an S3-compatible bucket with public-read ACL."""

    def __init__(
        self,
        bucket: str,
        public_url: str,
        key_prefix: str = "schoolImages",
        client=None,
    ):
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")
        self.key_prefix = key_prefix.strip("/")
        self.client = client

    @classmethod
    def from_settings(cls, config: Settings) -> "S3ImageStorage":
        client = boto3.client(
            "s3",
            region_name=config.s3_region,
            endpoint_url=config.s3_endpoint_url or None,
            aws_access_key_id=config.s3_access_key_id or None,
            aws_secret_access_key=config.s3_secret_access_key.get_secret_value() or None,
            config=Config(signature_version="s3v4"),
        )
        return cls(
            bucket=config.s3_bucket,
            public_url=config.s3_public_url,
            key_prefix=config.s3_key_prefix,
            client=client,
        )

    async def save(self, content: bytes, filename: str, content_type: str) -> str:
        name = build_filename(filename)
        key = f"{self.key_prefix}/{name}" if self.key_prefix else name

        # boto3 is synchronous; run it in a worker thread
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=content,
            ACL="public-read",
            ContentType=content_type,
        )

        logger.info(f"Stored image in bucket {self.bucket}: {key} ({len(content)} bytes)")
        return f"{self.public_url}/{key}"


_storage: ImageStorage | None = None


def create_storage(config: Settings) -> ImageStorage:
    """Build the backend selected by STORAGE_BACKEND."""
    if config.storage_backend == "s3":
        return S3ImageStorage.from_settings(config)
    return LocalImageStorage(config.upload_dir, config.upload_url_prefix)


def get_storage() -> ImageStorage:
    """
    FastAPI dependency returning the configured storage backend.

    Override in tests with `app.dependency_overrides[get_storage]`.
    """
    global _storage
    if _storage is None:
        _storage = create_storage(settings)
    return _storage
