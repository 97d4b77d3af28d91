"""
Image uploads for student registrations.

Photos and signatures go to an S3-compatible bucket (DigitalOcean Spaces,
AWS S3, MinIO, ...) and the public URL is stored on the student record.
"""

import logging
import os
import time
from typing import Optional

import boto3
from fastapi import UploadFile

import config

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png"}
CONTENT_TYPES = {"jpg": "image/jpeg", "jpeg": "image/jpeg", "png": "image/png"}


class InvalidImage(ValueError):
    pass


def image_extension(field_name: str, upload: UploadFile) -> str:
    ext = os.path.splitext(upload.filename or "")[1].lower().lstrip(".")
    if ext not in ALLOWED_EXTENSIONS:
        raise InvalidImage(f"{field_name} must be a jpg, jpeg or png image")
    return ext


class ImageStorage:
    def __init__(self, client, bucket: str, folder: str, public_base_url: str):
        self.client = client
        self.bucket = bucket
        self.folder = folder.strip("/")
        self.public_base_url = public_base_url.rstrip("/")

    def upload_image(self, field_name: str, upload: UploadFile) -> str:
        """Store ``upload`` and return its public URL."""
        ext = image_extension(field_name, upload)
        key = f"{self.folder}/{int(time.time() * 1000)}-{field_name}.{ext}"
        upload.file.seek(0)
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=upload.file.read(),
            ContentType=CONTENT_TYPES[ext],
            ACL="public-read",
        )
        logger.info(f"Uploaded {field_name} to {self.bucket}/{key}")
        return f"{self.public_base_url}/{key}"


_storage: Optional[ImageStorage] = None


def get_storage() -> Optional[ImageStorage]:
    """FastAPI dependency; ``None`` when no bucket is configured."""
    global _storage
    if _storage is not None:
        return _storage
    if not (config.SPACES_BUCKET and config.SPACES_ENDPOINT and config.SPACES_KEY and config.SPACES_SECRET):
        return None
    client = boto3.client(
        "s3",
        region_name=(config.SPACES_REGION or "us-east-1"),
        endpoint_url=config.SPACES_ENDPOINT,
        aws_access_key_id=config.SPACES_KEY,
        aws_secret_access_key=config.SPACES_SECRET,
    )
    base_url = config.SPACES_CDN_BASE_URL or f"{config.SPACES_ENDPOINT.rstrip('/')}/{config.SPACES_BUCKET}"
    _storage = ImageStorage(client, config.SPACES_BUCKET, config.UPLOAD_FOLDER, base_url)
    return _storage
