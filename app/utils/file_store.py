import logging
import os
import uuid
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import boto3
from botocore.exceptions import ClientError

from core.config import settings, FileStoreBackend

logger = logging.getLogger(__name__)

Blob = Union[bytes, BytesIO]


def _as_bytes(blob: Blob) -> bytes:
    if isinstance(blob, (bytes, bytearray)):
        return bytes(blob)
    blob.seek(0)
    return blob.read()


def _make_key(prefix: str, suggested_name: str) -> str:
    ext = os.path.splitext(suggested_name)[1].lower()
    return f"{prefix}/{uuid.uuid4()}{ext}"


class LocalFileStore:
    """Keeps blobs on the local filesystem under ``root``."""

    def __init__(self, root: Optional[Union[str, Path]] = None, prefix: str = "proofs"):
        self.root = Path(root or settings.UPLOAD_DIR)
        self.prefix = prefix

    def store(self, blob: Blob, suggested_name: str, content_type: Optional[str] = None) -> str:
        key = _make_key(self.prefix, suggested_name)
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(_as_bytes(blob))
        logger.info("Stored %s as %s", suggested_name, key)
        return key

    def retrieve(self, reference: str) -> bytes:
        path = self.root / reference
        if not path.is_file():
            raise FileNotFoundError(reference)
        return path.read_bytes()

    def delete(self, reference: str) -> None:
        path = self.root / reference
        if path.is_file():
            path.unlink()


class S3FileStore:
    def __init__(self, bucket: Optional[str] = None, prefix: str = "proofs", client=None):
        self.bucket = bucket or settings.AWS_S3_BUCKET_NAME
        self.prefix = prefix
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                region_name=settings.AWS_REGION,
            )
        return self._client

    def store(self, blob: Blob, suggested_name: str, content_type: Optional[str] = None) -> str:
        key = _make_key(self.prefix, suggested_name)
        extra_args = {"ContentType": content_type} if content_type else {}
        try:
            self.client.upload_fileobj(
                Fileobj=BytesIO(_as_bytes(blob)),
                Bucket=self.bucket,
                Key=key,
                ExtraArgs=extra_args,
            )
        except ClientError as e:
            raise RuntimeError(f"Error uploading to S3: {e}") from e
        logger.info("Uploaded %s to s3://%s/%s", suggested_name, self.bucket, key)
        return key

    def retrieve(self, reference: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=reference)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise FileNotFoundError(reference) from e
            raise RuntimeError(f"Error reading from S3: {e}") from e
        return response["Body"].read()

    def delete(self, reference: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=reference)
        except ClientError as e:
            raise RuntimeError(f"Error deleting from S3: {e}") from e


def get_file_store():
    if settings.FILE_STORE_BACKEND == FileStoreBackend.S3:
        return S3FileStore()
    return LocalFileStore()
