"""
S3 storage for uploaded offering memoranda.
Browsers upload directly via presigned PUT URLs; the OCR endpoint reads objects back by key.
"""
from __future__ import annotations

import logging
import uuid
from io import BytesIO
from typing import Any, BinaryIO, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from config import Settings
from errors import DocumentTooLargeError, NotFoundError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/pdf"
CHUNK_SIZE = 1024 * 1024
_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


def build_client(settings: Settings):
    """boto3 S3 client with explicit socket timeouts and no automatic retries."""
    return boto3.client(
        "s3",
        region_name=settings.s3_region,
        aws_access_key_id=settings.s3_access_key,
        aws_secret_access_key=settings.s3_secret_key,
        config=BotoConfig(
            signature_version="s3v4",
            connect_timeout=settings.s3_connect_timeout_seconds,
            read_timeout=settings.s3_read_timeout_seconds,
            retries={"max_attempts": 1, "mode": "standard"},
        ),
    )


class S3Service:
    def __init__(self, settings: Settings, client: Any = None):
        self.bucket = settings.s3_bucket
        self.expires_in = settings.upload_url_expires_in
        self._client = client if client is not None else build_client(settings)

    def _require_bucket(self) -> None:
        if not self.bucket:
            raise StorageError("S3_BUCKET is not configured")

    def generate_upload_url(self, content_type: Optional[str] = DEFAULT_CONTENT_TYPE) -> dict[str, Any]:
        """Presigned PUT for a fresh random key. Nothing is uploaded here."""
        self._require_bucket()
        file_name = f"{uuid.uuid4()}.pdf"
        try:
            upload_url = self._client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self.bucket,
                    "Key": file_name,
                    "ContentType": content_type or DEFAULT_CONTENT_TYPE,
                },
                ExpiresIn=self.expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("[s3] presign put failed key=%s error=%s", file_name, e)
            raise StorageError("Failed to generate upload URL") from e
        return {"uploadUrl": upload_url, "fileName": file_name, "expiresIn": self.expires_in}

    def generate_download_url(self, file_name: str) -> str:
        self._require_bucket()
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket,
                    "Key": file_name,
                    "ResponseContentType": DEFAULT_CONTENT_TYPE,
                },
                ExpiresIn=self.expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("[s3] presign get failed key=%s error=%s", file_name, e)
            raise StorageError("Failed to generate download URL") from e

    def get_file(self, file_name: str) -> BinaryIO:
        """Return the object's body stream. Raises NotFoundError for unknown keys."""
        self._require_bucket()
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=file_name)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                raise NotFoundError(f"No such object: {file_name}") from e
            logger.error("[s3] get_object failed key=%s code=%s error=%s", file_name, code, e)
            raise StorageError("Failed to get file from S3") from e
        except BotoCoreError as e:
            logger.error("[s3] get_object failed key=%s error=%s", file_name, e)
            raise StorageError("Failed to get file from S3") from e
        return response["Body"]

    @staticmethod
    def stream_to_buffer(stream: BinaryIO, max_bytes: Optional[int] = None) -> bytes:
        """Drain stream fully into memory and close it; enforce max_bytes when given."""
        buf = BytesIO()
        try:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                buf.write(chunk)
                if max_bytes is not None and buf.tell() > max_bytes:
                    raise DocumentTooLargeError(max_bytes)
        except BotoCoreError as e:
            raise StorageError("Failed to read file from S3") from e
        finally:
            stream.close()
        return buf.getvalue()
