from __future__ import annotations

import asyncio
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .base import ObjectNotFoundError, ObjectStore, StoreError

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


class S3ObjectStore(ObjectStore):
    """
    S3-compatible object store (AWS, MinIO, Tigris, R2, ...).

    boto3 clients are blocking and thread-safe, so each call is pushed to a
    worker thread with asyncio.to_thread.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        *,
        client: Any | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix
        self.client = client or boto3.client("s3", endpoint_url=endpoint_url)

    def _key(self, path: str) -> str:
        p = path.lstrip("/")
        if self.prefix:
            return f"{self.prefix.rstrip('/')}/{p}"
        return p

    def _get_sync(self, path: str) -> bytes:
        try:
            resp = self.client.get_object(Bucket=self.bucket, Key=self._key(path))
            return resp["Body"].read()
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(path) from None
            raise StoreError(f"get_object failed for {path}: {e}") from e
        except BotoCoreError as e:
            raise StoreError(f"get_object failed for {path}: {e}") from e

    def _put_sync(self, path: str, data: bytes, content_type: str) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=self._key(path),
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StoreError(f"put_object failed for {path}: {e}") from e

    def _delete_sync(self, path: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=self._key(path))
        except (ClientError, BotoCoreError) as e:
            raise StoreError(f"delete_object failed for {path}: {e}") from e

    async def get(self, path: str) -> bytes:
        return await asyncio.to_thread(self._get_sync, path)

    async def put(self, path: str, data: bytes, content_type: str) -> None:
        await asyncio.to_thread(self._put_sync, path, data, content_type)

    async def delete(self, path: str) -> None:
        await asyncio.to_thread(self._delete_sync, path)
