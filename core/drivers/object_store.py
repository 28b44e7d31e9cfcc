"""
Remote object store driver (S3, MinIO, Ceph).

Content goes straight to the bucket with a single put_object call. Some
frameworks stage the file through the local filesystem driver first and
upload the staged copy afterwards; this driver deliberately does not.
"""

import mimetypes
from contextlib import asynccontextmanager
from typing import AsyncIterator

from aiobotocore.session import get_session

from core.drivers.base import DispatchResult, Driver, DriverConfig, DriverKind, Payload
from core.errors import InvalidArgumentError
from core.logging import get_logger


logger = get_logger(__name__)


class ObjectStoreDriver(Driver):
    """
    S3-compatible upload driver.

    Config keys:
        client_id, secret, bucket  required
        endpoint_url               optional (MinIO / Ceph)
        region                     optional, defaults to us-east-1
    """

    kind = DriverKind.OBJECT_STORE
    REQUIRED_KEYS = ("client_id", "secret", "bucket")

    def __init__(self, config: DriverConfig):
        super().__init__(config)
        self.bucket = config["bucket"]
        self.endpoint = config.get("endpoint_url") or None
        self.region = config.get("region", "us-east-1")
        self._access_key = config["client_id"]
        self._secret_key = config["secret"]
        self.session = get_session()

    @asynccontextmanager
    async def _client(self) -> AsyncIterator:
        """Context manager for an S3 client."""
        async with self.session.create_client(
            "s3",
            region_name=self.region,
            endpoint_url=self.endpoint,
            aws_access_key_id=self._access_key,
            aws_secret_access_key=self._secret_key,
        ) as client:
            yield client

    @staticmethod
    def _clean_key(name: str) -> str:
        """S3 keys shouldn't start with /"""
        return name.replace("\\", "/").strip("/")

    async def execute(self, payload: Payload) -> DispatchResult:
        if not payload.name:
            raise InvalidArgumentError("Object store driver needs an object name")

        key = self._clean_key(payload.name)
        if not key:
            raise InvalidArgumentError(f"Invalid object name: {payload.name!r}")

        content_type, _ = mimetypes.guess_type(key)
        extra = {"ContentType": content_type} if content_type else {}

        async with self._client() as client:
            await client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=payload.content_bytes,
                **extra,
            )

        logger.info(
            "Object uploaded",
            driver=self.name,
            bucket=self.bucket,
            key=key,
            size=len(payload.content_bytes),
        )
        return DispatchResult(location=f"s3://{self.bucket}/{key}", driver=self.name)
