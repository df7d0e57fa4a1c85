"""S3-compatible storage service implementation.

Uses ``boto3`` to talk to any S3-compatible object store: AWS S3, MinIO or
LocalStack.  boto3 is synchronous, so every call runs in a worker thread.
"""

import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from bookstore.domain.repositories import IStorageService, StoredObject

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class S3StorageService(IStorageService):
    """Cover storage in an S3 bucket (AWS, MinIO or LocalStack).

    Parameters
    ----------
    bucket_name : str
        Bucket holding the objects; made on the first write when missing.
    region : str
        Region passed to the boto3 client.
    endpoint_url : str | None
        Non-AWS endpoint such as ``http://minio:9000``; leave unset for AWS.
    aws_access_key_id / aws_secret_access_key : str | None
        Static credentials; without them boto3 resolves its usual chain.
    public_base_url : str
        Prefix for the URLs handed back by :meth:`put`.  Defaults to the
        local ``/assets`` route, which proxies reads through :meth:`get`.
    client : Any
        Pre-built boto3 client (tests).
    """

    def __init__(
        self,
        bucket_name: str = "bookstore-assets",
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        public_base_url: str = "/assets",
        client: Optional[Any] = None,
    ):
        self.bucket_name = bucket_name
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url.rstrip("/")
        self._client = client or self._build_client(aws_access_key_id, aws_secret_access_key)
        self._bucket_checked = False

    # -- boto3 wiring --
    def _build_client(self, access_key: Optional[str], secret_key: Optional[str]) -> Any:
        kwargs: dict[str, Any] = {"region_name": self.region}
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        if access_key and secret_key:
            kwargs["aws_access_key_id"] = access_key
            kwargs["aws_secret_access_key"] = secret_key
        client = boto3.client("s3", **kwargs)
        logger.info(
            "S3 client initialised (endpoint=%s, bucket=%s)",
            self.endpoint_url or "AWS",
            self.bucket_name,
        )
        return client

    def _ensure_bucket(self) -> None:
        """Make sure the bucket exists, once per service instance.

        MinIO and LocalStack start without buckets.
        """
        if self._bucket_checked:
            return
        try:
            self._client.head_bucket(Bucket=self.bucket_name)
            logger.debug("Bucket '%s' already exists", self.bucket_name)
        except ClientError:
            self._client.create_bucket(Bucket=self.bucket_name)
            logger.info("Created bucket '%s'", self.bucket_name)
        self._bucket_checked = True

    # -- object operations --
    def _put_sync(self, key: str, data: bytes, content_type: str) -> None:
        self._ensure_bucket()
        self._client.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=data,
            ContentType=content_type,
        )

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Upload *data* under *key* and return its public URL."""
        await asyncio.to_thread(self._put_sync, key, data, content_type)
        logger.info("S3: uploaded %s (%d bytes)", key, len(data))
        return self.public_url(key)

    def _get_sync(self, key: str) -> Optional[StoredObject]:
        try:
            response = self._client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise
        return StoredObject(
            data=response["Body"].read(),
            content_type=response.get("ContentType") or "application/octet-stream",
        )

    async def get(self, key: str) -> Optional[StoredObject]:
        """Download an object by key; ``None`` when it does not exist."""
        stored = await asyncio.to_thread(self._get_sync, key)
        if stored is not None:
            logger.debug("S3: retrieved %s (%d bytes)", key, len(stored.data))
        return stored

    async def delete(self, key: str) -> bool:
        """Remove *key*; S3 reports success for absent keys too."""
        await asyncio.to_thread(self._client.delete_object, Bucket=self.bucket_name, Key=key)
        logger.info("S3: deleted %s", key)
        return True

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"
