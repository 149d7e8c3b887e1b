"""Blob storage backends.

Calls are blocking; async callers run them in the threadpool.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from referral_service.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class StorageException(Exception):
    """Raised when the object store rejects or fails an operation."""
    pass


class ObjectStore(ABC):
    """Bucketed blob storage with public and time-limited URLs."""

    @abstractmethod
    def put_object(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        cache_control: Optional[str] = None,
    ) -> str:
        """Store bytes at ``path``; never overwrites. Returns the path."""
        pass

    @abstractmethod
    def get_public_url(self, bucket: str, path: str) -> str:
        pass

    @abstractmethod
    def get_signed_url(self, bucket: str, path: str, ttl: int) -> str:
        pass

    @abstractmethod
    def remove_object(self, bucket: str, path: str) -> None:
        pass


class InMemoryObjectStore(ObjectStore):
    """Object store kept in a dictionary, for development and tests."""

    def __init__(self, base_url: str = "memory://storage"):
        self.base_url = base_url.rstrip("/")
        self.objects: Dict[Tuple[str, str], bytes] = {}
        self.content_types: Dict[Tuple[str, str], Optional[str]] = {}

    def put_object(self, bucket, path, data, content_type=None, cache_control=None):
        key = (bucket, path)
        if key in self.objects:
            raise StorageException(f"The resource already exists: {bucket}/{path}")
        self.objects[key] = data
        self.content_types[key] = content_type
        return path

    def get_public_url(self, bucket, path):
        return f"{self.base_url}/{bucket}/{quote(path)}"

    def get_signed_url(self, bucket, path, ttl):
        if (bucket, path) not in self.objects:
            raise StorageException(f"Object not found: {bucket}/{path}")
        return f"{self.get_public_url(bucket, path)}?expires_in={ttl}"

    def remove_object(self, bucket, path):
        if self.objects.pop((bucket, path), None) is None:
            raise StorageException(f"Object not found: {bucket}/{path}")
        self.content_types.pop((bucket, path), None)


class S3ObjectStore(ObjectStore):
    """S3-compatible object store (AWS S3, MinIO, Supabase storage S3 API)."""

    def __init__(self, config: Settings = default_settings, client=None):
        self.config = config
        self.client = client or boto3.client(
            "s3",
            endpoint_url=config.s3_endpoint_url,
            region_name=config.s3_region,
            aws_access_key_id=config.s3_access_key_id,
            aws_secret_access_key=config.s3_secret_access_key,
        )

    def put_object(self, bucket, path, data, content_type=None, cache_control=None):
        params = {"Bucket": bucket, "Key": path, "Body": data, "IfNoneMatch": "*"}
        if content_type:
            params["ContentType"] = content_type
        if cache_control:
            params["CacheControl"] = f"max-age={cache_control}"
        try:
            self.client.put_object(**params)
        except (BotoCoreError, ClientError) as e:
            raise StorageException(str(e)) from e
        return path

    def get_public_url(self, bucket, path):
        key = quote(path)
        if self.config.storage_public_base_url:
            return f"{self.config.storage_public_base_url.rstrip('/')}/{bucket}/{key}"
        if self.config.s3_endpoint_url:
            return f"{self.config.s3_endpoint_url.rstrip('/')}/{bucket}/{key}"
        return f"https://{bucket}.s3.{self.config.s3_region}.amazonaws.com/{key}"

    def get_signed_url(self, bucket, path, ttl):
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": path},
                ExpiresIn=ttl,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageException(str(e)) from e

    def remove_object(self, bucket, path):
        try:
            self.client.delete_object(Bucket=bucket, Key=path)
        except (BotoCoreError, ClientError) as e:
            raise StorageException(str(e)) from e


def build_object_store(config: Settings = default_settings) -> ObjectStore:
    """Select the backend named by ``object_storage_type``."""
    storage_type = config.object_storage_type.lower()
    if storage_type == "s3":
        logger.info(f"Using S3 object storage at {config.s3_endpoint_url or 'AWS'}")
        return S3ObjectStore(config)
    logger.info("Using in-memory object storage")
    return InMemoryObjectStore()
