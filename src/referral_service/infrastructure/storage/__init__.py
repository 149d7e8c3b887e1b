"""Object storage package."""

from .object_store import (
    InMemoryObjectStore,
    ObjectStore,
    S3ObjectStore,
    StorageException,
    build_object_store,
)

__all__ = [
    "InMemoryObjectStore",
    "ObjectStore",
    "S3ObjectStore",
    "StorageException",
    "build_object_store",
]
