"""Upload validated files to object storage.

Every public coroutine returns a typed result; storage errors never
propagate to the caller.
"""

import logging
import re
import secrets
import string
import time
from typing import Callable, List, Optional

from starlette.concurrency import run_in_threadpool

from referral_service.config import settings
from referral_service.core.file_validator import format_file_size
from referral_service.infrastructure.storage import ObjectStore
from referral_service.models import CandidateFile, FileDeleteResult, FileUploadResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def clean_path_segment(value: str) -> str:
    """Replace every character outside ``[A-Za-z0-9.-]`` with ``_``.

    A segment that would be empty or made only of dots becomes ``_``.
    """
    cleaned = _UNSAFE_CHARS.sub("_", value)
    if not cleaned.strip("."):
        return "_"
    return cleaned


def is_safe_storage_path(path: str) -> bool:
    """True if no segment of ``path`` is empty or made only of dots."""
    return bool(path) and all(segment.strip(".") for segment in path.split("/"))


def generate_file_path(owner_id: str, file_name: str, case_id: Optional[str] = None) -> str:
    """Build a unique storage path for an upload.

    Layout is ``owner/[case/]<epoch-ms>_<6 random chars>_<clean name>``.
    Separators and dot-only segments in user-supplied values are replaced,
    so the result never escapes the owner's prefix.
    """
    timestamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    name = f"{timestamp}_{suffix}_{clean_path_segment(file_name)}"

    parts = [clean_path_segment(owner_id)]
    if case_id:
        parts.append(clean_path_segment(case_id))
    parts.append(name)
    return "/".join(parts)


class StorageUploader:
    """Pushes file bytes to a bucket and returns durable references."""

    def __init__(self, object_store: ObjectStore, cache_control: Optional[str] = None):
        self.object_store = object_store
        self.cache_control = cache_control or settings.upload_cache_control

    async def upload_file(
        self,
        file: CandidateFile,
        bucket: str,
        owner_id: str,
        case_id: Optional[str] = None,
    ) -> FileUploadResult:
        """Upload one file. Failures come back as ``success=False``."""
        if not owner_id or not file.name or not bucket:
            return FileUploadResult(
                success=False,
                file_name=file.name or None,
                error=(
                    f"Invalid parameters: userId={owner_id}, "
                    f"fileName={file.name}, bucket={bucket}"
                ),
            )

        try:
            path = generate_file_path(owner_id, file.name, case_id)
            stored_path = await run_in_threadpool(
                self.object_store.put_object,
                bucket,
                path,
                file.data,
                file.content_type or None,
                self.cache_control,
            )
            url = self.object_store.get_public_url(bucket, stored_path)
        except Exception as e:
            logger.error(f"Upload of {file.name} to {bucket} failed: {e}")
            return FileUploadResult(
                success=False,
                file_name=file.name,
                file_size=file.size,
                error=f"Upload failed: {e}",
            )

        logger.info(f"Uploaded {file.name} ({format_file_size(file.size)}) to {bucket}/{stored_path}")

        return FileUploadResult(
            success=True,
            file_url=url,
            storage_path=stored_path,
            file_name=file.name,
            file_size=file.size,
            content_type=file.content_type or None,
        )

    async def upload_multiple_files(
        self,
        files: List[CandidateFile],
        bucket: str,
        owner_id: str,
        case_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[FileUploadResult]:
        """Upload files one after another.

        Uploads are sequential to bound open connections and keep progress
        monotonic. ``on_progress(completed, total)`` runs after each file,
        whether it succeeded or not. The result list matches ``files`` in
        length and order.
        """
        results: List[FileUploadResult] = []
        total = len(files)

        for index, file in enumerate(files):
            results.append(await self.upload_file(file, bucket, owner_id, case_id))

            if on_progress:
                on_progress(index + 1, total)

        failed = sum(1 for r in results if not r.success)
        if failed:
            logger.warning(f"{failed} of {total} uploads to {bucket} failed")

        return results

    async def delete_file(self, bucket: str, path: str) -> FileDeleteResult:
        """Remove a stored object."""
        if not is_safe_storage_path(path):
            logger.warning(f"Refusing to delete {bucket}/{path}: unsafe path")
            return FileDeleteResult(success=False, error=f"Invalid storage path: {path}")

        try:
            await run_in_threadpool(self.object_store.remove_object, bucket, path)
        except Exception as e:
            logger.error(f"Delete of {bucket}/{path} failed: {e}")
            return FileDeleteResult(success=False, error=f"Delete failed: {e}")

        logger.info(f"Deleted {bucket}/{path}")
        return FileDeleteResult(success=True)

    async def signed_url(self, bucket: str, path: str, ttl: Optional[int] = None) -> Optional[str]:
        """Time-limited download URL, or None if the store cannot issue one."""
        try:
            return await run_in_threadpool(
                self.object_store.get_signed_url,
                bucket,
                path,
                ttl or settings.signed_url_ttl_seconds,
            )
        except Exception as e:
            logger.warning(f"Could not sign URL for {bucket}/{path}: {e}")
            return None
