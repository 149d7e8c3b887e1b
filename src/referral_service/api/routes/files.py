"""File upload API routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from referral_service.api.dependencies import get_storage_uploader, get_user_id
from referral_service.core import StorageUploader, format_file_size, get_policy, validate_file
from referral_service.core.storage_uploader import clean_path_segment, is_safe_storage_path
from referral_service.models import (
    CandidateFile,
    DocumentCategory,
    FileBatchUploadResponse,
    FileUploadResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/files", tags=["files"])


@router.post(
    "/{category}",
    response_model=FileBatchUploadResponse,
    summary="Upload case attachments",
    description="""
Validates and uploads one or more attachments for a category.

**Workflow**:
1. Each file is checked against the category policy (declared MIME type and size)
2. Files that fail validation are reported and never sent to storage
3. Valid files are uploaded one at a time, in order
4. Results are returned in the same order as the submitted files

**Categories**:
- `blood_test_image`: JPEG/PNG/GIF/BMP/TIFF/HEIC/WEBP, up to 10 MB
- `medical_record`: documents, images and videos, up to 50 MB

**Response Example**:
```json
{
  "category": "blood_test_image",
  "results": [
    {"success": true, "file_url": "https://.../blood-tests/vet_1/1729240000000_a1b2c3_cbc.png",
     "storage_path": "vet_1/1729240000000_a1b2c3_cbc.png", "file_name": "cbc.png",
     "file_size": 20480, "content_type": "image/png", "error": null}
  ],
  "uploaded": 1,
  "rejected": 0
}
```

Pass the successful results unchanged in the case submission body to link them.

**Authorization**: Requires X-User-ID header from the API Gateway
    """,
    responses={
        200: {"description": "Per-file results returned (individual files may have failed)"},
        401: {"description": "Unauthorized - missing X-User-ID header"},
        422: {"description": "Unknown category or malformed multipart body"},
    },
)
async def upload_files(
    category: DocumentCategory,
    files: List[UploadFile] = File(...),
    case_id: Optional[str] = Query(None, description="Existing case the files belong to"),
    user_id: str = Depends(get_user_id),
    uploader: StorageUploader = Depends(get_storage_uploader),
):
    """Validate then upload files for a category."""
    policy = get_policy(category)

    results: List[Optional[FileUploadResult]] = []
    accepted: List[CandidateFile] = []
    accepted_slots: List[int] = []

    for upload in files:
        candidate = CandidateFile.from_bytes(
            upload.filename or "",
            upload.content_type or "",
            await upload.read(),
        )
        validation = validate_file(candidate, policy)
        if validation.is_valid:
            accepted_slots.append(len(results))
            accepted.append(candidate)
            results.append(None)
        else:
            logger.info(
                f"Rejected {candidate.name} ({format_file_size(candidate.size)}) "
                f"for {category.value}: {validation.error}"
            )
            results.append(FileUploadResult(
                success=False,
                file_name=candidate.name,
                file_size=candidate.size,
                content_type=candidate.content_type or None,
                error=validation.error,
            ))

    def log_progress(completed: int, total: int) -> None:
        logger.debug(f"Upload progress for {user_id}: {completed}/{total}")

    uploaded = await uploader.upload_multiple_files(
        accepted,
        policy.bucket,
        user_id,
        case_id=case_id,
        on_progress=log_progress,
    )
    for slot, result in zip(accepted_slots, uploaded):
        results[slot] = result

    return FileBatchUploadResponse(
        category=category,
        results=results,
        uploaded=sum(1 for r in results if r.success),
        rejected=sum(1 for r in results if not r.success),
    )


@router.delete(
    "/{category}/{storage_path:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an uploaded attachment",
    description="""
Removes an object the caller uploaded, e.g. after deselecting it in the intake form.

Only paths under the caller's own prefix can be deleted. Documents already
linked to a case keep their row; delete before submitting.

**Authorization**: Requires X-User-ID header from the API Gateway
    """,
    responses={
        204: {"description": "Object deleted"},
        400: {"description": "Path contains empty or dot-only segments"},
        401: {"description": "Unauthorized - missing X-User-ID header"},
        403: {"description": "Path belongs to another user"},
        404: {"description": "Object could not be deleted"},
    },
)
async def delete_file(
    category: DocumentCategory,
    storage_path: str,
    user_id: str = Depends(get_user_id),
    uploader: StorageUploader = Depends(get_storage_uploader),
):
    """Delete an uploaded file owned by the caller."""
    if not is_safe_storage_path(storage_path):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Storage path must not contain empty, '.' or '..' segments",
        )

    if not storage_path.startswith(f"{clean_path_segment(user_id)}/"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot delete files uploaded by another user",
        )

    result = await uploader.delete_file(get_policy(category).bucket, storage_path)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
