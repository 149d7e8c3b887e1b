"""Per-category file acceptance policies.

Validation trusts the MIME type declared by the client and never reads
file contents.
"""

from typing import Dict, Optional

from referral_service.config import settings
from referral_service.models import (
    CandidateFile,
    DocumentCategory,
    FilePolicy,
    FileValidationResult,
)

MB = 1024 * 1024

IMAGE_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/bmp",
    "image/tiff",
    "image/heic",
    "image/webp",
})

DOCUMENT_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "application/rtf",
    "application/vnd.oasis.opendocument.text",
})

VIDEO_TYPES = frozenset({
    "video/mp4",
    "video/quicktime",
    "video/avi",
    "video/x-msvideo",
    "video/x-ms-wmv",
    "video/x-matroska",
    "video/webm",
})

BLOOD_TEST_POLICY = FilePolicy(
    category=DocumentCategory.BLOOD_TEST_IMAGE,
    bucket=settings.blood_tests_bucket,
    max_size=10 * MB,
    allowed_types=IMAGE_TYPES,
    description="Blood test images (JPEG, PNG, GIF, BMP, TIFF, HEIC, WEBP)",
)

MEDICAL_RECORD_POLICY = FilePolicy(
    category=DocumentCategory.MEDICAL_RECORD,
    bucket=settings.medical_records_bucket,
    max_size=50 * MB,
    allowed_types=DOCUMENT_TYPES | IMAGE_TYPES | VIDEO_TYPES,
    description=(
        "Documents, images, and videos "
        "(PDF, DOC, DOCX, TXT, RTF, ODT, JPEG, PNG, MP4, MOV, AVI, etc.)"
    ),
)

FILE_POLICIES: Dict[DocumentCategory, FilePolicy] = {
    DocumentCategory.BLOOD_TEST_IMAGE: BLOOD_TEST_POLICY,
    DocumentCategory.MEDICAL_RECORD: MEDICAL_RECORD_POLICY,
}


def get_policy(category: DocumentCategory) -> FilePolicy:
    return FILE_POLICIES[DocumentCategory(category)]


def validate_file(file: CandidateFile, policy: FilePolicy) -> FileValidationResult:
    """Check a file's declared size and MIME type against a policy.

    Size is checked before type, so an oversized file of a disallowed type
    reports the size problem.
    """
    if file.size > policy.max_size:
        max_size_mb = round(policy.max_size / MB)
        current_mb = round(file.size / MB * 10) / 10
        return FileValidationResult(
            is_valid=False,
            error=f"File size must be less than {max_size_mb}MB. Current size: {current_mb}MB",
        )

    if file.content_type not in policy.allowed_types:
        return FileValidationResult(
            is_valid=False,
            error=(
                f'File type "{file.content_type}" is not supported. '
                f"Allowed types: {policy.description}"
            ),
        )

    return FileValidationResult(is_valid=True)


def get_file_extension(file_name: str) -> str:
    """Lower-cased extension without the dot; the whole name if there is no dot."""
    return file_name.rsplit(".", 1)[-1].lower() if file_name else ""


def format_file_size(size: int) -> str:
    """Format a byte count for display, e.g. ``1.5 KB``."""
    if size == 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {units[unit]}"


def is_image_file(content_type: Optional[str]) -> bool:
    return (content_type or "").startswith("image/")


def is_video_file(content_type: Optional[str]) -> bool:
    return (content_type or "").startswith("video/")


def describe_file(file_name: str, content_type: Optional[str], size: int) -> Dict[str, str]:
    """Display fields for a stored file: extension, size label and media kind."""
    if is_image_file(content_type):
        kind = "image"
    elif is_video_file(content_type):
        kind = "video"
    else:
        kind = "document"
    return {
        "extension": get_file_extension(file_name),
        "size_label": format_file_size(size),
        "media_kind": kind,
    }
