"""Core business logic package."""

from .case_manager import (
    ALLOWED_TRANSITIONS,
    CaseManager,
    CaseNotFoundError,
    EmptyResponseError,
    InvalidStatusTransitionError,
)
from .case_submission import CaseSubmissionOrchestrator, record_case_submitted
from .file_validator import (
    FILE_POLICIES,
    describe_file,
    format_file_size,
    get_policy,
    validate_file,
)
from .form_aggregator import build_case_record, validate_case_submission
from .storage_uploader import StorageUploader, generate_file_path
from .timeline import TimelineRecorder

__all__ = [
    "ALLOWED_TRANSITIONS",
    "CaseManager",
    "CaseNotFoundError",
    "CaseSubmissionOrchestrator",
    "EmptyResponseError",
    "FILE_POLICIES",
    "InvalidStatusTransitionError",
    "StorageUploader",
    "TimelineRecorder",
    "build_case_record",
    "describe_file",
    "format_file_size",
    "generate_file_path",
    "get_policy",
    "record_case_submitted",
    "validate_case_submission",
    "validate_file",
]
