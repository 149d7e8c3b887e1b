"""Case submission orchestration.

Steps run strictly in order: authenticate, validate, create the case, link
uploaded documents. Authentication, validation and case creation fail
closed. Document linking fails open: the case stands and the outcome
carries warnings. The timeline entry is recorded by the caller afterwards
through ``record_case_submitted``.
"""

import logging
from typing import Any, Dict, List, Optional

from referral_service.core.form_aggregator import build_case_record, validate_case_submission
from referral_service.core.timeline import TimelineRecorder
from referral_service.infrastructure.persistence import CaseRepository
from referral_service.models import (
    CaseCreated,
    CaseSubmission,
    DocumentCategory,
    FileUploadResult,
    LinkResult,
    SubmissionFailed,
    SubmissionFailureReason,
    SubmissionOutcome,
    TimelineAction,
    TimelineResult,
)

logger = logging.getLogger(__name__)

DOCUMENT_DESCRIPTIONS = {
    DocumentCategory.BLOOD_TEST_IMAGE: "Blood test image",
    DocumentCategory.MEDICAL_RECORD: "Medical record document",
}


def linkable(files: List[FileUploadResult]) -> List[FileUploadResult]:
    """Successful references that carry a URL and a name."""
    return [f for f in files if f.success and f.file_url and f.file_name]


def build_document_rows(
    case_id: str,
    actor_id: str,
    category: DocumentCategory,
    files: List[FileUploadResult],
) -> List[Dict[str, Any]]:
    return [
        {
            "case_id": case_id,
            "file_name": f.file_name,
            "file_path": f.storage_path or f.file_url,
            "file_type": category,
            "mime_type": f.content_type,
            "file_size": f.file_size or 0,
            "description": DOCUMENT_DESCRIPTIONS[category],
            "uploaded_by": actor_id,
            "is_primary": False,
        }
        for f in linkable(files)
    ]


class CaseSubmissionOrchestrator:
    """Coordinates case creation and document linking for one submission."""

    def __init__(self, repository: CaseRepository):
        self.repository = repository

    async def submit(self, actor_id: Optional[str], submission: CaseSubmission) -> SubmissionOutcome:
        """Submit a case on behalf of ``actor_id``.

        Returns:
            CaseCreated once the case row exists, even if its documents
            could not be linked; SubmissionFailed when nothing was persisted
        """
        if not actor_id:
            return SubmissionFailed(
                reason=SubmissionFailureReason.AUTHENTICATION,
                error="Authentication required",
            )

        validation = validate_case_submission(submission)
        if not validation.is_valid:
            return SubmissionFailed(
                reason=SubmissionFailureReason.VALIDATION,
                error=", ".join(validation.errors),
                errors=validation.errors,
            )

        try:
            record = build_case_record(submission, actor_id)
        except Exception as e:
            logger.error(f"Error preparing case for {actor_id}: {e}")
            return SubmissionFailed(reason=SubmissionFailureReason.UNEXPECTED, error=str(e))

        try:
            case = await self.repository.create_case(record)
        except Exception as e:
            logger.error(f"Error creating case for {actor_id}: {e}")
            return SubmissionFailed(
                reason=SubmissionFailureReason.STORAGE,
                error=f"Failed to create case: {e}",
            )

        logger.info(f"Created case {case.id} for referring vet {actor_id}")

        link = await self.link_files_to_case(
            case.id,
            actor_id,
            submission.blood_test_files,
            submission.medical_record_files,
        )

        warnings = []
        if not link.success:
            logger.warning(f"Case {case.id} created but file linking failed: {link.error}")
            warnings.append(f"Attachments could not be linked to the case: {link.error}")

        return CaseCreated(
            case_id=case.id,
            documents_linked=link.linked,
            document_link_warnings=warnings,
        )

    async def link_files_to_case(
        self,
        case_id: str,
        actor_id: str,
        blood_test_files: List[FileUploadResult],
        medical_record_files: List[FileUploadResult],
    ) -> LinkResult:
        """Insert document rows for every successful upload. Never raises."""
        rows = build_document_rows(
            case_id, actor_id, DocumentCategory.BLOOD_TEST_IMAGE, blood_test_files
        ) + build_document_rows(
            case_id, actor_id, DocumentCategory.MEDICAL_RECORD, medical_record_files
        )

        if not rows:
            return LinkResult(success=True)

        try:
            documents = await self.repository.insert_documents(rows)
        except Exception as e:
            logger.error(f"Error linking files to case {case_id}: {e}")
            return LinkResult(success=False, error=str(e) or "Unknown error linking files")

        return LinkResult(success=True, linked=len(documents))


async def record_case_submitted(
    recorder: TimelineRecorder,
    actor_id: str,
    outcome: CaseCreated,
    submission: CaseSubmission,
) -> TimelineResult:
    """Append the ``case_submitted`` entry for a created case.

    A failure here is logged and returned; it never undoes the submission.
    """
    result = await recorder.record(
        actor_id,
        outcome.case_id,
        TimelineAction.CASE_SUBMITTED.value,
        "Case submitted for specialist review",
        {
            "filesUploaded": {
                "bloodTests": len(linkable(submission.blood_test_files)),
                "medicalRecords": len(linkable(submission.medical_record_files)),
            },
        },
    )
    if not result.success:
        logger.warning(f"Timeline entry for case {outcome.case_id} not recorded: {result.error}")
    return result
