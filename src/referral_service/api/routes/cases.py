"""Case API routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from referral_service.api.dependencies import (
    get_case_manager,
    get_optional_user_id,
    get_submission_orchestrator,
    get_timeline_recorder,
    get_user_id,
    get_user_role,
    require_specialist,
)
from referral_service.config import settings
from referral_service.core import (
    CaseManager,
    CaseNotFoundError,
    CaseSubmissionOrchestrator,
    EmptyResponseError,
    InvalidStatusTransitionError,
    TimelineRecorder,
    describe_file,
    record_case_submitted,
)
from referral_service.infrastructure.persistence import RepositoryException
from referral_service.models import (
    CaseAddendumRequest,
    CaseDocumentResponse,
    CaseListResponse,
    CaseResponse,
    CaseStatus,
    CaseSubmission,
    CaseSubmitResponse,
    CaseUrgency,
    SpecialistResponse,
    SpecialistResponseRequest,
    StatusTransitionRequest,
    SubmissionFailed,
    SubmissionFailureReason,
    TimelineEntry,
    TimelineEntryRequest,
    TimelineResponse,
    UserRole,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/cases", tags=["cases"])


_FAILURE_STATUS = {
    SubmissionFailureReason.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    SubmissionFailureReason.VALIDATION: status.HTTP_400_BAD_REQUEST,
    SubmissionFailureReason.STORAGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    SubmissionFailureReason.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _raise_for_failure(outcome: SubmissionFailed) -> None:
    raise HTTPException(
        status_code=_FAILURE_STATUS[outcome.reason],
        detail={
            "reason": outcome.reason.value,
            "error": outcome.error,
            "errors": outcome.errors,
        },
    )


async def _visible_case_or_404(
    case_manager: CaseManager, case_id: str, user_id: str, role: UserRole
):
    case = await case_manager.get_case(case_id, user_id, role)
    if not case:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Case {case_id} not found",
        )
    return case


# =============================================================================
# Submission
# =============================================================================

@router.post(
    "",
    response_model=CaseSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a referral case",
    description="""
Submits a new case for specialist review.

**Workflow**:
1. Caller identity is required (X-User-ID)
2. The intake form is validated; every problem is reported at once
3. The case is created in 'submitted' status with urgency 'routine' unless given
4. Previously uploaded files (results of `POST /api/v1/files/{category}`) are linked
5. A `case_submitted` timeline entry is appended

Steps 1-3 fail closed: nothing is stored. Steps 4-5 fail open: the case is
still created, and `document_link_warnings` explains what did not attach.

**Request Body Example**:
```json
{
  "signalment": {
    "species": "dog", "breed": "Labrador", "age_years": 6, "weight": 28.5,
    "spay_neuter_status": "neutered", "patient_name": "Buddy"
  },
  "chief_complaint": "lethargy",
  "medical_examination": {"tpr": {"temperature": "39.1", "pulse": "110", "respiratory": "24"}},
  "medications": [{"drug_name": "Meloxicam", "dose": "0.1", "unit": "mg/kg"}],
  "blood_test_files": [{"success": true, "file_url": "...", "storage_path": "...", "file_name": "cbc.png"}],
  "medical_record_files": []
}
```

**Response Example**:
```json
{
  "case_id": "6f1c2a5e-8b2d-4e0f-9a57-1d2e3f4a5b6c",
  "documents_linked": 1,
  "document_link_warnings": [],
  "timeline_recorded": true
}
```

**Authorization**: Requires X-User-ID header from the API Gateway
    """,
    responses={
        201: {"description": "Case created (check document_link_warnings)"},
        400: {"description": "Intake form invalid; detail.errors lists every problem"},
        401: {"description": "Unauthorized - missing X-User-ID header"},
        500: {"description": "Case could not be stored"},
    },
)
async def submit_case(
    submission: CaseSubmission,
    user_id: Optional[str] = Depends(get_optional_user_id),
    orchestrator: CaseSubmissionOrchestrator = Depends(get_submission_orchestrator),
    timeline: TimelineRecorder = Depends(get_timeline_recorder),
):
    """Submit a case and record its timeline entry."""
    outcome = await orchestrator.submit(user_id, submission)

    if not outcome.success:
        _raise_for_failure(outcome)

    recorded = await record_case_submitted(timeline, user_id, outcome, submission)

    return CaseSubmitResponse(
        case_id=outcome.case_id,
        documents_linked=outcome.documents_linked,
        document_link_warnings=outcome.document_link_warnings,
        timeline_recorded=recorded.success,
    )


# =============================================================================
# Reads
# =============================================================================

@router.get(
    "",
    response_model=CaseListResponse,
    summary="List cases",
    description="""
Lists cases visible to the caller, most recently submitted first.

- Referring vets (`X-User-Role: referring_vet`, the default) see their own submissions
- Specialists see the whole queue, or only their assignments with `assigned_only=true`

**Authorization**: Requires X-User-ID header
    """,
)
async def list_cases(
    status_filter: Optional[CaseStatus] = Query(None, alias="status"),
    urgency: Optional[CaseUrgency] = Query(None),
    assigned_only: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    user_id: str = Depends(get_user_id),
    role: UserRole = Depends(get_user_role),
    case_manager: CaseManager = Depends(get_case_manager),
):
    """List cases for the caller."""
    cases, total = await case_manager.list_cases(
        user_id,
        role,
        status=status_filter,
        urgency=urgency,
        assigned_only=assigned_only,
        limit=page_size,
        offset=(page - 1) * page_size,
    )

    return CaseListResponse(
        cases=[CaseResponse.from_case(c) for c in cases],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{case_id}",
    response_model=CaseResponse,
    summary="Get case by ID",
    description="""
Retrieves a single case.

**Access Control**:
- Referring vets can only access cases they submitted
- Access to another vet's case returns 404 (not 403) to prevent enumeration

**Authorization**: Requires X-User-ID header
    """,
    responses={
        200: {"description": "Case found and returned successfully"},
        401: {"description": "Unauthorized - missing X-User-ID header"},
        404: {"description": "Case not found or access denied"},
    },
)
async def get_case(
    case_id: str,
    user_id: str = Depends(get_user_id),
    role: UserRole = Depends(get_user_role),
    case_manager: CaseManager = Depends(get_case_manager),
):
    """Get a case by ID."""
    case = await _visible_case_or_404(case_manager, case_id, user_id, role)
    return CaseResponse.from_case(case)


@router.get(
    "/{case_id}/documents",
    response_model=List[CaseDocumentResponse],
    summary="List case documents",
    description="""
Lists documents linked to a case. Each entry carries a signed download URL
valid for `signed_url_ttl_seconds` (one hour by default), or null if the
object store could not issue one.
    """,
)
async def list_case_documents(
    case_id: str,
    user_id: str = Depends(get_user_id),
    role: UserRole = Depends(get_user_role),
    case_manager: CaseManager = Depends(get_case_manager),
):
    """List documents with signed URLs."""
    await _visible_case_or_404(case_manager, case_id, user_id, role)
    documents = await case_manager.get_documents(case_id)
    return [
        CaseDocumentResponse.from_document(
            doc, url, **describe_file(doc.file_name, doc.mime_type, doc.file_size)
        )
        for doc, url in documents
    ]


@router.get(
    "/{case_id}/timeline",
    response_model=TimelineResponse,
    summary="Get case timeline",
    description="""
Returns the audit trail of a case. `order=desc` (default) is for display;
`order=asc` replays events in the order they happened.
    """,
)
async def get_case_timeline(
    case_id: str,
    order: str = Query("desc", pattern="^(asc|desc)$"),
    user_id: str = Depends(get_user_id),
    role: UserRole = Depends(get_user_role),
    case_manager: CaseManager = Depends(get_case_manager),
):
    """Get timeline entries for a case."""
    await _visible_case_or_404(case_manager, case_id, user_id, role)
    entries = await case_manager.get_timeline(case_id, ascending=order == "asc")
    return TimelineResponse(case_id=case_id, entries=entries)


@router.post(
    "/{case_id}/timeline",
    response_model=TimelineEntry,
    status_code=status.HTTP_201_CREATED,
    summary="Append a timeline entry",
    description="""
Appends an entry such as `response_submitted`. Entries cannot be edited or
removed afterwards.
    """,
)
async def add_timeline_entry(
    case_id: str,
    request: TimelineEntryRequest,
    user_id: str = Depends(get_user_id),
    role: UserRole = Depends(get_user_role),
    case_manager: CaseManager = Depends(get_case_manager),
    timeline: TimelineRecorder = Depends(get_timeline_recorder),
):
    """Append a timeline entry."""
    await _visible_case_or_404(case_manager, case_id, user_id, role)

    result = await timeline.record(
        user_id, case_id, request.action, request.description, request.metadata
    )
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.error,
        )
    return result.entry


# =============================================================================
# Specialist actions
# =============================================================================

async def _apply(
    action, case_id: str, specialist_id: str, request: Optional[StatusTransitionRequest]
):
    try:
        case = await action(case_id, specialist_id, request.note if request else None)
    except CaseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except RepositoryException as e:
        logger.error(f"Status change on case {case_id} failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return CaseResponse.from_case(case)


_TRANSITION_RESPONSES = {
    200: {"description": "Status changed"},
    401: {"description": "Unauthorized - missing X-User-ID header"},
    403: {"description": "Caller is not a specialist"},
    404: {"description": "Case not found"},
    409: {"description": "Transition not allowed from the current status"},
}


@router.post(
    "/{case_id}/accept",
    response_model=CaseResponse,
    summary="Accept a submitted case",
    description="Moves a case from 'submitted' to 'reviewing' and assigns it to the caller.",
    responses=_TRANSITION_RESPONSES,
)
async def accept_case(
    case_id: str,
    request: Optional[StatusTransitionRequest] = None,
    specialist_id: str = Depends(require_specialist),
    case_manager: CaseManager = Depends(get_case_manager),
):
    return await _apply(case_manager.accept_case, case_id, specialist_id, request)


@router.post(
    "/{case_id}/decline",
    response_model=CaseResponse,
    summary="Decline a case",
    responses=_TRANSITION_RESPONSES,
)
async def decline_case(
    case_id: str,
    request: Optional[StatusTransitionRequest] = None,
    specialist_id: str = Depends(require_specialist),
    case_manager: CaseManager = Depends(get_case_manager),
):
    return await _apply(case_manager.decline_case, case_id, specialist_id, request)


@router.post(
    "/{case_id}/start",
    response_model=CaseResponse,
    summary="Start work on a case",
    responses=_TRANSITION_RESPONSES,
)
async def start_case(
    case_id: str,
    request: Optional[StatusTransitionRequest] = None,
    specialist_id: str = Depends(require_specialist),
    case_manager: CaseManager = Depends(get_case_manager),
):
    return await _apply(case_manager.start_case, case_id, specialist_id, request)


@router.post(
    "/{case_id}/follow-up",
    response_model=CaseResponse,
    summary="Flag a case as needing follow-up",
    responses=_TRANSITION_RESPONSES,
)
async def request_follow_up(
    case_id: str,
    request: Optional[StatusTransitionRequest] = None,
    specialist_id: str = Depends(require_specialist),
    case_manager: CaseManager = Depends(get_case_manager),
):
    return await _apply(case_manager.request_follow_up, case_id, specialist_id, request)


@router.post(
    "/{case_id}/complete",
    response_model=CaseResponse,
    summary="Complete a case",
    description="Marks the consultation complete and stamps completed_at.",
    responses=_TRANSITION_RESPONSES,
)
async def complete_case(
    case_id: str,
    request: Optional[StatusTransitionRequest] = None,
    specialist_id: str = Depends(require_specialist),
    case_manager: CaseManager = Depends(get_case_manager),
):
    return await _apply(case_manager.complete_case, case_id, specialist_id, request)


@router.patch(
    "/{case_id}/addendum",
    response_model=CaseResponse,
    summary="Update clinical addendum",
    description="""
Updates fields a specialist may change after submission: working diagnosis,
differentials, diagnostic results, questions, urgency and specialty.
Signalment and the original complaint cannot be changed.
    """,
    responses={
        200: {"description": "Case updated"},
        403: {"description": "Caller is not a specialist"},
        404: {"description": "Case not found"},
    },
)
async def update_addendum(
    case_id: str,
    request: CaseAddendumRequest,
    specialist_id: str = Depends(require_specialist),
    case_manager: CaseManager = Depends(get_case_manager),
):
    try:
        case = await case_manager.update_addendum(case_id, specialist_id, request)
    except CaseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except RepositoryException as e:
        logger.error(f"Addendum update on case {case_id} failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return CaseResponse.from_case(case)


# =============================================================================
# Specialist responses
# =============================================================================

@router.post(
    "/{case_id}/responses",
    response_model=SpecialistResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a specialist response",
    description="""
Adds a consultation response to a case: free-text response plus optional
diagnosis, treatment and referral recommendations, prognosis and follow-up.

- `is_final_response` marks the concluding response
- `draft: true` stores the response without marking it final and without a
  timeline entry; otherwise a `response_submitted` entry is appended

**Request Body Example**:
```json
{
  "response_text": "Findings are consistent with hypoadrenocorticism.",
  "diagnosis": "Hypoadrenocorticism",
  "treatment_recommendations": "DOCP 2.2 mg/kg q25d, prednisolone 0.1 mg/kg",
  "follow_up_needed": true,
  "follow_up_date": "2026-11-01",
  "is_final_response": true
}
```

**Authorization**: Requires X-User-ID and `X-User-Role: specialist`
    """,
    responses={
        201: {"description": "Response stored"},
        400: {"description": "Response text is blank"},
        403: {"description": "Caller is not a specialist"},
        404: {"description": "Case not found"},
    },
)
async def submit_response(
    case_id: str,
    request: SpecialistResponseRequest,
    specialist_id: str = Depends(require_specialist),
    case_manager: CaseManager = Depends(get_case_manager),
):
    try:
        return await case_manager.submit_response(case_id, specialist_id, request)
    except CaseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except EmptyResponseError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/{case_id}/responses",
    response_model=List[SpecialistResponse],
    summary="List specialist responses",
    description="Responses on a case, newest first. Drafts are included.",
)
async def list_responses(
    case_id: str,
    user_id: str = Depends(get_user_id),
    role: UserRole = Depends(get_user_role),
    case_manager: CaseManager = Depends(get_case_manager),
):
    await _visible_case_or_404(case_manager, case_id, user_id, role)
    return await case_manager.get_responses(case_id)
