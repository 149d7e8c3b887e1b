"""Case business logic manager - Repository Pattern."""

import logging
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional, Tuple

from referral_service.core.file_validator import get_policy
from referral_service.core.storage_uploader import StorageUploader
from referral_service.core.timeline import TimelineRecorder
from referral_service.infrastructure.persistence import CaseRepository
from referral_service.models import (
    Case,
    CaseAddendumRequest,
    CaseDocument,
    CaseStatus,
    CaseUrgency,
    SpecialistResponse,
    SpecialistResponseRequest,
    TimelineAction,
    TimelineEntry,
    UserRole,
)

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[CaseStatus, FrozenSet[CaseStatus]] = {
    CaseStatus.SUBMITTED: frozenset({CaseStatus.REVIEWING, CaseStatus.DECLINED}),
    CaseStatus.REVIEWING: frozenset({
        CaseStatus.IN_PROGRESS,
        CaseStatus.DECLINED,
        CaseStatus.COMPLETED,
        CaseStatus.FOLLOW_UP_NEEDED,
    }),
    CaseStatus.IN_PROGRESS: frozenset({CaseStatus.COMPLETED, CaseStatus.FOLLOW_UP_NEEDED}),
    CaseStatus.FOLLOW_UP_NEEDED: frozenset({CaseStatus.IN_PROGRESS, CaseStatus.COMPLETED}),
    CaseStatus.COMPLETED: frozenset({CaseStatus.FOLLOW_UP_NEEDED}),
    CaseStatus.DECLINED: frozenset(),
}


class CaseNotFoundError(Exception):
    """Raised when a case does not exist or is not visible to the caller."""

    def __init__(self, case_id: str):
        super().__init__(f"Case {case_id} not found")
        self.case_id = case_id


class InvalidStatusTransitionError(Exception):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, case_id: str, current: CaseStatus, target: CaseStatus):
        super().__init__(
            f"Case {case_id} cannot move from '{current.value}' to '{target.value}'"
        )
        self.current = current
        self.target = target


class EmptyResponseError(ValueError):
    """Raised when a specialist response has no text."""

    def __init__(self):
        super().__init__("Please provide a response before submitting.")


class CaseManager:
    """Business logic for the specialist side of a referral.

    Submission itself lives in CaseSubmissionOrchestrator; this class covers
    what happens to a case afterwards. Concurrent status changes from two
    sessions are last-write-wins.
    """

    def __init__(
        self,
        repository: CaseRepository,
        uploader: Optional[StorageUploader] = None,
        timeline: Optional[TimelineRecorder] = None,
    ):
        """Initialize case manager.

        Args:
            repository: CaseRepository implementation (InMemory or SQLAlchemy)
            uploader: Used to sign document download URLs
            timeline: Recorder for status-change entries
        """
        self.repository = repository
        self.uploader = uploader
        self.timeline = timeline or TimelineRecorder(repository)

    async def get_case(
        self,
        case_id: str,
        user_id: Optional[str] = None,
        role: UserRole = UserRole.SPECIALIST,
    ) -> Optional[Case]:
        """Get a case by ID with optional access control.

        Referring vets only see cases they submitted; specialists see all.

        Returns:
            Case if found and accessible, None otherwise
        """
        case = await self.repository.get_case(case_id)

        if not case:
            return None

        if user_id and role == UserRole.REFERRING_VET and case.referring_vet_id != user_id:
            logger.warning(
                f"User {user_id} attempted to access case {case_id} "
                f"submitted by {case.referring_vet_id}"
            )
            return None

        return case

    async def list_cases(
        self,
        user_id: str,
        role: UserRole,
        status: Optional[CaseStatus] = None,
        urgency: Optional[CaseUrgency] = None,
        assigned_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Case], int]:
        """List cases visible to the caller.

        Args:
            user_id: Caller identity
            role: Referring vets get their own submissions; specialists get
                the whole queue, or their assignments with ``assigned_only``
            status: Optional status filter
            urgency: Optional urgency filter
            limit: Maximum number of cases to return
            offset: Offset for pagination

        Returns:
            Tuple of (cases, total_count)
        """
        referring_vet_id = user_id if role == UserRole.REFERRING_VET else None
        specialist_id = user_id if role == UserRole.SPECIALIST and assigned_only else None

        return await self.repository.list_cases(
            referring_vet_id=referring_vet_id,
            specialist_id=specialist_id,
            status=status,
            urgency=urgency,
            limit=limit,
            offset=offset,
        )

    # =========================================================================
    # Status transitions
    # =========================================================================

    async def accept_case(self, case_id: str, specialist_id: str, note: Optional[str] = None) -> Case:
        """Take a submitted case into review and assign it."""
        return await self._transition(
            case_id,
            specialist_id,
            CaseStatus.REVIEWING,
            TimelineAction.ACCEPTED,
            note or "Case accepted for review",
            extra={
                "specialist_id": specialist_id,
                "accepted_at": datetime.now(timezone.utc),
            },
        )

    async def decline_case(self, case_id: str, specialist_id: str, note: Optional[str] = None) -> Case:
        return await self._transition(
            case_id,
            specialist_id,
            CaseStatus.DECLINED,
            TimelineAction.DECLINED,
            note or "Case declined",
        )

    async def start_case(self, case_id: str, specialist_id: str, note: Optional[str] = None) -> Case:
        return await self._transition(
            case_id,
            specialist_id,
            CaseStatus.IN_PROGRESS,
            TimelineAction.STATUS_CHANGED,
            note or "Consultation in progress",
        )

    async def request_follow_up(
        self, case_id: str, specialist_id: str, note: Optional[str] = None
    ) -> Case:
        return await self._transition(
            case_id,
            specialist_id,
            CaseStatus.FOLLOW_UP_NEEDED,
            TimelineAction.FOLLOW_UP_REQUESTED,
            note or "Follow-up needed",
        )

    async def complete_case(self, case_id: str, specialist_id: str, note: Optional[str] = None) -> Case:
        return await self._transition(
            case_id,
            specialist_id,
            CaseStatus.COMPLETED,
            TimelineAction.COMPLETED,
            note or "Consultation completed",
            extra={"completed_at": datetime.now(timezone.utc)},
        )

    async def _transition(
        self,
        case_id: str,
        actor_id: str,
        target: CaseStatus,
        action: TimelineAction,
        description: str,
        extra: Optional[dict] = None,
    ) -> Case:
        case = await self.repository.get_case(case_id)
        if not case:
            raise CaseNotFoundError(case_id)

        if target not in ALLOWED_TRANSITIONS[case.status]:
            raise InvalidStatusTransitionError(case_id, case.status, target)

        patch = {"status": target, **(extra or {})}
        updated = await self.repository.update_case(case_id, patch)
        if not updated:
            raise CaseNotFoundError(case_id)

        logger.info(f"Case {case_id}: {case.status.value} -> {target.value} by {actor_id}")

        await self.timeline.record(
            actor_id,
            case_id,
            action.value,
            description,
            {"from_status": case.status.value, "to_status": target.value},
        )

        return updated

    # =========================================================================
    # Clinical addendum
    # =========================================================================

    async def update_addendum(
        self, case_id: str, specialist_id: str, request: CaseAddendumRequest
    ) -> Case:
        """Update the fields a specialist may change after submission."""
        patch = request.model_dump(exclude_unset=True, exclude_none=True)

        if not patch:
            case = await self.repository.get_case(case_id)
            if not case:
                raise CaseNotFoundError(case_id)
            return case

        updated = await self.repository.update_case(case_id, patch)
        if not updated:
            raise CaseNotFoundError(case_id)

        logger.info(f"Updated addendum fields {sorted(patch)} on case {case_id}")

        await self.timeline.record(
            specialist_id,
            case_id,
            TimelineAction.ADDENDUM_UPDATED.value,
            "Clinical details updated",
            {"fields": sorted(patch)},
        )

        return updated

    # =========================================================================
    # Specialist responses
    # =========================================================================

    async def submit_response(
        self, case_id: str, specialist_id: str, request: SpecialistResponseRequest
    ) -> SpecialistResponse:
        """Store a consultation response on a case.

        A draft is kept but is never final and is not put on the timeline.

        Raises:
            CaseNotFoundError: If the case does not exist
            EmptyResponseError: If ``response_text`` is blank
        """
        if not request.response_text.strip():
            raise EmptyResponseError()

        if not await self.repository.get_case(case_id):
            raise CaseNotFoundError(case_id)

        response = await self.repository.insert_response({
            "case_id": case_id,
            "specialist_id": specialist_id,
            "response_text": request.response_text,
            "diagnosis": request.diagnosis or None,
            "treatment_recommendations": request.treatment_recommendations or None,
            "prognosis": request.prognosis or None,
            "referral_recommendations": request.referral_recommendations or None,
            "follow_up_needed": request.follow_up_needed,
            "follow_up_date": request.follow_up_date,
            "is_final_response": request.is_final_response and not request.draft,
        })

        if request.draft:
            logger.info(f"Draft response {response.id} saved on case {case_id} by {specialist_id}")
            return response

        logger.info(f"Response {response.id} submitted on case {case_id} by {specialist_id}")

        await self.timeline.record(
            specialist_id,
            case_id,
            TimelineAction.RESPONSE_SUBMITTED.value,
            "Specialist response submitted",
            {
                "response_id": response.id,
                "is_final_response": response.is_final_response,
                "follow_up_needed": response.follow_up_needed,
            },
        )

        return response

    async def get_responses(self, case_id: str) -> List[SpecialistResponse]:
        return await self.repository.list_responses(case_id)

    # =========================================================================
    # Documents and timeline
    # =========================================================================

    async def get_documents(self, case_id: str) -> List[Tuple[CaseDocument, Optional[str]]]:
        """Documents for a case, each with a signed download URL when available."""
        documents = await self.repository.list_documents(case_id)

        results = []
        for document in documents:
            url = None
            if self.uploader:
                bucket = get_policy(document.file_type).bucket
                url = await self.uploader.signed_url(bucket, document.file_path)
            results.append((document, url))

        return results

    async def get_timeline(self, case_id: str, ascending: bool = False) -> List[TimelineEntry]:
        return await self.timeline.history(case_id, ascending=ascending)
