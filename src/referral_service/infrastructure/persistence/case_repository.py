"""Case Repository for referral persistence.

This module provides the repository pattern for the case graph (cases,
linked documents, timeline entries and specialist responses). Identifiers
and audit timestamps are assigned here, at the persistence boundary, never
taken from callers.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from referral_service.models.case import (
    MUTABLE_CASE_FIELDS,
    Case,
    CaseDocument,
    CaseStatus,
    CaseUrgency,
    SpecialistResponse,
    TimelineEntry,
)

# Audit fields the store always assigns itself.
STORE_ASSIGNED_FIELDS = frozenset({"id", "submitted_at", "created_at", "updated_at"})


# ============================================================
# Repository Exceptions
# ============================================================

class RepositoryException(Exception):
    """Base exception for repository errors."""
    pass


class ImmutableFieldError(RepositoryException):
    """Raised when a patch touches a field that is fixed after creation."""
    pass


def check_case_patch(patch: Dict[str, Any]) -> None:
    """Reject patches touching identity-defining fields."""
    illegal = sorted(set(patch) - MUTABLE_CASE_FIELDS)
    if illegal:
        raise ImmutableFieldError(
            f"Fields cannot be changed after creation: {', '.join(illegal)}"
        )


def strip_store_assigned(record: Dict[str, Any]) -> Dict[str, Any]:
    """Drop caller-supplied ids and audit timestamps."""
    return {k: v for k, v in record.items() if k not in STORE_ASSIGNED_FIELDS}


# ============================================================
# Repository Interface
# ============================================================

class CaseRepository(ABC):
    """
    Abstract repository interface for the case graph.

    Implementations:
    - SQLAlchemyCaseRepository: SQLite / PostgreSQL via async SQLAlchemy
    - InMemoryCaseRepository: Testing and development
    """

    @abstractmethod
    async def create_case(self, record: Dict[str, Any]) -> Case:
        """
        Insert a new case row.

        Args:
            record: Column values; ``id`` and audit timestamps are ignored

        Returns:
            Created case with store-assigned id and timestamps

        Raises:
            RepositoryException: If the insert fails
        """
        pass

    @abstractmethod
    async def get_case(self, case_id: str) -> Optional[Case]:
        """
        Retrieve case by ID.

        Returns:
            Case if found, None otherwise
        """
        pass

    @abstractmethod
    async def update_case(self, case_id: str, patch: Dict[str, Any]) -> Optional[Case]:
        """
        Apply a partial update to mutable case fields.

        Returns:
            Updated case, or None if the case does not exist

        Raises:
            ImmutableFieldError: If the patch touches an identity field
            RepositoryException: If the update fails
        """
        pass

    @abstractmethod
    async def list_cases(
        self,
        referring_vet_id: Optional[str] = None,
        specialist_id: Optional[str] = None,
        status: Optional[CaseStatus] = None,
        urgency: Optional[CaseUrgency] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Case], int]:
        """
        List cases with optional filters, newest submission first.

        Returns:
            Tuple of (cases, total_count)
        """
        pass

    @abstractmethod
    async def insert_documents(self, documents: List[Dict[str, Any]]) -> List[CaseDocument]:
        """
        Insert case document rows in one batch.

        Every row must reference an existing case; otherwise nothing is
        inserted.

        Raises:
            RepositoryException: If a case is missing or the insert fails
        """
        pass

    @abstractmethod
    async def list_documents(self, case_id: str) -> List[CaseDocument]:
        """List documents linked to a case, oldest first."""
        pass

    @abstractmethod
    async def append_timeline(self, entry: Dict[str, Any]) -> TimelineEntry:
        """
        Append a timeline entry. There is no update or delete counterpart.

        Raises:
            RepositoryException: If the case is missing or the insert fails
        """
        pass

    @abstractmethod
    async def list_timeline(self, case_id: str, ascending: bool = False) -> List[TimelineEntry]:
        """List timeline entries ordered by creation time."""
        pass

    @abstractmethod
    async def insert_response(self, response: Dict[str, Any]) -> SpecialistResponse:
        """
        Store a specialist response for an existing case.

        Raises:
            RepositoryException: If the case is missing or the insert fails
        """
        pass

    @abstractmethod
    async def list_responses(self, case_id: str) -> List[SpecialistResponse]:
        """List responses for a case, newest first."""
        pass


# ============================================================
# In-Memory Implementation (for Testing)
# ============================================================

class InMemoryCaseRepository(CaseRepository):
    """
    In-memory case repository for testing and development.

    Data stored in dictionaries, not persistent across restarts.
    """

    def __init__(self):
        """Initialize empty in-memory store."""
        self._cases: Dict[str, Case] = {}
        self._documents: Dict[str, List[CaseDocument]] = {}
        self._timeline: Dict[str, List[TimelineEntry]] = {}
        self._responses: Dict[str, List[SpecialistResponse]] = {}

    async def create_case(self, record: Dict[str, Any]) -> Case:
        """Create case in memory."""
        now = datetime.now(timezone.utc)
        try:
            case = Case(
                **strip_store_assigned(record),
                id=str(uuid4()),
                submitted_at=now,
                created_at=now,
                updated_at=now,
            )
        except ValueError as e:
            raise RepositoryException(f"Invalid case record: {e}") from e

        self._cases[case.id] = case
        return case.model_copy(deep=True)

    async def get_case(self, case_id: str) -> Optional[Case]:
        """Get case from memory."""
        case = self._cases.get(case_id)
        return case.model_copy(deep=True) if case else None

    async def update_case(self, case_id: str, patch: Dict[str, Any]) -> Optional[Case]:
        """Update case in memory."""
        check_case_patch(patch)

        case = self._cases.get(case_id)
        if not case:
            return None

        data = case.model_dump()
        data.update(patch)
        data["updated_at"] = datetime.now(timezone.utc)
        try:
            updated = Case(**data)
        except ValueError as e:
            raise RepositoryException(f"Invalid case update: {e}") from e

        self._cases[case_id] = updated
        return updated.model_copy(deep=True)

    async def list_cases(
        self,
        referring_vet_id: Optional[str] = None,
        specialist_id: Optional[str] = None,
        status: Optional[CaseStatus] = None,
        urgency: Optional[CaseUrgency] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Case], int]:
        """List cases with filters."""
        filtered = list(self._cases.values())

        if referring_vet_id:
            filtered = [c for c in filtered if c.referring_vet_id == referring_vet_id]

        if specialist_id:
            filtered = [c for c in filtered if c.specialist_id == specialist_id]

        if status:
            filtered = [c for c in filtered if c.status == status]

        if urgency:
            filtered = [c for c in filtered if c.urgency == urgency]

        filtered.sort(key=lambda c: c.submitted_at, reverse=True)

        total_count = len(filtered)
        paginated = filtered[offset:offset + limit]

        return [c.model_copy(deep=True) for c in paginated], total_count

    async def insert_documents(self, documents: List[Dict[str, Any]]) -> List[CaseDocument]:
        """Insert documents in memory, all or nothing."""
        now = datetime.now(timezone.utc)
        created = []
        for doc in documents:
            if doc.get("case_id") not in self._cases:
                raise RepositoryException(f"Case {doc.get('case_id')} does not exist")
            try:
                created.append(CaseDocument(
                    **strip_store_assigned(doc),
                    id=str(uuid4()),
                    created_at=now,
                ))
            except ValueError as e:
                raise RepositoryException(f"Invalid document record: {e}") from e

        for document in created:
            self._documents.setdefault(document.case_id, []).append(document)

        return created

    async def list_documents(self, case_id: str) -> List[CaseDocument]:
        """List documents from memory."""
        return list(self._documents.get(case_id, []))

    async def append_timeline(self, entry: Dict[str, Any]) -> TimelineEntry:
        """Append timeline entry in memory."""
        if entry.get("case_id") not in self._cases:
            raise RepositoryException(f"Case {entry.get('case_id')} does not exist")
        try:
            timeline_entry = TimelineEntry(
                **strip_store_assigned(entry),
                id=str(uuid4()),
                created_at=datetime.now(timezone.utc),
            )
        except ValueError as e:
            raise RepositoryException(f"Invalid timeline entry: {e}") from e

        self._timeline.setdefault(timeline_entry.case_id, []).append(timeline_entry)
        return timeline_entry

    async def list_timeline(self, case_id: str, ascending: bool = False) -> List[TimelineEntry]:
        """List timeline entries from memory."""
        # Insertion order is creation order; timestamps can tie.
        entries = list(self._timeline.get(case_id, []))
        if not ascending:
            entries.reverse()
        return entries

    async def insert_response(self, response: Dict[str, Any]) -> SpecialistResponse:
        """Store response in memory."""
        if response.get("case_id") not in self._cases:
            raise RepositoryException(f"Case {response.get('case_id')} does not exist")
        now = datetime.now(timezone.utc)
        try:
            stored = SpecialistResponse(
                **strip_store_assigned(response),
                id=str(uuid4()),
                created_at=now,
                updated_at=now,
            )
        except ValueError as e:
            raise RepositoryException(f"Invalid response record: {e}") from e

        self._responses.setdefault(stored.case_id, []).append(stored)
        return stored.model_copy(deep=True)

    async def list_responses(self, case_id: str) -> List[SpecialistResponse]:
        """List responses from memory, newest first."""
        return [r.model_copy(deep=True) for r in reversed(self._responses.get(case_id, []))]
