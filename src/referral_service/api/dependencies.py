"""FastAPI dependencies shared by the routers."""

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, HTTPException, status

from referral_service.config import settings
from referral_service.core import (
    CaseManager,
    CaseSubmissionOrchestrator,
    StorageUploader,
    TimelineRecorder,
)
from referral_service.infrastructure.database import db_client
from referral_service.infrastructure.persistence import (
    CaseRepository,
    InMemoryCaseRepository,
    SQLAlchemyCaseRepository,
)
from referral_service.infrastructure.storage import ObjectStore, build_object_store
from referral_service.models import UserRole

logger = logging.getLogger(__name__)


# Global singletons for in-process backends (persist across requests)
_inmemory_repository: Optional[InMemoryCaseRepository] = None
_object_store: Optional[ObjectStore] = None


async def get_case_repository() -> AsyncGenerator[CaseRepository, None]:
    """Dependency to get case repository.

    Returns the implementation selected by ``case_storage_type``:
    - inmemory (default): InMemoryCaseRepository singleton for dev/testing
    - database: SQLAlchemyCaseRepository on a per-request session
    """
    if settings.uses_database:
        async for session in db_client.get_session():
            yield SQLAlchemyCaseRepository(session)
    else:
        global _inmemory_repository
        if _inmemory_repository is None:
            _inmemory_repository = InMemoryCaseRepository()
        yield _inmemory_repository


def get_object_store() -> ObjectStore:
    """Dependency to get the object store singleton."""
    global _object_store
    if _object_store is None:
        _object_store = build_object_store(settings)
    return _object_store


def get_storage_uploader(object_store: ObjectStore = Depends(get_object_store)) -> StorageUploader:
    return StorageUploader(object_store)


def get_timeline_recorder(
    repository: CaseRepository = Depends(get_case_repository),
) -> TimelineRecorder:
    return TimelineRecorder(repository)


def get_submission_orchestrator(
    repository: CaseRepository = Depends(get_case_repository),
) -> CaseSubmissionOrchestrator:
    return CaseSubmissionOrchestrator(repository)


def get_case_manager(
    repository: CaseRepository = Depends(get_case_repository),
    uploader: StorageUploader = Depends(get_storage_uploader),
    timeline: TimelineRecorder = Depends(get_timeline_recorder),
) -> CaseManager:
    """Dependency to get case manager with repository."""
    return CaseManager(repository, uploader=uploader, timeline=timeline)


async def get_optional_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
) -> Optional[str]:
    """User ID from the X-User-ID header, if present."""
    return x_user_id or None


async def get_user_id(x_user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    """Get user ID from X-User-ID header (set by API Gateway).

    The API Gateway validates user tokens and adds X-User-* headers after
    stripping any client-provided ones. Services trust these headers without
    additional validation.

    Raises:
        HTTPException: If X-User-ID header is missing
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-ID header required (should be added by API Gateway)",
        )

    return x_user_id


async def get_user_role(
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> UserRole:
    """Caller role from X-User-Role; defaults to referring_vet."""
    if not x_user_role:
        return UserRole.REFERRING_VET
    try:
        return UserRole(x_user_role.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown role '{x_user_role}'",
        )


async def require_specialist(
    user_id: str = Depends(get_user_id),
    role: UserRole = Depends(get_user_role),
) -> str:
    """User ID of a caller acting as a specialist."""
    if role != UserRole.SPECIALIST:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only specialists can perform this action",
        )
    return user_id
