"""SQLAlchemy Case Repository - Production Implementation.

Works against SQLite (aiosqlite) for development and PostgreSQL (asyncpg)
in production. Each write commits on its own, so a created case survives
a later failure to link its documents.

Architecture:
    cases (main table)
    ├── case_documents (1:N, FK case_id)
    ├── case_timeline (1:N, FK case_id, append-only)
    └── case_responses (1:N, FK case_id)
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_service.infrastructure.database.models import (
    CaseDB,
    CaseDocumentDB,
    CaseResponseDB,
    CaseTimelineDB,
)
from referral_service.infrastructure.persistence.case_repository import (
    CaseRepository,
    RepositoryException,
    check_case_patch,
    strip_store_assigned,
)
from referral_service.models.case import (
    Case,
    CaseDocument,
    CaseStatus,
    CaseUrgency,
    SpecialistResponse,
    TimelineEntry,
)

logger = logging.getLogger(__name__)

# Bind-time failures of closed enums surface as LookupError.
_WRITE_ERRORS = (SQLAlchemyError, LookupError, ValueError, TypeError)


def _columns(model, record: Dict[str, Any]) -> Dict[str, Any]:
    keys = set(model.__table__.columns.keys())
    return {k: v for k, v in strip_store_assigned(record).items() if k in keys}


class SQLAlchemyCaseRepository(CaseRepository):
    """
    Case repository backed by an async SQLAlchemy session.

    Timestamps come from column defaults, so they are assigned when the row
    is written rather than by the caller.
    """

    def __init__(self, db_session: AsyncSession):
        """
        Initialize repository with SQLAlchemy async session.

        Args:
            db_session: SQLAlchemy AsyncSession for database operations
        """
        self.db = db_session

    # ========================================================================
    # Cases
    # ========================================================================

    async def create_case(self, record: Dict[str, Any]) -> Case:
        """Insert a case row and return it with its generated id."""
        row = CaseDB(**_columns(CaseDB, record))
        try:
            self.db.add(row)
            await self.db.commit()
            await self.db.refresh(row)
        except _WRITE_ERRORS as e:
            await self.db.rollback()
            raise RepositoryException(f"Failed to create case: {e}") from e

        return self._row_to_case(row)

    async def get_case(self, case_id: str) -> Optional[Case]:
        """Retrieve case by primary key."""
        row = await self.db.get(CaseDB, case_id)
        if not row:
            return None
        return self._row_to_case(row)

    async def update_case(self, case_id: str, patch: Dict[str, Any]) -> Optional[Case]:
        """Apply a patch to mutable fields."""
        check_case_patch(patch)

        row = await self.db.get(CaseDB, case_id)
        if not row:
            return None

        try:
            for key, value in patch.items():
                setattr(row, key, value)
            await self.db.commit()
            await self.db.refresh(row)
        except _WRITE_ERRORS as e:
            await self.db.rollback()
            raise RepositoryException(f"Failed to update case {case_id}: {e}") from e

        return self._row_to_case(row)

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
        conditions = []
        if referring_vet_id:
            conditions.append(CaseDB.referring_vet_id == referring_vet_id)
        if specialist_id:
            conditions.append(CaseDB.specialist_id == specialist_id)
        if status:
            conditions.append(CaseDB.status == status)
        if urgency:
            conditions.append(CaseDB.urgency == urgency)

        count_query = select(func.count()).select_from(CaseDB).where(*conditions)
        total_count = (await self.db.execute(count_query)).scalar_one()

        data_query = (
            select(CaseDB)
            .where(*conditions)
            .order_by(CaseDB.submitted_at.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = (await self.db.execute(data_query)).scalars().all()

        return [self._row_to_case(row) for row in rows], total_count

    # ========================================================================
    # Documents
    # ========================================================================

    async def insert_documents(self, documents: List[Dict[str, Any]]) -> List[CaseDocument]:
        """Insert document rows for existing cases in one transaction."""
        if not documents:
            return []

        case_ids = {doc.get("case_id") for doc in documents}
        found = (
            await self.db.execute(select(CaseDB.id).where(CaseDB.id.in_(case_ids)))
        ).scalars().all()
        missing = case_ids - set(found)
        if missing:
            raise RepositoryException(
                f"Case {', '.join(sorted(str(m) for m in missing))} does not exist"
            )

        rows = [CaseDocumentDB(**_columns(CaseDocumentDB, doc)) for doc in documents]
        try:
            self.db.add_all(rows)
            await self.db.commit()
            for row in rows:
                await self.db.refresh(row)
        except _WRITE_ERRORS as e:
            await self.db.rollback()
            raise RepositoryException(f"Failed to insert case documents: {e}") from e

        return [CaseDocument.model_validate(row) for row in rows]

    async def list_documents(self, case_id: str) -> List[CaseDocument]:
        """List documents for a case."""
        query = (
            select(CaseDocumentDB)
            .where(CaseDocumentDB.case_id == case_id)
            .order_by(CaseDocumentDB.created_at)
        )
        rows = (await self.db.execute(query)).scalars().all()
        return [CaseDocument.model_validate(row) for row in rows]

    # ========================================================================
    # Timeline
    # ========================================================================

    async def append_timeline(self, entry: Dict[str, Any]) -> TimelineEntry:
        """Insert a timeline row."""
        case_id = entry.get("case_id")
        if not await self.db.get(CaseDB, case_id):
            raise RepositoryException(f"Case {case_id} does not exist")

        row = CaseTimelineDB(
            case_id=case_id,
            actor_id=entry.get("actor_id"),
            action=entry.get("action"),
            description=entry.get("description"),
            entry_metadata=entry.get("metadata"),
        )
        try:
            self.db.add(row)
            await self.db.commit()
            await self.db.refresh(row)
        except _WRITE_ERRORS as e:
            await self.db.rollback()
            raise RepositoryException(f"Failed to append timeline entry: {e}") from e

        return self._row_to_entry(row)

    async def list_timeline(self, case_id: str, ascending: bool = False) -> List[TimelineEntry]:
        """List timeline entries for a case."""
        order = CaseTimelineDB.created_at if ascending else CaseTimelineDB.created_at.desc()
        query = select(CaseTimelineDB).where(CaseTimelineDB.case_id == case_id).order_by(order)
        rows = (await self.db.execute(query)).scalars().all()
        return [self._row_to_entry(row) for row in rows]

    # ========================================================================
    # Specialist responses
    # ========================================================================

    async def insert_response(self, response: Dict[str, Any]) -> SpecialistResponse:
        """Insert a response row for an existing case."""
        case_id = response.get("case_id")
        if not await self.db.get(CaseDB, case_id):
            raise RepositoryException(f"Case {case_id} does not exist")

        row = CaseResponseDB(**_columns(CaseResponseDB, response))
        try:
            self.db.add(row)
            await self.db.commit()
            await self.db.refresh(row)
        except _WRITE_ERRORS as e:
            await self.db.rollback()
            raise RepositoryException(f"Failed to store response: {e}") from e

        return SpecialistResponse.model_validate(row)

    async def list_responses(self, case_id: str) -> List[SpecialistResponse]:
        query = (
            select(CaseResponseDB)
            .where(CaseResponseDB.case_id == case_id)
            .order_by(CaseResponseDB.created_at.desc())
        )
        rows = (await self.db.execute(query)).scalars().all()
        return [SpecialistResponse.model_validate(row) for row in rows]

    # ========================================================================
    # Row conversion
    # ========================================================================

    def _row_to_case(self, row: CaseDB) -> Case:
        """Convert database row to Case domain model."""
        return Case.model_validate(row)

    def _row_to_entry(self, row: CaseTimelineDB) -> TimelineEntry:
        # ``metadata`` is reserved on declarative classes
        return TimelineEntry(
            id=row.id,
            case_id=row.case_id,
            actor_id=row.actor_id,
            action=row.action,
            description=row.description,
            metadata=row.entry_metadata,
            created_at=row.created_at,
        )
