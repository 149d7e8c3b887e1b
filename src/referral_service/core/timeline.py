"""Append-only case timeline."""

import logging
from typing import Any, Dict, List, Optional

from referral_service.infrastructure.persistence import CaseRepository
from referral_service.models import TimelineEntry, TimelineResult

logger = logging.getLogger(__name__)


class TimelineRecorder:
    """Appends audit events for cases. Entries are never edited or removed."""

    def __init__(self, repository: CaseRepository):
        self.repository = repository

    async def record(
        self,
        actor_id: Optional[str],
        case_id: str,
        action: str,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> TimelineResult:
        """Append an entry. Failures are returned, never raised.

        Args:
            actor_id: Identity performing the action
            case_id: Case the entry belongs to
            action: Label such as ``case_submitted`` or ``accepted``
            description: Optional human-readable text
            metadata: Optional structured payload
        """
        if not actor_id:
            return TimelineResult(success=False, error="Authentication required")

        try:
            entry = await self.repository.append_timeline({
                "case_id": case_id,
                "actor_id": actor_id,
                "action": action,
                "description": description,
                "metadata": metadata,
            })
        except Exception as e:
            logger.error(f"Error creating timeline entry for case {case_id}: {e}")
            return TimelineResult(success=False, error=str(e))

        return TimelineResult(success=True, entry=entry)

    async def history(self, case_id: str, ascending: bool = False) -> List[TimelineEntry]:
        """Entries for a case; newest first unless ``ascending``."""
        return await self.repository.list_timeline(case_id, ascending=ascending)
