"""Typed results returned by the submission pipeline."""

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .case import TimelineEntry


class SubmissionFailureReason(str, Enum):
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    STORAGE = "storage"
    UNEXPECTED = "unexpected"


class CaseCreated(BaseModel):
    """The case row exists; attachments may have degraded."""

    success: Literal[True] = True
    case_id: str
    documents_linked: int = 0
    document_link_warnings: List[str] = Field(default_factory=list)

    @property
    def fully_succeeded(self) -> bool:
        return not self.document_link_warnings


class SubmissionFailed(BaseModel):
    """Nothing was persisted."""

    success: Literal[False] = False
    reason: SubmissionFailureReason
    error: str
    errors: List[str] = Field(default_factory=list)


SubmissionOutcome = Union[CaseCreated, SubmissionFailed]


class LinkResult(BaseModel):
    success: bool
    linked: int = 0
    error: Optional[str] = None


class TimelineResult(BaseModel):
    success: bool
    entry: Optional[TimelineEntry] = None
    error: Optional[str] = None
