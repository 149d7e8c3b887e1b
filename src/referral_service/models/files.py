"""File policy and upload result models."""

from typing import FrozenSet, Optional

from pydantic import BaseModel, Field

from .case import DocumentCategory


class FilePolicy(BaseModel):
    """Acceptance policy for one attachment category."""

    category: DocumentCategory
    bucket: str
    max_size: int
    allowed_types: FrozenSet[str]
    description: str


class CandidateFile(BaseModel):
    """A file selected for upload, as declared by the client."""

    name: str
    content_type: str = ""
    size: int = Field(ge=0)
    data: bytes = b""

    @classmethod
    def from_bytes(cls, name: str, content_type: str, data: bytes) -> "CandidateFile":
        return cls(name=name, content_type=content_type or "", size=len(data), data=data)


class FileValidationResult(BaseModel):
    """Outcome of checking a file against a policy."""

    is_valid: bool
    error: Optional[str] = None


class FileUploadResult(BaseModel):
    """Outcome of a single upload attempt.

    ``file_url`` and ``storage_path`` are set iff ``success``; ``error`` is
    set iff not.
    """

    success: bool
    file_url: Optional[str] = None
    storage_path: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    content_type: Optional[str] = None
    error: Optional[str] = None


class FileDeleteResult(BaseModel):
    """Outcome of removing a stored object."""

    success: bool
    error: Optional[str] = None
