"""API request and response models."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .case import (
    Case,
    CaseDocument,
    CaseStatus,
    CaseUrgency,
    DocumentCategory,
    SpecialtyArea,
    TimelineEntry,
)
from .files import FileUploadResult


class CaseSubmitResponse(BaseModel):
    """Response to a successful case submission."""

    case_id: str
    documents_linked: int
    document_link_warnings: List[str]
    timeline_recorded: bool


class StatusTransitionRequest(BaseModel):
    """Optional note attached to a status change."""

    note: Optional[str] = Field(None, max_length=2000)


class CaseAddendumRequest(BaseModel):
    """Clinical fields a specialist may fill in after submission."""

    working_diagnosis: Optional[str] = None
    differential_diagnoses: Optional[str] = None
    diagnostic_results: Optional[str] = None
    questions_for_specialist: Optional[str] = None
    urgency: Optional[CaseUrgency] = None
    specialty_requested: Optional[SpecialtyArea] = None


class SpecialistResponseRequest(BaseModel):
    """A consultation response written by a specialist.

    ``draft`` responses are stored but never final and not announced on
    the timeline.
    """

    response_text: str = ""
    diagnosis: Optional[str] = None
    treatment_recommendations: Optional[str] = None
    prognosis: Optional[str] = None
    referral_recommendations: Optional[str] = None
    follow_up_needed: bool = False
    follow_up_date: Optional[date] = None
    is_final_response: bool = False
    draft: bool = False


class TimelineEntryRequest(BaseModel):
    """Request to append a timeline entry."""

    action: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class CaseResponse(BaseModel):
    """Response containing a single case."""

    case_id: str
    referring_vet_id: str
    specialist_id: Optional[str]
    patient_name: str
    species: str
    other_species_type: Optional[str]
    breed: Optional[str]
    age_years: Optional[int]
    age_months: Optional[int]
    weight_kg: Optional[float]
    spay_neuter_status: Optional[str]
    chief_complaint: str
    presenting_complaint: str
    anesthesia_history: Optional[Dict[str, Any]]
    physical_examination: Optional[Dict[str, Any]]
    vital_signs: Optional[Dict[str, Any]]
    current_medications: List[Dict[str, Any]]
    status: str
    urgency: str
    specialty_requested: str
    working_diagnosis: Optional[str]
    differential_diagnoses: Optional[str]
    diagnostic_results: Optional[str]
    questions_for_specialist: Optional[str]
    submitted_at: datetime
    accepted_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_case(cls, case: Case) -> "CaseResponse":
        """Convert Case model to response."""
        data = case.model_dump(exclude={"id"})
        data["case_id"] = case.id
        data["species"] = case.species.value
        data["status"] = case.status.value
        data["urgency"] = case.urgency.value
        data["specialty_requested"] = case.specialty_requested.value
        data["spay_neuter_status"] = (
            case.spay_neuter_status.value if case.spay_neuter_status else None
        )
        return cls(**data)


class CaseListResponse(BaseModel):
    """Response containing a list of cases."""

    cases: List[CaseResponse]
    total: int
    page: int
    page_size: int


class CaseDocumentResponse(BaseModel):
    """A linked document with a time-limited download URL."""

    document_id: str
    case_id: str
    file_name: str
    file_type: str
    mime_type: Optional[str]
    file_size: int
    description: Optional[str]
    is_primary: bool
    uploaded_by: str
    created_at: datetime
    url: Optional[str] = None
    extension: str = ""
    size_label: str = ""
    media_kind: str = "document"

    @classmethod
    def from_document(
        cls, document: CaseDocument, url: Optional[str], **display: str
    ) -> "CaseDocumentResponse":
        return cls(
            document_id=document.id,
            case_id=document.case_id,
            file_name=document.file_name,
            file_type=document.file_type.value,
            mime_type=document.mime_type,
            file_size=document.file_size,
            description=document.description,
            is_primary=document.is_primary,
            uploaded_by=document.uploaded_by,
            created_at=document.created_at,
            url=url,
            **display,
        )


class TimelineResponse(BaseModel):
    case_id: str
    entries: List[TimelineEntry]


class FileBatchUploadResponse(BaseModel):
    """Per-file results of a multi-file upload, in input order."""

    category: DocumentCategory
    results: List[FileUploadResult]
    uploaded: int
    rejected: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    database: str
    case_storage: str
    object_storage: str


__all__ = [
    "CaseAddendumRequest",
    "CaseDocumentResponse",
    "CaseListResponse",
    "CaseResponse",
    "CaseStatus",
    "CaseSubmitResponse",
    "FileBatchUploadResponse",
    "HealthResponse",
    "StatusTransitionRequest",
    "TimelineEntryRequest",
    "TimelineResponse",
]
