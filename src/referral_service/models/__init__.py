"""Models package."""

from .case import (
    MUTABLE_CASE_FIELDS,
    Case,
    CaseDocument,
    CaseStatus,
    CaseUrgency,
    DocumentCategory,
    SpayNeuterStatus,
    Species,
    SpecialistResponse,
    SpecialtyArea,
    TimelineAction,
    TimelineEntry,
    UserRole,
)
from .files import (
    CandidateFile,
    FileDeleteResult,
    FilePolicy,
    FileUploadResult,
    FileValidationResult,
)
from .outcomes import (
    CaseCreated,
    LinkResult,
    SubmissionFailed,
    SubmissionFailureReason,
    SubmissionOutcome,
    TimelineResult,
)
from .requests import (
    CaseAddendumRequest,
    CaseDocumentResponse,
    CaseListResponse,
    CaseResponse,
    CaseSubmitResponse,
    FileBatchUploadResponse,
    HealthResponse,
    SpecialistResponseRequest,
    StatusTransitionRequest,
    TimelineEntryRequest,
    TimelineResponse,
)
from .submission import (
    AnesthesiaHistory,
    CaseSubmission,
    MedicalExaminationData,
    MedicationEntry,
    MedicationUnit,
    OtherSystemExam,
    SignalmentData,
    SystemExam,
    TPRReadings,
    ValidationResult,
)

__all__ = [
    "MUTABLE_CASE_FIELDS",
    "AnesthesiaHistory",
    "CandidateFile",
    "Case",
    "CaseAddendumRequest",
    "CaseCreated",
    "CaseDocument",
    "CaseDocumentResponse",
    "CaseListResponse",
    "CaseResponse",
    "CaseStatus",
    "CaseSubmission",
    "CaseSubmitResponse",
    "CaseUrgency",
    "DocumentCategory",
    "FileBatchUploadResponse",
    "FileDeleteResult",
    "FilePolicy",
    "FileUploadResult",
    "FileValidationResult",
    "HealthResponse",
    "LinkResult",
    "MedicalExaminationData",
    "MedicationEntry",
    "MedicationUnit",
    "OtherSystemExam",
    "SignalmentData",
    "SpayNeuterStatus",
    "SpecialistResponse",
    "SpecialistResponseRequest",
    "Species",
    "SpecialtyArea",
    "StatusTransitionRequest",
    "SubmissionFailed",
    "SubmissionFailureReason",
    "SubmissionOutcome",
    "SystemExam",
    "TPRReadings",
    "TimelineAction",
    "TimelineEntry",
    "TimelineEntryRequest",
    "TimelineResponse",
    "TimelineResult",
    "UserRole",
    "ValidationResult",
]
