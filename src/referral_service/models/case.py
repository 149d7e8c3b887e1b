"""Case data models for the referral service.

Closed vocabularies mirror the enumerations enforced by the database; any
value outside them is rejected before it reaches a row.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CaseStatus(str, Enum):
    """Case lifecycle status."""

    SUBMITTED = "submitted"
    REVIEWING = "reviewing"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FOLLOW_UP_NEEDED = "follow_up_needed"
    DECLINED = "declined"


class CaseUrgency(str, Enum):
    """Case urgency levels."""

    ROUTINE = "routine"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class Species(str, Enum):
    """Patient species."""

    DOG = "dog"
    CAT = "cat"
    HORSE = "horse"
    BIRD = "bird"
    RABBIT = "rabbit"
    OTHER = "other"


class SpayNeuterStatus(str, Enum):
    """Reproductive status."""

    SPAYED = "spayed"
    NEUTERED = "neutered"
    INTACT = "intact"


class SpecialtyArea(str, Enum):
    """Specialty requested for a referral."""

    ANESTHESIA = "anesthesia"
    CARDIOLOGY = "cardiology"
    DERMATOLOGY = "dermatology"
    EMERGENCY = "emergency"
    INTERNAL_MEDICINE = "internal_medicine"
    NEUROLOGY = "neurology"
    ONCOLOGY = "oncology"
    OPHTHALMOLOGY = "ophthalmology"
    ORTHOPEDICS = "orthopedics"
    SURGERY = "surgery"


class DocumentCategory(str, Enum):
    """Attachment category; selects the upload policy."""

    BLOOD_TEST_IMAGE = "blood_test_image"
    MEDICAL_RECORD = "medical_record"


class UserRole(str, Enum):
    """Role of the caller, as asserted by the gateway."""

    REFERRING_VET = "referring_vet"
    SPECIALIST = "specialist"


class TimelineAction(str, Enum):
    """Known timeline actions. Entries may use other labels."""

    CASE_SUBMITTED = "case_submitted"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    STATUS_CHANGED = "status_changed"
    RESPONSE_SUBMITTED = "response_submitted"
    ADDENDUM_UPDATED = "addendum_updated"
    COMPLETED = "completed"
    FOLLOW_UP_REQUESTED = "follow_up_requested"


# Fields that may change after a case is created.
MUTABLE_CASE_FIELDS = frozenset({
    "status",
    "urgency",
    "specialty_requested",
    "specialist_id",
    "working_diagnosis",
    "differential_diagnoses",
    "diagnostic_results",
    "questions_for_specialist",
    "accepted_at",
    "completed_at",
})


class Case(BaseModel):
    """Case domain model."""

    id: str
    referring_vet_id: str
    specialist_id: Optional[str] = None

    patient_name: str
    species: Species
    other_species_type: Optional[str] = None
    breed: Optional[str] = None
    age_years: Optional[int] = None
    age_months: Optional[int] = None
    weight_kg: Optional[float] = None
    spay_neuter_status: Optional[SpayNeuterStatus] = None

    chief_complaint: str
    presenting_complaint: str
    anesthesia_history: Optional[Dict[str, Any]] = None
    physical_examination: Optional[Dict[str, Any]] = None
    vital_signs: Optional[Dict[str, Any]] = None
    current_medications: List[Dict[str, Any]] = Field(default_factory=list)

    status: CaseStatus = CaseStatus.SUBMITTED
    urgency: CaseUrgency = CaseUrgency.ROUTINE
    specialty_requested: SpecialtyArea = SpecialtyArea.INTERNAL_MEDICINE

    working_diagnosis: Optional[str] = None
    differential_diagnoses: Optional[str] = None
    diagnostic_results: Optional[str] = None
    questions_for_specialist: Optional[str] = None

    submitted_at: datetime
    accepted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CaseDocument(BaseModel):
    """A stored file linked to a case."""

    id: str
    case_id: str
    file_name: str
    file_path: str
    file_type: DocumentCategory
    mime_type: Optional[str] = None
    file_size: int = 0
    description: Optional[str] = None
    is_primary: bool = False
    uploaded_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class TimelineEntry(BaseModel):
    """Append-only audit record for a case."""

    id: str
    case_id: str
    actor_id: str
    action: str
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime


class SpecialistResponse(BaseModel):
    """A specialist's written consultation on a case.

    Responses are added, not edited; a case may collect several, with
    ``is_final_response`` marking the concluding one.
    """

    id: str
    case_id: str
    specialist_id: str
    response_text: str
    diagnosis: Optional[str] = None
    treatment_recommendations: Optional[str] = None
    prognosis: Optional[str] = None
    referral_recommendations: Optional[str] = None
    follow_up_needed: bool = False
    follow_up_date: Optional[date] = None
    is_final_response: bool = False
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
