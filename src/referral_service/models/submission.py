"""Clinical intake submission models.

Signalment fields are optional at the model level so that the form
aggregator can report every missing field in one pass instead of failing
on the first one.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .case import CaseUrgency, SpayNeuterStatus, Species, SpecialtyArea
from .files import FileUploadResult


class MedicationUnit(str, Enum):
    """Dose units accepted on the medication list."""

    MG_PER_KG = "mg/kg"
    MICROGRAM_PER_KG = "microgram/kg"
    GRAM_PER_KG = "gram/kg"
    TOTAL_DOSE = "total_dose"


class SignalmentData(BaseModel):
    """Patient signalment."""

    species: Optional[Species] = None
    other_species_type: Optional[str] = None
    breed: Optional[str] = None
    age_years: Optional[int] = Field(default=None, ge=0)
    age_months: Optional[int] = Field(default=None, ge=0)
    weight: Optional[float] = None
    spay_neuter_status: Optional[SpayNeuterStatus] = None
    patient_name: Optional[str] = None


class AnesthesiaHistory(BaseModel):
    had_anesthesia: Optional[bool] = None
    had_problems: bool = False
    problems_notes: Optional[str] = None


class SystemExam(BaseModel):
    """Findings for one body system."""

    has_issues: bool = False
    notes: str = ""


class OtherSystemExam(BaseModel):
    checked: bool = False
    notes: str = ""


class TPRReadings(BaseModel):
    """Temperature, pulse and respiration as typed by the clinician."""

    temperature: str = ""
    pulse: str = ""
    respiratory: str = ""


class MedicalExaminationData(BaseModel):
    """System-by-system physical examination."""

    tpr: TPRReadings = Field(default_factory=TPRReadings)
    cardiovascular: SystemExam = Field(default_factory=SystemExam)
    auscultation: Optional[str] = None
    respiratory: SystemExam = Field(default_factory=SystemExam)
    gastrointestinal: SystemExam = Field(default_factory=SystemExam)
    urogenital: SystemExam = Field(default_factory=SystemExam)
    renal: SystemExam = Field(default_factory=SystemExam)
    hepatic: SystemExam = Field(default_factory=SystemExam)
    musculoskeletal: SystemExam = Field(default_factory=SystemExam)
    neurological: SystemExam = Field(default_factory=SystemExam)
    dermatological: SystemExam = Field(default_factory=SystemExam)
    ophthalmic: SystemExam = Field(default_factory=SystemExam)
    oral_dental: SystemExam = Field(default_factory=SystemExam)
    lymphatic: SystemExam = Field(default_factory=SystemExam)
    endocrine: SystemExam = Field(default_factory=SystemExam)
    other_system: OtherSystemExam = Field(default_factory=OtherSystemExam)


class MedicationEntry(BaseModel):
    drug_name: str = ""
    dose: str = ""
    unit: MedicationUnit = MedicationUnit.MG_PER_KG


class CaseSubmission(BaseModel):
    """Everything the referring vet enters before submitting a case."""

    signalment: SignalmentData = Field(default_factory=SignalmentData)
    chief_complaint: Optional[str] = None
    anesthesia_history: AnesthesiaHistory = Field(default_factory=AnesthesiaHistory)
    medical_examination: MedicalExaminationData = Field(default_factory=MedicalExaminationData)
    medications: List[MedicationEntry] = Field(default_factory=list)
    urgency: CaseUrgency = CaseUrgency.ROUTINE
    specialty_requested: SpecialtyArea = SpecialtyArea.INTERNAL_MEDICINE
    questions_for_specialist: Optional[str] = None
    blood_test_files: List[FileUploadResult] = Field(default_factory=list)
    medical_record_files: List[FileUploadResult] = Field(default_factory=list)


class ValidationResult(BaseModel):
    """Aggregated form validation outcome."""

    is_valid: bool
    errors: List[str] = Field(default_factory=list)
