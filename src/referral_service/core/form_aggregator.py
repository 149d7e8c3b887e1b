"""Clinical intake validation and normalization."""

import re
from typing import Any, Dict, List, Optional

from referral_service.models import (
    CaseStatus,
    CaseSubmission,
    MedicalExaminationData,
    MedicationEntry,
    Species,
    TPRReadings,
    ValidationResult,
)

_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+))")

EXAM_SYSTEMS = (
    "respiratory",
    "gastrointestinal",
    "urogenital",
    "renal",
    "hepatic",
    "musculoskeletal",
    "neurological",
    "dermatological",
    "ophthalmic",
    "oral_dental",
    "lymphatic",
    "endocrine",
)


def validate_case_submission(submission: CaseSubmission) -> ValidationResult:
    """Check required and conditional fields.

    Every violated rule is reported, not just the first.
    """
    errors: List[str] = []
    signalment = submission.signalment

    if not signalment.species:
        errors.append("Species is required")

    if signalment.species == Species.OTHER and not (signalment.other_species_type or "").strip():
        errors.append('Please specify the species type when "Other" is selected')

    if signalment.age_years is None:
        errors.append("Age is required")
    elif signalment.age_years == 0 and not signalment.age_months:
        errors.append("Age in months is required when age is 0 years")

    if not signalment.weight or signalment.weight <= 0:
        errors.append("Weight is required and must be greater than 0")

    if not signalment.spay_neuter_status:
        errors.append("Reproductive status is required")

    if not (signalment.patient_name or "").strip():
        errors.append("Patient name is required")

    if not (submission.chief_complaint or "").strip():
        errors.append("Chief complaint / Surgery type is required")

    return ValidationResult(is_valid=not errors, errors=errors)


def parse_number(value: Optional[str]) -> Optional[float]:
    """Read the leading number of a free-text value.

    ``"38.5 C"`` gives 38.5; text with no leading number gives None.
    """
    if not value:
        return None
    match = _LEADING_NUMBER.match(value)
    if not match:
        return None
    return float(match.group(1))


def prepare_vital_signs(tpr: TPRReadings) -> Dict[str, Any]:
    temperature = parse_number(tpr.temperature)
    pulse = parse_number(tpr.pulse)
    respiratory = parse_number(tpr.respiratory)
    return {
        "temperature": temperature,
        "pulse": int(pulse) if pulse is not None else None,
        "respiratory": int(respiratory) if respiratory is not None else None,
    }


def prepare_physical_examination(exam: MedicalExaminationData) -> Dict[str, Any]:
    """Group system findings into one object keyed by body system."""
    systems: Dict[str, Any] = {
        "cardiovascular": {
            **exam.cardiovascular.model_dump(),
            "auscultation": exam.auscultation or None,
        },
    }
    for name in EXAM_SYSTEMS:
        systems[name] = getattr(exam, name).model_dump()
    systems["other"] = exam.other_system.notes if exam.other_system.checked else None

    return {"tpr": exam.tpr.model_dump(), "systems": systems}


def prepare_medications(medications: List[MedicationEntry]) -> List[Dict[str, Any]]:
    """Drop incomplete rows and coerce doses to numbers (0.0 if unreadable)."""
    prepared = []
    for med in medications:
        if not med.drug_name.strip() or not med.dose.strip():
            continue
        prepared.append({
            "drug_name": med.drug_name,
            "dose": parse_number(med.dose) or 0.0,
            "unit": med.unit.value,
        })
    return prepared


def build_case_record(submission: CaseSubmission, actor_id: str) -> Dict[str, Any]:
    """Normalize a validated submission into a case row.

    Carries no id or timestamps; the store assigns those.
    """
    signalment = submission.signalment
    return {
        "referring_vet_id": actor_id,
        "patient_name": signalment.patient_name.strip(),
        "species": signalment.species,
        "other_species_type": signalment.other_species_type or None,
        "breed": signalment.breed or None,
        "age_years": signalment.age_years,
        "age_months": signalment.age_months or None,
        "weight_kg": signalment.weight,
        "spay_neuter_status": signalment.spay_neuter_status,
        "chief_complaint": submission.chief_complaint,
        "presenting_complaint": submission.chief_complaint,
        "anesthesia_history": submission.anesthesia_history.model_dump(),
        "physical_examination": prepare_physical_examination(submission.medical_examination),
        "vital_signs": prepare_vital_signs(submission.medical_examination.tpr),
        "current_medications": prepare_medications(submission.medications),
        "questions_for_specialist": submission.questions_for_specialist or None,
        "status": CaseStatus.SUBMITTED,
        "urgency": submission.urgency,
        "specialty_requested": submission.specialty_requested,
    }
