"""SQLAlchemy database models."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

from referral_service.models.case import (
    CaseStatus,
    CaseUrgency,
    DocumentCategory,
    SpayNeuterStatus,
    Species,
    SpecialtyArea,
)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


def _enum(enum_cls, name: str) -> Enum:
    """Closed enumeration column storing member values."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class CaseDB(Base):
    """SQLAlchemy model for cases table."""

    __tablename__ = "cases"

    id = Column(String(36), primary_key=True, default=_new_id)
    referring_vet_id = Column(String(100), nullable=False, index=True)
    specialist_id = Column(String(100), nullable=True, index=True)

    patient_name = Column(String(200), nullable=False)
    species = Column(_enum(Species, "animal_species"), nullable=False)
    other_species_type = Column(String(100), nullable=True)
    breed = Column(String(100), nullable=True)
    age_years = Column(Integer, nullable=True)
    age_months = Column(Integer, nullable=True)
    weight_kg = Column(Float, nullable=True)
    spay_neuter_status = Column(_enum(SpayNeuterStatus, "spay_neuter_status"), nullable=True)

    chief_complaint = Column(Text, nullable=False)
    presenting_complaint = Column(Text, nullable=False)
    anesthesia_history = Column(JSON, nullable=True)
    physical_examination = Column(JSON, nullable=True)
    vital_signs = Column(JSON, nullable=True)
    current_medications = Column(JSON, nullable=False, default=list)

    status = Column(
        _enum(CaseStatus, "case_status"),
        nullable=False,
        default=CaseStatus.SUBMITTED,
        index=True,
    )
    urgency = Column(
        _enum(CaseUrgency, "case_urgency"),
        nullable=False,
        default=CaseUrgency.ROUTINE,
    )
    specialty_requested = Column(
        _enum(SpecialtyArea, "specialty_area"),
        nullable=False,
        default=SpecialtyArea.INTERNAL_MEDICINE,
    )

    working_diagnosis = Column(Text, nullable=True)
    differential_diagnoses = Column(Text, nullable=True)
    diagnostic_results = Column(Text, nullable=True)
    questions_for_specialist = Column(Text, nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )


class CaseDocumentDB(Base):
    """SQLAlchemy model for case_documents table."""

    __tablename__ = "case_documents"

    id = Column(String(36), primary_key=True, default=_new_id)
    case_id = Column(String(36), ForeignKey("cases.id"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(1024), nullable=False)
    file_type = Column(_enum(DocumentCategory, "document_category"), nullable=False)
    mime_type = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    uploaded_by = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class CaseTimelineDB(Base):
    """SQLAlchemy model for case_timeline table. Rows are never updated."""

    __tablename__ = "case_timeline"

    id = Column(String(36), primary_key=True, default=_new_id)
    case_id = Column(String(36), ForeignKey("cases.id"), nullable=False, index=True)
    actor_id = Column(String(100), nullable=False)
    action = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    entry_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)


class CaseResponseDB(Base):
    """SQLAlchemy model for case_responses table."""

    __tablename__ = "case_responses"

    id = Column(String(36), primary_key=True, default=_new_id)
    case_id = Column(String(36), ForeignKey("cases.id"), nullable=False, index=True)
    specialist_id = Column(String(100), nullable=False, index=True)
    response_text = Column(Text, nullable=False)
    diagnosis = Column(Text, nullable=True)
    treatment_recommendations = Column(Text, nullable=True)
    prognosis = Column(Text, nullable=True)
    referral_recommendations = Column(Text, nullable=True)
    follow_up_needed = Column(Boolean, nullable=False, default=False)
    follow_up_date = Column(Date, nullable=True)
    is_final_response = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )
