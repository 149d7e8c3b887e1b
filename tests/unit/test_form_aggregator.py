"""Tests for clinical intake validation and normalization."""

import pytest

from referral_service.core.form_aggregator import (
    build_case_record,
    parse_number,
    prepare_medications,
    prepare_physical_examination,
    prepare_vital_signs,
    validate_case_submission,
)
from referral_service.models import (
    CaseStatus,
    CaseSubmission,
    MedicalExaminationData,
    MedicationEntry,
    TPRReadings,
)


@pytest.mark.unit
class TestValidateCaseSubmission:

    def test_complete_submission_is_valid(self, make_submission):
        result = validate_case_submission(make_submission())

        assert result.is_valid is True
        assert result.errors == []

    def test_all_violations_are_reported(self, make_submission):
        result = validate_case_submission(make_submission(weight=None, patient_name=""))

        assert result.is_valid is False
        assert "Weight is required and must be greater than 0" in result.errors
        assert "Patient name is required" in result.errors
        assert len(result.errors) >= 2

    def test_empty_form(self):
        result = validate_case_submission(CaseSubmission())

        assert result.errors == [
            "Species is required",
            "Age is required",
            "Weight is required and must be greater than 0",
            "Reproductive status is required",
            "Patient name is required",
            "Chief complaint / Surgery type is required",
        ]

    def test_other_species_requires_type(self, make_submission):
        result = validate_case_submission(make_submission(species="other"))

        assert result.errors == ['Please specify the species type when "Other" is selected']

    def test_other_species_with_type_is_valid(self, make_submission):
        result = validate_case_submission(
            make_submission(species="other", other_species_type="Ferret")
        )

        assert result.is_valid is True

    def test_zero_years_requires_months(self, make_submission):
        result = validate_case_submission(make_submission(age_years=0))

        assert result.errors == ["Age in months is required when age is 0 years"]

    def test_zero_years_with_months_is_valid(self, make_submission):
        assert validate_case_submission(make_submission(age_years=0, age_months=4)).is_valid

    def test_months_not_required_for_adults(self, make_submission):
        assert validate_case_submission(make_submission(age_years=3)).is_valid

    def test_zero_weight_is_rejected(self, make_submission):
        result = validate_case_submission(make_submission(weight=0))

        assert result.errors == ["Weight is required and must be greater than 0"]

    def test_blank_chief_complaint_is_rejected(self, make_submission):
        result = validate_case_submission(make_submission(chief_complaint="   "))

        assert result.errors == ["Chief complaint / Surgery type is required"]


@pytest.mark.unit
class TestNormalization:

    @pytest.mark.parametrize("raw,expected", [
        ("38.5", 38.5),
        ("38.5 C", 38.5),
        (" 120bpm", 120.0),
        (".5", 0.5),
        ("abc", None),
        ("", None),
        (None, None),
    ])
    def test_parse_number(self, raw, expected):
        assert parse_number(raw) == expected

    def test_vital_signs(self):
        vitals = prepare_vital_signs(TPRReadings(temperature="39.1", pulse="110.7", respiratory="n/a"))

        assert vitals == {"temperature": 39.1, "pulse": 110, "respiratory": None}

    def test_physical_examination_groups_systems(self):
        exam = MedicalExaminationData(
            auscultation="Grade II/VI murmur",
            cardiovascular={"has_issues": True, "notes": "murmur"},
            gastrointestinal={"has_issues": True, "notes": "vomiting 3 days"},
            other_system={"checked": True, "notes": "mild lameness"},
        )

        prepared = prepare_physical_examination(exam)

        systems = prepared["systems"]
        assert systems["cardiovascular"] == {
            "has_issues": True,
            "notes": "murmur",
            "auscultation": "Grade II/VI murmur",
        }
        assert systems["gastrointestinal"]["notes"] == "vomiting 3 days"
        assert systems["oral_dental"] == {"has_issues": False, "notes": ""}
        assert systems["other"] == "mild lameness"
        assert prepared["tpr"] == {"temperature": "", "pulse": "", "respiratory": ""}

    def test_unchecked_other_system_is_dropped(self):
        exam = MedicalExaminationData(other_system={"checked": False, "notes": "ignored"})

        assert prepare_physical_examination(exam)["systems"]["other"] is None

    def test_medications_drop_incomplete_rows(self):
        medications = [
            MedicationEntry(drug_name="Meloxicam", dose="0.1", unit="mg/kg"),
            MedicationEntry(drug_name="", dose="5"),
            MedicationEntry(drug_name="Gabapentin", dose=""),
            MedicationEntry(drug_name="Maropitant", dose="one tab", unit="total_dose"),
        ]

        assert prepare_medications(medications) == [
            {"drug_name": "Meloxicam", "dose": 0.1, "unit": "mg/kg"},
            {"drug_name": "Maropitant", "dose": 0.0, "unit": "total_dose"},
        ]


@pytest.mark.unit
class TestBuildCaseRecord:

    def test_record_shape(self, make_submission):
        record = build_case_record(make_submission(patient_name="  Buddy "), "vet_1")

        assert record["referring_vet_id"] == "vet_1"
        assert record["patient_name"] == "Buddy"
        assert record["status"] == CaseStatus.SUBMITTED
        assert record["weight_kg"] == 28.5
        assert record["chief_complaint"] == record["presenting_complaint"] == "lethargy"
        assert record["vital_signs"] == {"temperature": 39.1, "pulse": 110, "respiratory": 24}
        assert record["current_medications"] == [
            {"drug_name": "Meloxicam", "dose": 0.1, "unit": "mg/kg"}
        ]

    def test_record_has_no_store_assigned_fields(self, make_submission):
        record = build_case_record(make_submission(), "vet_1")

        for field in ("id", "submitted_at", "created_at", "updated_at"):
            assert field not in record
