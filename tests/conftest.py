"""Shared fixtures for referral service tests."""

from typing import Any, Dict

import pytest

from referral_service.core import StorageUploader
from referral_service.infrastructure.persistence import (
    InMemoryCaseRepository,
    RepositoryException,
)
from referral_service.infrastructure.storage import InMemoryObjectStore, StorageException
from referral_service.models import CaseSubmission, FileUploadResult


class FlakyObjectStore(InMemoryObjectStore):
    """Fails uploads whose file name contains one of ``fail_markers``."""

    def __init__(self, *fail_markers: str):
        super().__init__()
        self.fail_markers = fail_markers

    def put_object(self, bucket, path, data, content_type=None, cache_control=None):
        name = path.rsplit("_", 1)[-1]
        if any(marker in name for marker in self.fail_markers):
            raise StorageException("connection reset by peer")
        return super().put_object(bucket, path, data, content_type, cache_control)


class DocumentLinkFailingRepository(InMemoryCaseRepository):
    """Creates cases but cannot store documents."""

    async def insert_documents(self, documents):
        raise RepositoryException("case_documents insert timed out")


class CaseCreateFailingRepository(InMemoryCaseRepository):
    async def create_case(self, record):
        raise RepositoryException("connection refused")


def _uploaded(name: str, bucket: str = "blood-tests", size: int = 2048) -> FileUploadResult:
    path = f"vet_1/1729240000000_abc123_{name}"
    return FileUploadResult(
        success=True,
        file_url=f"memory://storage/{bucket}/{path}",
        storage_path=path,
        file_name=name,
        file_size=size,
        content_type="image/png",
    )


def _failed_upload(name: str) -> FileUploadResult:
    return FileUploadResult(success=False, file_name=name, error="Upload failed: boom")


def submission_data(**overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "signalment": {
            "species": "dog",
            "breed": "Labrador Retriever",
            "age_years": 6,
            "weight": 28.5,
            "spay_neuter_status": "neutered",
            "patient_name": "Buddy",
        },
        "chief_complaint": "lethargy",
        "medical_examination": {
            "tpr": {"temperature": "39.1", "pulse": "110", "respiratory": "24"},
        },
        "medications": [{"drug_name": "Meloxicam", "dose": "0.1", "unit": "mg/kg"}],
    }
    for key, value in overrides.items():
        if key in data["signalment"] or key in ("other_species_type", "age_months"):
            data["signalment"][key] = value
        else:
            data[key] = value
    return data


@pytest.fixture
def make_submission():
    """Factory for a valid submission; keyword overrides patch fields."""

    def factory(**overrides: Any) -> CaseSubmission:
        return CaseSubmission(**submission_data(**overrides))

    return factory


@pytest.fixture
def repository():
    return InMemoryCaseRepository()


@pytest.fixture
def object_store():
    return InMemoryObjectStore()


@pytest.fixture
def uploader(object_store):
    return StorageUploader(object_store)


@pytest.fixture
def upload_result():
    """Factory for upload references; ``success=False`` gives a failed upload."""

    def factory(name: str, bucket: str = "blood-tests", success: bool = True, size: int = 2048):
        return _uploaded(name, bucket, size) if success else _failed_upload(name)

    return factory


@pytest.fixture
def flaky_object_store():
    return FlakyObjectStore


@pytest.fixture
def link_failing_repository():
    return DocumentLinkFailingRepository()


@pytest.fixture
def create_failing_repository():
    return CaseCreateFailingRepository()
