"""Case persistence layer - Repository Pattern implementation."""

from referral_service.infrastructure.persistence.case_repository import (
    CaseRepository,
    ImmutableFieldError,
    InMemoryCaseRepository,
    RepositoryException,
)
from referral_service.infrastructure.persistence.sqlalchemy_case_repository import (
    SQLAlchemyCaseRepository,
)

__all__ = [
    "CaseRepository",
    "ImmutableFieldError",
    "InMemoryCaseRepository",
    "RepositoryException",
    "SQLAlchemyCaseRepository",
]
