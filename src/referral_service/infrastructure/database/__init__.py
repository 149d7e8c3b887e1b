"""Database infrastructure package."""

from .client import db_client, DatabaseClient
from .models import Base, CaseDB, CaseDocumentDB, CaseResponseDB, CaseTimelineDB

__all__ = [
    "db_client",
    "DatabaseClient",
    "Base",
    "CaseDB",
    "CaseDocumentDB",
    "CaseResponseDB",
    "CaseTimelineDB",
]
