"""Environment-driven configuration for the referral service."""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Read from the environment (case-insensitive) and an optional ``.env``.

    ``CASE_STORAGE_TYPE`` picks the case store (``inmemory`` or ``database``)
    and ``OBJECT_STORAGE_TYPE`` the attachment store (``inmemory`` or ``s3``).
    """

    service_name: str = "vet-referral-service"
    environment: str = "development"
    port: int = 8003
    log_level: str = "INFO"
    cors_origins: str = "*"

    # Cases, documents, timeline
    case_storage_type: str = "inmemory"
    database_url: str = "sqlite+aiosqlite:///./vet_referrals.db"
    default_page_size: int = 50
    max_page_size: int = 100

    # Attachments
    object_storage_type: str = "inmemory"
    blood_tests_bucket: str = "blood-tests"
    medical_records_bucket: str = "medical-records"
    upload_cache_control: str = "3600"
    signed_url_ttl_seconds: int = 3600
    storage_public_base_url: Optional[str] = None

    # S3-compatible endpoint (AWS, MinIO, Supabase)
    s3_endpoint_url: Optional[str] = None
    s3_region: str = "us-east-1"
    s3_access_key_id: Optional[str] = None
    s3_secret_access_key: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """``CORS_ORIGINS`` split on commas; ``*`` allows any origin."""
        if self.cors_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def uses_database(self) -> bool:
        return self.case_storage_type.lower() == "database"


settings = Settings()
