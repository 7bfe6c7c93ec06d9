from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "Roof Report API"
    app_env: str = "development"
    app_port: int = 8000
    frontend_url: str = "http://localhost:3000"
    max_upload_size_mb: int = 20
    log_level: str | None = Field(default=None, alias="LOG_LEVEL")
    # Install checklists and templates (and create tables on SQLite) at startup
    seed_on_startup: bool = Field(default=True, alias="SEED_ON_STARTUP")

    # Database (Postgres in production, SQLite for local dev)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./roofreport_dev.db",
        alias="DATABASE_URL",
    )

    # Numbering
    report_number_prefix: str = Field(default="RANZ", alias="REPORT_NUMBER_PREFIX")
    complaint_number_prefix: str = Field(
        default="RANZ-LBP", alias="COMPLAINT_NUMBER_PREFIX",
    )

    # Object storage (S3-compatible; falls back to a local media dir when no bucket)
    storage_bucket: str | None = Field(default=None, alias="STORAGE_BUCKET")
    storage_endpoint_url: str | None = Field(default=None, alias="STORAGE_ENDPOINT_URL")
    storage_region: str = Field(default="auto", alias="STORAGE_REGION")
    storage_access_key_id: str | None = Field(default=None, alias="STORAGE_ACCESS_KEY_ID")
    storage_secret_access_key: str | None = Field(
        default=None, alias="STORAGE_SECRET_ACCESS_KEY",
    )
    storage_public_url: str | None = Field(default=None, alias="STORAGE_PUBLIC_URL")
    media_dir: str = Field(default="./media", alias="MEDIA_DIR")
    presigned_url_expiry_seconds: int = Field(
        default=3600, alias="PRESIGNED_URL_EXPIRY_SECONDS",
    )

    # Complainant organisation (pre-filled on every LBP complaint)
    org_name: str = Field(default="Roofing Association of New Zealand", alias="ORG_NAME")
    org_address: str = Field(default="", alias="ORG_ADDRESS")
    org_phone: str = Field(default="", alias="ORG_PHONE")
    org_email: str = Field(default="", alias="ORG_EMAIL")
    org_relation: str = "Third-party inspector"

    # Building Practitioners Board
    bpb_name: str = "Building Practitioners Board"
    bpb_complaints_email: str = Field(
        default="complaints@lbp.govt.nz", alias="BPB_COMPLAINTS_EMAIL",
    )
    bpb_address: str = "Building Practitioners Board, PO Box 10-352, Wellington 6143"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def s3_enabled(self) -> bool:
        """Object storage goes to S3 only when a bucket is configured."""
        return bool(self.storage_bucket)

settings = Settings()
