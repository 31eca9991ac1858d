"""
Configuration management using Pydantic Settings
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py is at: backend/app/core/config.py
_current_file = Path(__file__).resolve()
_backend_dir = _current_file.parent.parent.parent
_project_root = _backend_dir.parent
ENV_FILE = _project_root / ".env"
# Fallback: backend/.env
if not ENV_FILE.exists():
    ENV_FILE = _backend_dir / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)

DEFAULT_MODULE_CATALOG_URL = (
    "https://raw.githubusercontent.com/cloud-native-toolkit/"
    "garage-terraform-modules/gh-pages/index.yaml"
)


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Architecture Builder"
    app_env: str = Field(default="development", description="Application environment")
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=3000, ge=1, le=65535, description="API port")
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_sqlalchemy: bool = Field(default=False, description="Enable SQLAlchemy query logging")
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"app.services": "DEBUG"})'
    )
    log_format: str = Field(
        default="json",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_file_enabled: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(
        default="logs/architecture-builder.log",
        description="Path to log file (relative to project root)"
    )
    log_file_retention: int = Field(default=30, ge=1, description="Number of days to keep log files")
    log_sensitive_data: bool = Field(
        default=False,
        description="Disable masking of passwords and tokens in logs"
    )

    # Database
    sqlalchemy_database_url: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL, takes precedence over the POSTGRES_* settings"
    )
    postgres_host: Optional[str] = Field(default=None, description="PostgreSQL host")
    postgres_db: str = Field(default="architectures", description="PostgreSQL database name")
    postgres_user: str = Field(default="postgres", description="PostgreSQL user")
    postgres_password: str = Field(default="", description="PostgreSQL password")
    postgres_port: int = Field(default=5432, ge=1, le=65535, description="PostgreSQL port")
    database_pool_size: int = Field(default=10, ge=1, description="Database pool size")
    database_max_overflow: int = Field(default=10, ge=0, description="Database max overflow")

    # Remote catalogs
    module_catalog_url: str = Field(
        default=DEFAULT_MODULE_CATALOG_URL,
        description="Index of automation modules used to validate BOM modules"
    )
    global_catalog_url: str = Field(
        default="https://globalcatalog.cloud.ibm.com/api/v1",
        description="Cloud global catalog API used for service descriptions"
    )
    catalog_cache_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description="How long catalog data is reused before being fetched again (0 disables caching)"
    )
    catalog_request_timeout_seconds: float = Field(default=30.0, gt=0, description="Catalog HTTP timeout")

    # BOM upload
    bom_upload_max_bytes: int = Field(default=102400, ge=1, description="Maximum size of an uploaded BOM file")
    bom_allowed_mimetypes: str = Field(
        default="application/x-yaml,text/yaml",
        description="Accepted BOM upload content types (comma-separated)"
    )

    # Reports
    report_font_path: str = Field(
        default="fonts/IBMPlexSans-Regular.ttf",
        description="TrueType font used for PDF reports"
    )
    diagram_images_dir: str = Field(
        default="public/images",
        description="Folder holding <diagram_folder>/<diagram_link_png> images"
    )
    report_output_dir: str = Field(
        default="reports",
        description="Folder for transient report files"
    )

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v.lower()

    @property
    def database_url(self) -> str:
        """Construct database URL"""
        if self.sqlalchemy_database_url:
            return self.sqlalchemy_database_url
        if self.postgres_host:
            return (
                f"postgresql://{self.postgres_user}:{self.postgres_password}"
                f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
            )
        return f"sqlite:///{_backend_dir / 'architectures.db'}"

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def bom_allowed_mimetypes_list(self) -> List[str]:
        return [m.strip() for m in self.bom_allowed_mimetypes.split(",") if m.strip()]

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
