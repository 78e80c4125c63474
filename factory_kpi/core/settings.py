from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the FastAPI service.

    This is separate from factory_kpi.db.config.Settings, which focuses on the database layer.
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="Factory KPI Dashboard API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Backend API for the factory KPI dashboard. Department KPIs, action items, "
            "customer claims, production stations and persisted dashboard state."
        )
    )
    APP_VERSION: str = Field(default="0.1.0")

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Session / security
    JWT_SECRET_KEY: str = Field(
        default="factory-kpi-dashboard-secret-key",
        description="Secret used to sign session tokens. Override in every deployment.",
    )
    JWT_ALGORITHM: str = Field(default="HS256")
    SESSION_EXPIRE_MINUTES: int = Field(default=60 * 24, description="Session lifetime in minutes")
    SESSION_COOKIE_NAME: str = Field(default="kpi_session")
    COOKIE_SECURE: bool = Field(default=False, description="Send the session cookie over HTTPS only")
    COOKIE_SAMESITE: Literal["lax", "strict", "none"] = Field(default="lax")
    BCRYPT_ROUNDS: int = Field(default=10, ge=4, le=31)

    # Storage backend
    STORAGE_BACKEND: Literal["sql", "memory"] = Field(
        default="sql",
        description="Primary storage adapter. 'memory' keeps everything in process.",
    )
    STORAGE_FALLBACK_TO_MEMORY: bool = Field(
        default=True,
        description="If the SQL backend cannot be initialized, serve from memory instead of failing.",
    )

    # Startup behavior
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(
        default=False,
        description="If true, run Alembic migrations (upgrade head) at app startup.",
    )
    CREATE_SCHEMA_ON_STARTUP: bool = Field(
        default=True,
        description="If true and migrations are disabled, create missing tables at startup.",
    )
    AUTO_SEED: bool = Field(
        default=True,
        description="If true, seed demo departments and users when the user table is empty.",
    )

    # Domain defaults
    DEFAULT_DEPARTMENT: str = Field(
        default="Üretim", description="Department assigned when an admin creates a user without one"
    )
    IMPORT_DEFAULT_DEPARTMENT: str = Field(
        default="General", description="Department assigned to bulk-imported users without one"
    )
    IMPORT_DEFAULT_PASSWORD: str = Field(default="TempPass123!")

    # Uploads
    ATTACHMENTS_DIR: str = Field(default="uploads/claims")
    MAX_ATTACHMENT_BYTES: int = Field(default=10 * 1024 * 1024)
    MAX_CHART_IMPORT_BYTES: int = Field(default=5 * 1024 * 1024)
    MAX_USER_IMPORT_BYTES: int = Field(default=10 * 1024 * 1024)

    LOG_LEVEL: str = Field(default="INFO")

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        if v is None:
            return ["*"]
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or ["*"]
        if isinstance(v, list):
            return v or ["*"]
        return ["*"]


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    Note:
      A new instance is constructed each time so tests can adjust the environment.
    """
    return AppSettings()
