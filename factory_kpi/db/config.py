from __future__ import annotations

import re
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """
    Database configuration.

    Reads from environment variables (or .env via pydantic-settings):
      - DATABASE_URL (any SQLAlchemy URL; takes precedence)
      - DB_SERVER
      - DB_DATABASE
      - DB_USER
      - DB_PASSWORD
      - DB_PORT
      - DB_DRIVER (ODBC driver name for SQL Server)
    """

    DATABASE_URL: Optional[str] = Field(
        default=None, description="If provided, full SQLAlchemy connection URL."
    )
    DB_SERVER: str = Field(default="localhost", description="SQL Server host")
    DB_DATABASE: str = Field(default="factory_kpi_dashboard", description="Database name")
    DB_USER: str = Field(default="sa", description="DB username")
    DB_PASSWORD: Optional[str] = Field(default=None, description="DB password")
    DB_PORT: int = Field(default=1433, description="Database port (default 1433)")
    DB_DRIVER: str = Field(default="ODBC Driver 18 for SQL Server")
    DB_TRUST_SERVER_CERTIFICATE: bool = Field(default=True)

    # SQLAlchemy engine options
    SQL_ECHO: bool = Field(
        default=False, description="Echo SQL statements for debugging (default False)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def database_url(self) -> str:
        """
        Compute the base database URL. Prefers DATABASE_URL if present, otherwise
        builds a SQL Server URL from the individual DB_* variables.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL

        if not self.DB_PASSWORD:
            raise ValueError(
                "Database configuration missing. Ensure DATABASE_URL or "
                "DB_SERVER, DB_USER and DB_PASSWORD are set in the environment."
            )
        query = {"driver": self.DB_DRIVER}
        if self.DB_TRUST_SERVER_CERTIFICATE:
            query["TrustServerCertificate"] = "yes"
        url = URL.create(
            "mssql",
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_SERVER,
            port=self.DB_PORT,
            database=self.DB_DATABASE,
            query=query,
        )
        return url.render_as_string(hide_password=False)

    @property
    def async_database_url(self) -> str:
        """
        Convert the base URL to an async-driver SQLAlchemy URL, required for AsyncEngine.
        """
        url = self.database_url
        if url.startswith("mssql"):
            return re.sub(r"^mssql(\+\w+)?://", "mssql+aioodbc://", url)
        if url.startswith("sqlite"):
            return re.sub(r"^sqlite(\+\w+)?://", "sqlite+aiosqlite://", url)
        return url

    @property
    def sync_database_url(self) -> str:
        """
        Provide a sync URL variant for Alembic offline mode.
        """
        url = self.database_url
        if url.startswith("mssql"):
            return re.sub(r"^mssql(\+\w+)?://", "mssql+pyodbc://", url)
        return re.sub(r"^sqlite\+\w+://", "sqlite://", url)


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return a settings object populated from the environment."""
    return Settings()
