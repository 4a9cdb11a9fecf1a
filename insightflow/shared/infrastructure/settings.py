from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_ENCRYPTION_KEY = "change-me-insightflow-encryption-key"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_prefix="INSIGHTFLOW_",
    )

    # =========================
    # Environment
    # =========================
    environment: Literal["development", "test", "staging", "production"] = "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    # =========================
    # API
    # =========================
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    public_base_url: str = "http://localhost:8000"

    # =========================
    # Database
    # =========================
    database_url: str = "sqlite+pysqlite:///./insightflow.db"
    database_echo: bool = False

    # =========================
    # Security
    # =========================
    encryption_key: str = DEFAULT_ENCRYPTION_KEY

    # =========================
    # Scheduler
    # =========================
    scheduler_enabled: bool = True
    scheduler_tick_seconds: float = 30.0
    scheduler_timezone: str = "UTC"
    refresh_simulated_delay_seconds: float = 2.0

    # =========================
    # Widget builder / audit
    # =========================
    builder_session_ttl_seconds: int = 1800
    preview_table_sample_rows: int = 5
    audit_log_recent_limit: int = 50

    # ============================================================
    # Validators
    # ============================================================

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: str | list[str] | None) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            raw_items = [item.strip() for item in value.split(",")]
            return [item for item in raw_items if item]
        return value

    @field_validator("database_url", mode="before")
    @classmethod
    def normalize_postgres_url(cls, value: str) -> str:
        if value and value.startswith(("postgres://", "postgresql://")):
            return value.replace("postgres://", "postgresql+psycopg://", 1).replace(
                "postgresql://", "postgresql+psycopg://", 1
            )
        return value

    @field_validator("encryption_key")
    @classmethod
    def validate_encryption_key(cls, value: str, info: ValidationInfo) -> str:
        if not value:
            raise ValueError("ENCRYPTION_KEY must be configured")

        env = info.data.get("environment")
        if env == "production" and len(value) < 32:
            raise ValueError(
                "ENCRYPTION_KEY must be strong and at least 32 characters in production"
            )
        return value

    @field_validator("scheduler_tick_seconds")
    @classmethod
    def validate_tick(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("scheduler_tick_seconds must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_production_rules(self) -> "Settings":
        if self.is_production:
            if self.encryption_key == DEFAULT_ENCRYPTION_KEY:
                raise ValueError("ENCRYPTION_KEY must be changed from the default in production")

            if not self.cors_origins:
                raise ValueError("CORS_ORIGINS must be configured in production")

            if "*" in self.cors_origins:
                raise ValueError("Wildcard CORS is not allowed in production")

            if self.log_level == "DEBUG":
                raise ValueError("DEBUG logging is not allowed in production")

            if self.database_url.startswith("sqlite"):
                raise ValueError("SQLite is not supported in production")

        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()
