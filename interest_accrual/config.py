import os
from pathlib import Path

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

# SQLAlchemy maps bare postgresql:// to psycopg2; only psycopg3 is installed.
_POSTGRES_DRIVER_ALIASES = {"postgres", "postgresql", "postgresql+psycopg2"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = Field(default="Interest Accrual Engine", validation_alias="PROJECT_NAME")
    environment: str = Field(default="dev", validation_alias="ENVIRONMENT")
    database_url: str = Field(
        default="sqlite+pysqlite:///./interest-accrual-dev.db",
        validation_alias="DATABASE_URL",
    )

    # Hard wall-clock limit for one run; the process exits with code 1 when exceeded.
    watchdog_timeout_seconds: float = Field(
        default=30.0, validation_alias="ACCRUAL_WATCHDOG_TIMEOUT_SECONDS"
    )
    # When true, any per-company / per-deposit failure turns the exit code into 1.
    fail_on_entity_errors: bool = Field(
        default=True, validation_alias="ACCRUAL_FAIL_ON_ENTITY_ERRORS"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("watchdog_timeout_seconds")
    @classmethod
    def validate_watchdog_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("ACCRUAL_WATCHDOG_TIMEOUT_SECONDS must be positive")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v) -> str:
        s = str(v or "INFO").strip().upper()
        return s or "INFO"

    @field_validator("database_url", mode="before")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Pin Postgres to the psycopg3 driver and anchor relative SQLite files.

        The job is started by an external scheduler from an arbitrary working
        directory; a relative SQLite path is resolved against the project root.
        """

        if v is None:
            return v

        s = str(v).strip()
        if not s:
            return s

        try:
            url = make_url(s)
        except ArgumentError as exc:
            raise ValueError(f"DATABASE_URL is not a valid SQLAlchemy URL: {exc}") from exc

        if url.drivername in _POSTGRES_DRIVER_ALIASES:
            return url.set(drivername="postgresql+psycopg").render_as_string(hide_password=False)

        if url.get_backend_name() != "sqlite":
            return s

        database = url.database or ""
        if not database or database == ":memory:" or database.startswith("file:"):
            return s
        if Path(database).is_absolute():
            return s

        project_root = Path(__file__).resolve().parents[1]
        anchored = (project_root / database).resolve().as_posix()
        return url.set(database=anchored).render_as_string(hide_password=False)

    @field_validator("database_url")
    @classmethod
    def validate_database_url_for_environment(cls, v: str, info: ValidationInfo) -> str:
        env = str(info.data.get("environment", "dev") or "dev").strip().lower()
        raw = os.getenv("DATABASE_URL")
        s = str(v or "").strip()

        if env in {"prod", "production"}:
            if not raw:
                raise ValueError("DATABASE_URL must be explicitly set in production")
            if s.startswith("sqlite"):
                raise ValueError("SQLite DATABASE_URL is not allowed in production")
            if "localhost" in s or "127.0.0.1" in s:
                raise ValueError("DATABASE_URL must not point to localhost in production")

        return s


settings = Settings()
