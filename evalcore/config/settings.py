import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _is_production() -> bool:
    return bool(os.getenv("RENDER") or os.getenv("RAILWAY_ENVIRONMENT") or os.getenv("DYNO"))


def get_database_url() -> str:
    """Get database URL, using absolute path for SQLite to avoid path resolution issues.

    ⚠️ WARNING: SQLite is NOT suitable for production deployments!
    - Evaluation records and pending requests live in this database
    - Use PostgreSQL by setting DATABASE_URL environment variable
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        if db_url.startswith("sqlite://") and _is_production():
            logger.error(
                "⚠️ CRITICAL: SQLite detected in production environment! "
                "Evaluation records will be LOST on rebuilds. Use PostgreSQL instead."
            )
        return db_url

    db_path = Path(__file__).parent.parent.parent / "evalcore.db"
    db_url = f"sqlite:///{db_path.resolve()}"
    logger.warning(
        f"⚠️ Using SQLite database (LOCAL DEV ONLY): {db_url}\n"
        "⚠️ Set DATABASE_URL environment variable to use PostgreSQL in production."
    )
    return db_url


def get_draft_storage_dir() -> str:
    """Default directory for wizard drafts (next to the project root)."""
    return str((Path(__file__).parent.parent.parent / ".drafts").resolve())


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    draft_storage_dir: str = Field(
        default_factory=get_draft_storage_dir,
        validation_alias="DRAFT_STORAGE_DIR",
        description="Local directory where in-progress wizard drafts are snapshotted",
    )
    otp_mask_visible_digits: int = Field(
        default=4,
        validation_alias="OTP_MASK_VISIBLE_DIGITS",
        description="Trailing digits kept when an OTP is masked for logs and snapshots",
    )
    require_approved_guide: bool = Field(
        default=True,
        validation_alias="REQUIRE_APPROVED_GUIDE",
        description="Only approved guides can receive evaluation requests",
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("otp_mask_visible_digits")
    @classmethod
    def validate_mask_digits(cls, value: int) -> int:
        """Keep at most four digits of a six-digit code visible."""
        if value < 0 or value > 4:
            logger.warning(f"OTP_MASK_VISIBLE_DIGITS={value} is out of range 0-4. Defaulting to 4.")
            return 4
        return value

    @field_validator("draft_storage_dir")
    @classmethod
    def validate_draft_storage_dir(cls, value: str) -> str:
        """Warn when drafts are written to an ephemeral location in production."""
        if _is_production() and value.startswith("/tmp"):
            logger.warning(f"DRAFT_STORAGE_DIR points to {value}; wizard drafts will not survive restarts.")
        return value


settings = Settings()
