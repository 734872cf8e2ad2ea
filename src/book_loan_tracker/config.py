"""Configuration management for the Book Loan Tracker.

This module follows the usual settings pattern for the tracker:
1. Storage - where the durable key-value store lives and which key holds books
2. Seed data - optional override of the packaged seed list
3. Loan rules - the accepted loan period range in weeks
4. Logging - level and debug switch
"""

from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


class TrackerConfig(BaseSettings):
    """Book Loan Tracker configuration.

    Values come from keyword arguments, ``BOOK_TRACKER_*`` environment
    variables or a ``.env`` file, in that order of precedence.
    """

    model_config = SettingsConfigDict(
        # Use BOOK_TRACKER_ prefix for all env vars
        env_prefix="BOOK_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(
        default="book-loan-tracker",
        description="Application name used in log messages",
        pattern=r"^[a-z0-9-]+$",
    )

    # === Storage Configuration ===

    storage_path: Path = Field(
        default=Path("data/local_storage.db"),
        description="SQLite file backing the durable key-value store",
    )

    storage_key: str = Field(
        default="books",
        description="Key under which the serialized book collection is stored",
        min_length=1,
    )

    storage_quota_bytes: int | None = Field(
        default=DEFAULT_QUOTA_BYTES,
        description="Maximum size of a stored value in bytes (None disables the quota)",
        ge=0,
    )

    seed_path: Path | None = Field(
        default=None,
        description="JSON seed list used when no snapshot exists (packaged list if unset)",
    )

    # === Loan Rules ===

    min_loan_weeks: int = Field(
        default=1,
        description="Shortest accepted loan period in weeks",
        ge=1,
    )

    max_loan_weeks: int = Field(
        default=4,
        description="Longest accepted loan period in weeks",
        ge=1,
    )

    # === Development Configuration ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        return v.upper() if isinstance(v, str) else v

    @field_validator("storage_path")
    @classmethod
    def validate_storage_path(cls, v: Path) -> Path:
        """Resolve the storage file and make sure its directory exists."""
        abs_path = v.absolute()
        abs_path.parent.mkdir(parents=True, exist_ok=True)

        if not abs_path.parent.is_dir():
            raise ValueError(f"Storage directory {abs_path.parent} is not accessible")

        return abs_path

    @model_validator(mode="after")
    def validate_loan_range(self) -> "TrackerConfig":
        """Ensure the loan period range is not empty."""
        if self.max_loan_weeks < self.min_loan_weeks:
            raise ValueError("max_loan_weeks cannot be less than min_loan_weeks")
        return self

    @property
    def effective_log_level(self) -> str:
        """Log level actually applied; debug mode always wins."""
        return "DEBUG" if self.debug else self.log_level

    def get_storage_url(self) -> str:
        """Get the SQLAlchemy URL for the storage file."""
        return f"sqlite:///{self.storage_path}"


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: TrackerConfig | None = None


def get_config() -> TrackerConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = TrackerConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
