"""
Configuration module for the table reservation engine.

Loads environment variables (and an optional .env file) into a Settings
object. The settings are built once at the entry point and handed to the
services explicitly.
"""
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

from .error_handling.exceptions import BookingValidationError
from .schedule import (
    BOOKING_DURATION_MINUTES,
    DINNER_TIME_SLOTS,
    LUNCH_TIME_SLOTS,
    ServiceSchedule,
    parse_time,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        database_url: SQLAlchemy connection string
        booking_duration_minutes: How long a booking occupies its tables
        lunch_time_slots: Bookable start times of the lunch service
        dinner_time_slots: Bookable start times of the dinner service
        max_party_size: Largest party accepted by the booking services
        solver_exhaustive_limit: Table count above which the solver uses its bounded search
    """

    # Database configuration
    database_url: str = Field(
        default="sqlite:///table_booking.db",
        alias="DATABASE_URL",
        description="SQLAlchemy connection string"
    )

    # Restaurant configuration
    restaurant_name: str = Field(
        default="Our Restaurant",
        alias="RESTAURANT_NAME",
        description="Restaurant name for display"
    )

    booking_duration_minutes: int = Field(
        default=BOOKING_DURATION_MINUTES,
        gt=0,
        alias="BOOKING_DURATION_MINUTES",
    )

    lunch_time_slots: List[str] = Field(
        default_factory=lambda: list(LUNCH_TIME_SLOTS),
        alias="LUNCH_TIME_SLOTS",
    )

    dinner_time_slots: List[str] = Field(
        default_factory=lambda: list(DINNER_TIME_SLOTS),
        alias="DINNER_TIME_SLOTS",
    )

    max_party_size: int = Field(default=20, ge=1, alias="MAX_PARTY_SIZE")

    solver_exhaustive_limit: int = Field(
        default=20,
        ge=1,
        alias="SOLVER_EXHAUSTIVE_LIMIT",
        description="Above this many tables the solver switches to a bounded search"
    )

    query_max_retries: int = Field(default=3, ge=0, alias="QUERY_MAX_RETRIES")

    # Logging
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: Optional[str] = Field(default=None, alias="LOG_LEVEL")
    log_to_file: bool = Field(default=False, alias="LOG_TO_FILE")
    log_dir: str = Field(default="logs", alias="LOG_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("lunch_time_slots", "dinner_time_slots")
    @classmethod
    def validate_slots(cls, v: List[str]) -> List[str]:
        """Every slot must be a HH:MM time."""
        for slot in v:
            try:
                parse_time(slot)
            except BookingValidationError:
                raise ValueError(f"Invalid time slot {slot!r}, expected HH:MM")
        return v

    def schedule(self) -> ServiceSchedule:
        """Build the service schedule described by these settings."""
        return ServiceSchedule(
            lunch_slots=tuple(self.lunch_time_slots),
            dinner_slots=tuple(self.dinner_time_slots),
            duration_minutes=self.booking_duration_minutes,
        )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the settings instance used by the command-line entry point.

    Returns:
        Settings instance with loaded configuration
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings
