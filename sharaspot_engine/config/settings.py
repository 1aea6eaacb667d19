"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Global engine settings loaded from environment variables.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        engine_timezone: IANA timezone used for calendar-day boundaries
            (daily check-in, daily validation cap, monthly windows)
        contributions_path: Optional JSON file backing the contribution store
        rewards_path: Optional JSON file backing the rewards store
        reliability_path: Optional JSON file backing persisted reliability scores
        batch_size: Number of chargers recomputed concurrently by the batch job
    """

    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    engine_timezone: str = Field(
        default="UTC",
        description="Timezone for calendar-day comparisons"
    )
    contributions_path: str | None = Field(
        default=None,
        description="JSON persistence file for contributions"
    )
    rewards_path: str | None = Field(
        default=None,
        description="JSON persistence file for user rewards and transactions"
    )
    reliability_path: str | None = Field(
        default=None,
        description="JSON persistence file for computed reliability scores"
    )
    batch_size: int = Field(
        default=50,
        ge=1,
        description="Chargers recomputed per batch by the scheduled job"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "SHARASPOT_",
        "case_sensitive": False,
    }


# Singleton instance - import this throughout the application
settings = Settings()
