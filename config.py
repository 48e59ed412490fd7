# config.py
"""Configuration settings for the narrative workshop pipeline.
Uses Pydantic BaseSettings for automatic environment variable loading.
"""

from __future__ import annotations

import structlog
from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = structlog.get_logger()


class WorkshopSettings(BaseSettings):
    """Full configuration for the workshop pipeline."""

    # Generation service
    ANTHROPIC_API_KEY: str = ""
    GENERATION_API_BASE: str = "https://api.anthropic.com"
    ANTHROPIC_VERSION: str = "2023-06-01"

    GENERATION_MODEL: str = "claude-sonnet-4-20250514"
    # Falls back to GENERATION_MODEL when unset
    JUDGE_MODEL: str | None = None

    # Temperature Settings
    TEMPERATURE_ANALYSIS: float = 0.7
    TEMPERATURE_GENERATION: float = 0.8
    TEMPERATURE_REGENERATION: float = 0.7
    TEMPERATURE_JUDGE: float = 0.1

    # Max output tokens per call type
    MAX_TOKENS_VOICE: int = 2048
    MAX_TOKENS_EXPERIENCE: int = 3072
    MAX_TOKENS_RUBRIC: int = 4096
    MAX_TOKENS_BATCH: int = 4000
    MAX_TOKENS_REGENERATION: int = 2000
    MAX_TOKENS_JUDGE: int = 2000

    # Call limits
    GENERATION_TIMEOUT_SECONDS: float = 120.0
    MAX_CONCURRENT_GENERATION_CALLS: int = 8

    # Pipeline shape
    GENERATION_BATCH_COUNT: int = 3
    ITEMS_PER_BATCH: int = 3
    MAX_SUGGESTIONS_PER_ITEM: int = 3
    MAX_VALIDATION_ATTEMPTS: int = 2
    QUOTE_MATCH_THRESHOLD: float = 85.0
    REGENERATION_ESSAY_CONTEXT_CHARS: int = 500

    # Quality gate
    QUALITY_PASS_THRESHOLD: int = 70
    FAIL_OPEN_SCORE: int = 65
    PREFILTER_FAIL_SCORE: int = 50

    # Logging
    LOG_LEVEL_STR: str = Field("INFO", alias="WORKSHOP_LOG_LEVEL")
    LOG_FORMAT: str = (
        "%(asctime)s - %(levelname)s - [%(name)s:%(funcName)s:%(lineno)d] - %(message)s"
    )
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    LOG_FILE: str | None = None
    ENABLE_RICH_LOGGING: bool = True
    # One JSON object per line on the console; overrides rich output
    LOG_JSON: bool = False

    # HTTP server
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    @field_validator(
        "GENERATION_BATCH_COUNT",
        "ITEMS_PER_BATCH",
        "MAX_SUGGESTIONS_PER_ITEM",
        "MAX_VALIDATION_ATTEMPTS",
        "MAX_CONCURRENT_GENERATION_CALLS",
    )
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @field_validator("FAIL_OPEN_SCORE")
    @classmethod
    def _fail_open_in_band(cls, value: int) -> int:
        if not 60 <= value <= 70:
            raise ValueError("FAIL_OPEN_SCORE must be between 60 and 70")
        return value

    @model_validator(mode="after")
    def set_dynamic_model_defaults(self) -> WorkshopSettings:
        if self.JUDGE_MODEL is None:
            self.JUDGE_MODEL = self.GENERATION_MODEL
        if not self.ANTHROPIC_API_KEY:
            logger.warning(
                "ANTHROPIC_API_KEY is not set; generation calls will fail until it is provided."
            )
        return self

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", extra="ignore", populate_by_name=True
    )


settings = WorkshopSettings()
