from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
import yaml
from pathlib import Path
from typing import Optional, Union

from .schemas.scoring import ScoringConfig

class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    USER_AGENT: str = Field(
        "Mozilla/5.0 (compatible; CompetitorEvidenceBot/1.0)",
        description="User-Agent header sent with every fetch",
    )

    # Collection limits
    MAX_PAGES_PER_COMPETITOR: int = Field(10, description="Max target pages built per competitor")
    FETCH_BUDGET_MS: int = Field(90000, description="Total fetch budget per collection run")
    FETCH_TIMEOUT_MS: int = Field(15000, description="Per-request timeout")
    FETCH_CONCURRENCY: int = Field(8, description="Max in-flight requests")
    FETCH_RETRY_ATTEMPTS: int = Field(2, description="Attempts per request on transport errors")
    FETCH_RETRY_WAIT_MS: int = 250
    MAX_EXTRACTED_CHARS: int = Field(12000, description="Character cap on extracted page text")
    MAX_RESPONSE_CHARS: int = Field(1_000_000, description="Raw HTML beyond this is dropped before parsing")
    SHORTLIST_QUOTA: int = Field(8, description="Max pages kept in the shortlist")
    CHANGELOG_WINDOW_MONTHS: int = Field(12, description="Rolling window for changelog sections")
    REVIEW_SEARCH_MAX_RESULTS: int = 2

    SCORING_CONFIG_PATH: str = Field("data/scoring.yaml", description="YAML file with thresholds, weights and buckets")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @field_validator(
        "MAX_PAGES_PER_COMPETITOR",
        "FETCH_BUDGET_MS",
        "FETCH_TIMEOUT_MS",
        "FETCH_CONCURRENCY",
        "FETCH_RETRY_ATTEMPTS",
        "MAX_EXTRACTED_CHARS",
        "MAX_RESPONSE_CHARS",
        "SHORTLIST_QUOTA",
        "CHANGELOG_WINDOW_MONTHS",
    )
    @classmethod
    def _must_be_positive(cls, value: int, info) -> int:
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0, got {value}")
        return value

    @field_validator("FETCH_RETRY_WAIT_MS", "REVIEW_SEARCH_MAX_RESULTS")
    @classmethod
    def _must_not_be_negative(cls, value: int, info) -> int:
        if value < 0:
            raise ValueError(f"{info.field_name} must be >= 0, got {value}")
        return value

@lru_cache()
def get_settings() -> Settings:
    return Settings()

def load_scoring_config(path: Optional[Union[str, Path]] = None) -> ScoringConfig:
    """
    Loads thresholds, weights and label buckets from YAML.
    A missing file yields the built-in defaults; a malformed one raises ValidationError.
    """
    path = Path(path or get_settings().SCORING_CONFIG_PATH)
    if not path.exists():
        return ScoringConfig()
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return ScoringConfig.model_validate(data)
