"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.

Matching weights and thresholds are nested under ``matching`` and can be
overridden per deployment, e.g. ``MATCHING__MIN_SKILL_MATCH_PERCENT=15`` or
``MATCHING__WEIGHTS__READINESS=25``.
"""

from functools import lru_cache
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoringWeights(BaseModel):
    """Points, caps and thresholds used by the score calculator."""

    # 1. Required skills
    required_skills: float = 30.0
    required_skills_default: float = 15.0  # job lists no required skills

    # 2. Preferred skills
    preferred_skills: float = 10.0
    preferred_skills_default: float = 5.0

    # 3. Project relevance (25 total)
    project_each: float = 4.0
    project_cap: float = 15.0
    verified_project_each: float = 2.0
    verified_project_cap: float = 5.0
    project_tag_each: float = 1.0
    project_tag_cap: float = 5.0

    # 4. Readiness
    readiness: float = 20.0

    # 5. Growth trajectory
    growth_cap: float = 10.0
    growth_divisor: float = 2.0
    growth_window: int = 3
    growth_high_performer_credit: float = 5.0
    growth_high_performer_readiness: int = 70

    # 6. CGPA
    cgpa: float = 3.0
    cgpa_default: float = 1.5

    # 7. Certifications
    certification_each: float = 0.5
    certification_cap: float = 2.0

    # 8. Coding consistency (100-day streak = 5 points)
    streak_divisor: float = 20.0
    streak_cap: float = 5.0

    # Minimum-score floor for half-qualified candidates (25-50)
    floor_required_ratio: float = 0.5
    floor_base: float = 25.0
    floor_span: float = 25.0


class MatchingConfig(BaseModel):
    """Everything a match run needs besides its data."""

    weights: ScoringWeights = Field(default_factory=ScoringWeights)

    # Individual policy threshold (percent of required skills)
    min_skill_match_percent: float = 10.0

    # How many ranked candidates get an AI justification
    enrichment_limit: int = 50
    # How many matches are echoed back in the run summary
    summary_limit: int = 10

    # Worker pools
    scoring_workers: int = 8
    enrichment_workers: int = 5
    refresh_workers: int = 2

    # Justification calls (seconds)
    justification_timeout: float = 20.0
    justification_max_retries: int = 2
    justification_backoff: float = 0.5
    enrichment_deadline: float = 120.0


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "placement_platform"

    # LLM (OpenAI-compatible, DeepSeek by default)
    llm_api_key: str = ""
    llm_base_url: str = "https://api.deepseek.com/v1"
    llm_model: str = "deepseek-chat"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Matching engine
    matching: MatchingConfig = Field(default_factory=MatchingConfig)

    @property
    def llm_enabled(self) -> bool:
        """True when an API key is configured."""
        return bool(self.llm_api_key.strip())

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
