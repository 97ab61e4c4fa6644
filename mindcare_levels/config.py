"""
Configuration for the MindCare level detection service.

Thresholds and confidence weights are empirically chosen constants. They are
exposed as settings so deployments can tune them through ``MINDCARE_*``
environment variables without touching the algorithm.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DetectionConfig(BaseSettings):
    """Tunable parameters for mood analysis and level suggestions."""

    model_config = SettingsConfigDict(env_prefix="MINDCARE_")

    # Analysis window
    days_to_analyze: int = Field(7, ge=1, description="Calendar days to look back")
    min_entries_for_detection: int = Field(
        3, ge=1, description="Mood entries needed before suggesting a level"
    )

    # Level selection
    survival_threshold: float = Field(
        2.0, description="Average at or below this suggests level 1"
    )
    stability_threshold: float = Field(
        3.5, description="Average above this may suggest level 3"
    )
    low_days_ratio: float = Field(0.6, description="Share of low days for level 1")
    good_days_ratio: float = Field(0.5, description="Share of good days for level 3")
    min_stability: float = Field(0.6, description="Stability required for level 3")

    # Pattern detection
    trend_threshold: float = 0.5
    improvement_threshold: float = 0.5

    # Confidence
    confidence_base: float = 50
    confidence_sample_weight: float = 20
    confidence_stability_weight: float = 20
    confidence_clarity_weight: float = 10
    max_confidence: int = Field(95, ge=0, le=95)
    suggestion_confidence: int = Field(
        70, description="Minimum confidence before a level change is suggested"
    )

    # Service
    data_dir: Path | None = Field(
        None, description="Directory for JSON storage; in-memory when unset"
    )
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
