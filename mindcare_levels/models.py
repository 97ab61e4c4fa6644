"""
Shared data models for the MindCare level detection service.

This module defines the core domain models used across multiple layers
of the application (analysis, persistence, CLI, API).
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Level = Literal[1, 2, 3]
Trend = Literal["improving", "declining", "stable"]

DEFAULT_LEVEL: Level = 2


def date_key_for(day: date | datetime | None = None) -> str:
    """Format a calendar day as a ``YYYY-MM-DD`` key (defaults to today)."""
    day = day or date.today()
    return day.strftime("%Y-%m-%d")


class MoodRecord(BaseModel):
    """One self-reported mood entry for a calendar day."""

    value: int = Field(..., ge=1, le=5, description="Mood from 1 (very low) to 5")
    emotions: list[str] = Field(default_factory=list, description="Emotion tags")
    energy: int | None = Field(None, ge=1, le=4, description="Energy from 1 to 4")
    notes: str | None = Field(None, description="Free text notes")
    timestamp: datetime | None = Field(
        None, description="When the entry was created or last overwritten"
    )


class DatedMood(MoodRecord):
    """A mood record together with its date key."""

    date: str = Field(..., description="Calendar day in YYYY-MM-DD format")


class MoodDistribution(BaseModel):
    low_days: int
    neutral_days: int
    good_days: int
    total: int


class MoodPatterns(BaseModel):
    has_very_low_days: bool
    has_consecutive_low_days: bool
    has_recent_improvement: bool


class PatternAnalysis(BaseModel):
    """Statistical features of a window of mood values."""

    average: float
    min: int
    max: int
    variance: float
    stability: float = Field(..., description="1 / (1 + variance), in (0, 1]")
    trend: Trend
    distribution: MoodDistribution
    patterns: MoodPatterns
    raw_values: list[int]
    entries_analyzed: int | None = None
    days_analyzed: int | None = None


class LevelSuggestion(BaseModel):
    """A recommended task level and how much to trust it."""

    suggested_level: Level | None
    confidence: int = Field(..., ge=0, le=95)
    reason: str
    analysis: PatternAnalysis | None = None


class LevelChangeSuggestion(LevelSuggestion):
    """A suggestion that is worth showing to the user."""

    current_level: Level
    should_suggest: bool = True


class NotificationPreferences(BaseModel):
    mood_reminder: str = "20:00"
    enabled: bool = True


class Settings(BaseModel):
    """Persisted user settings."""

    current_level: Level = DEFAULT_LEVEL
    last_level_change: datetime | None = None
    level_change_reason: str | None = None
    custom_tasks: list[dict] = Field(default_factory=list)
    emergency_contacts: list[dict] = Field(default_factory=list)
    notifications: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )

    @field_validator("current_level", mode="before")
    @classmethod
    def _default_missing_level(cls, value):
        return DEFAULT_LEVEL if value is None else value


class AnalysisReport(BaseModel):
    """On-demand explanation of the current level and the latest detection."""

    current_level: Level
    detection: LevelSuggestion
    needs_change: bool
    last_analysis: datetime
