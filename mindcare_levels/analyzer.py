"""
Mood pattern analysis.

Pure functions that turn a week of mood history into statistical features:
average, spread, stability, trend, the low/neutral/good distribution and a
few warning patterns. Nothing here touches storage.
"""

from collections.abc import Mapping, Sequence
from datetime import date, timedelta

from .config import DetectionConfig
from .models import (
    DatedMood,
    MoodDistribution,
    MoodPatterns,
    MoodRecord,
    PatternAnalysis,
    Trend,
    date_key_for,
)

LOW_MOOD = 2
NEUTRAL_MOOD = 3
GOOD_MOOD = 4
VERY_LOW_MOOD = 1


def recent_mood_entries(
    moods: Mapping[str, MoodRecord], today: date, days: int = 7
) -> list[DatedMood]:
    """
    Collect the analysis window: records from the last ``days`` calendar days.

    Args:
        moods: All stored moods keyed by YYYY-MM-DD
        today: The last day of the window (inclusive)
        days: Number of calendar days to look back

    Returns:
        Records that exist within the window, oldest first
    """
    entries = []
    for offset in range(days):
        key = date_key_for(today - timedelta(days=offset))
        record = moods.get(key)
        if record is not None:
            entries.append(DatedMood(date=key, **record.model_dump()))
    return sorted(entries, key=lambda entry: entry.date)


def _mean(values: Sequence[int]) -> float:
    return sum(values) / len(values)


def calculate_variance(values: Sequence[int], average: float) -> float:
    return sum((value - average) ** 2 for value in values) / len(values)


def calculate_trend(values: Sequence[int], threshold: float = 0.5) -> Trend:
    """Compare the first and second halves; the middle value of odd runs is skipped."""
    if len(values) < 4:
        return "stable"

    first_half = values[: len(values) // 2]
    second_half = values[(len(values) + 1) // 2 :]
    difference = _mean(second_half) - _mean(first_half)

    if difference > threshold:
        return "improving"
    if difference < -threshold:
        return "declining"
    return "stable"


def detect_consecutive_low_days(values: Sequence[int]) -> bool:
    run = 0
    for value in values:
        run = run + 1 if value <= LOW_MOOD else 0
        if run >= 2:
            return True
    return False


def detect_recent_improvement(values: Sequence[int], threshold: float = 0.5) -> bool:
    """
    Check whether the last three days beat the three days before them.

    With fewer than six entries the earlier window is partial, and with only
    three entries it is empty, in which case there is nothing to compare.
    """
    if len(values) < 3:
        return False

    recent = values[-3:]
    before_recent = values[-6:-3]
    if not before_recent:
        return False

    return _mean(recent) > _mean(before_recent) + threshold


def analyze_mood_pattern(
    values: Sequence[int], config: DetectionConfig | None = None
) -> PatternAnalysis:
    """
    Compute the statistical features of a chronological run of mood values.

    Args:
        values: Mood values (1-5), oldest first; must not be empty
        config: Thresholds for trend and improvement detection

    Returns:
        The PatternAnalysis for the values

    Raises:
        ValueError: If values is empty
    """
    if not values:
        raise ValueError("Cannot analyze an empty mood sequence")
    config = config or DetectionConfig()
    values = list(values)

    average = _mean(values)
    variance = calculate_variance(values, average)
    stability = 1 / (1 + variance)

    distribution = MoodDistribution(
        low_days=sum(1 for v in values if v <= LOW_MOOD),
        neutral_days=sum(1 for v in values if v == NEUTRAL_MOOD),
        good_days=sum(1 for v in values if v >= GOOD_MOOD),
        total=len(values),
    )
    patterns = MoodPatterns(
        has_very_low_days=any(v == VERY_LOW_MOOD for v in values),
        has_consecutive_low_days=detect_consecutive_low_days(values),
        has_recent_improvement=detect_recent_improvement(
            values, config.improvement_threshold
        ),
    )

    return PatternAnalysis(
        average=round(average, 2),
        min=min(values),
        max=max(values),
        variance=round(variance, 2),
        stability=round(stability, 2),
        trend=calculate_trend(values, config.trend_threshold),
        distribution=distribution,
        patterns=patterns,
        raw_values=values,
    )
