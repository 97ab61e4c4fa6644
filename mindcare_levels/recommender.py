"""
Level recommendation from a mood pattern analysis.

Turns a PatternAnalysis into a suggested task level, a confidence score and
a short explanation. Rules are checked from most to least protective: any
sign of distress wins over signs of growth.
"""

import math

from .config import DetectionConfig
from .models import Level, LevelSuggestion, PatternAnalysis


def insufficient_data(min_entries: int) -> LevelSuggestion:
    """The explicit non-answer returned when there are too few entries."""
    return LevelSuggestion(
        suggested_level=None,
        confidence=0,
        reason=(
            f"At least {min_entries} mood entries are needed "
            "for automatic level detection"
        ),
        analysis=None,
    )


def _low_ratio(analysis: PatternAnalysis) -> float:
    return analysis.distribution.low_days / analysis.distribution.total


def _good_ratio(analysis: PatternAnalysis) -> float:
    return analysis.distribution.good_days / analysis.distribution.total


def calculate_suggested_level(
    analysis: PatternAnalysis, config: DetectionConfig
) -> Level:
    if (
        analysis.average <= config.survival_threshold
        or analysis.patterns.has_consecutive_low_days
        or _low_ratio(analysis) >= config.low_days_ratio
    ):
        return 1

    if (
        analysis.average > config.stability_threshold
        and not analysis.patterns.has_very_low_days
        and _good_ratio(analysis) >= config.good_days_ratio
        and analysis.stability > config.min_stability
    ):
        return 3

    return 2


def calculate_confidence(
    analysis: PatternAnalysis, entry_count: int, config: DetectionConfig
) -> int:
    """
    Score how much to trust a suggestion, from sample size, stability and
    how clearly one mood bucket dominates. Rounded half up, capped.
    """
    distribution = analysis.distribution
    dominant = max(
        distribution.low_days, distribution.neutral_days, distribution.good_days
    )

    confidence = config.confidence_base
    sample_size = min(entry_count / config.days_to_analyze, 1)
    confidence += sample_size * config.confidence_sample_weight
    confidence += analysis.stability * config.confidence_stability_weight
    confidence += dominant / distribution.total * config.confidence_clarity_weight

    return max(0, min(math.floor(confidence + 0.5), config.max_confidence))


def recommendation_reason(
    analysis: PatternAnalysis, level: Level, config: DetectionConfig
) -> str:
    reasons = []
    low_share = round(_low_ratio(analysis) * 100)
    good_share = round(_good_ratio(analysis) * 100)

    if level == 1:
        if analysis.patterns.has_consecutive_low_days:
            reasons.append("You have had several difficult days in a row")
        if analysis.average <= config.survival_threshold:
            reasons.append(f"Your average mood is {analysis.average} (low)")
        else:
            reasons.append(f"Your average mood is {analysis.average}")
        if _low_ratio(analysis) >= config.low_days_ratio:
            reasons.append(f"{low_share}% of your recent days have been difficult")
        reasons.append("We recommend focusing only on the essentials")
    elif level == 3:
        reasons.append(f"Your average mood is {analysis.average} (good)")
        reasons.append(f"{good_share}% of your recent days have been positive")
        if analysis.patterns.has_recent_improvement:
            reasons.append("You have shown recent improvement")
        reasons.append("You have energy to focus on growth and goals")
    else:
        reasons.append(
            f"Your mood shows a mixed pattern (average {analysis.average})"
        )
        if analysis.trend == "improving":
            reasons.append("You are on a positive trend")
        elif analysis.trend == "declining":
            reasons.append("There is a slight downward trend")
        reasons.append("We recommend keeping your balance and self-care")

    return ". ".join(reasons)


def recommend_level(
    analysis: PatternAnalysis | None,
    entry_count: int,
    config: DetectionConfig | None = None,
) -> LevelSuggestion:
    """
    Build a level suggestion from an analysis of ``entry_count`` entries.

    Returns the insufficient-data suggestion when there are fewer entries
    than the configured minimum.
    """
    config = config or DetectionConfig()
    if analysis is None or entry_count < config.min_entries_for_detection:
        return insufficient_data(config.min_entries_for_detection)

    level = calculate_suggested_level(analysis, config)
    return LevelSuggestion(
        suggested_level=level,
        confidence=calculate_confidence(analysis, entry_count, config),
        reason=recommendation_reason(analysis, level, config),
        analysis=analysis,
    )
