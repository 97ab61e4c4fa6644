"""Decide whether a level suggestion is worth showing to the user."""

from .config import DetectionConfig
from .models import Level, LevelChangeSuggestion, LevelSuggestion


def evaluate_suggestion(
    current_level: Level,
    suggestion: LevelSuggestion,
    config: DetectionConfig | None = None,
) -> LevelChangeSuggestion | None:
    """
    Surface a suggestion only when it changes the level with enough confidence.

    Mood is self-reported and noisy, so both the level gap and the confidence
    threshold must be met before the user is prompted.

    Args:
        current_level: The level stored in the user's settings
        suggestion: The latest detection result
        config: Provides the confidence threshold

    Returns:
        The suggestion enriched with the current level, or None
    """
    config = config or DetectionConfig()
    if suggestion.suggested_level is None:
        return None

    level_difference = abs(current_level - suggestion.suggested_level)
    if level_difference < 1 or suggestion.confidence < config.suggestion_confidence:
        return None

    return LevelChangeSuggestion(
        **suggestion.model_dump(),
        current_level=current_level,
        should_suggest=True,
    )
