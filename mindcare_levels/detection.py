"""
Level detection service.

``LevelDetector`` wires the pure analysis pipeline to the mood and settings
stores. It is the only layer that performs I/O, and it fails closed: a
storage read failure degrades to "not enough data", and a failed write is
reported as ``False`` instead of an exception.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from .analyzer import analyze_mood_pattern, recent_mood_entries
from .config import DetectionConfig
from .models import (
    AnalysisReport,
    Level,
    LevelChangeSuggestion,
    LevelSuggestion,
    MoodRecord,
    Settings,
)
from .policy import evaluate_suggestion
from .recommender import recommend_level
from .store import MoodStore, SettingsStore

logger = logging.getLogger(__name__)

AUTO_DETECTION_REASON = "auto-detection"
MANUAL_REASON = "manual"
VALID_LEVELS = (1, 2, 3)


class LevelDetector:
    """
    Detects the task level that fits the user's recent mood.

    Args:
        mood_store: Source of daily mood records
        settings_store: Holds the current level and its provenance
        config: Detection thresholds and weights
        clock: Returns the current time; injected for deterministic tests
    """

    def __init__(
        self,
        mood_store: MoodStore,
        settings_store: SettingsStore,
        config: DetectionConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.mood_store = mood_store
        self.settings_store = settings_store
        self.config = config or DetectionConfig()
        self.clock = clock

    # MARK: - Storage reads

    async def _read_moods(self) -> dict[str, MoodRecord]:
        try:
            return await self.mood_store.read_all()
        except Exception:
            logger.exception("Could not read mood history, treating it as empty")
            return {}

    async def _read_settings(self) -> Settings:
        try:
            return await self.settings_store.read()
        except Exception:
            logger.exception("Could not read settings, using defaults")
            return Settings()

    async def current_level(self) -> Level:
        settings = await self._read_settings()
        return settings.current_level

    # MARK: - Detection

    async def detect_suggested_level(self) -> LevelSuggestion:
        """
        Recommend a level from the mood records of the last week.

        Returns:
            The suggestion; ``suggested_level`` is None when there are fewer
            entries than the configured minimum
        """
        moods = await self._read_moods()
        entries = recent_mood_entries(
            moods, self.clock().date(), self.config.days_to_analyze
        )

        if len(entries) < self.config.min_entries_for_detection:
            return recommend_level(None, len(entries), self.config)

        analysis = analyze_mood_pattern([e.value for e in entries], self.config)
        analysis = analysis.model_copy(
            update={
                "entries_analyzed": len(entries),
                "days_analyzed": self.config.days_to_analyze,
            }
        )
        suggestion = recommend_level(analysis, len(entries), self.config)
        logger.debug(
            "Detected level %s with %d%% confidence from %d entries",
            suggestion.suggested_level,
            suggestion.confidence,
            len(entries),
        )
        return suggestion

    async def should_suggest_level_change(self) -> LevelChangeSuggestion | None:
        """Return a suggestion to show the user, or None when none is warranted."""
        current_level = await self.current_level()
        detection = await self.detect_suggested_level()
        return evaluate_suggestion(current_level, detection, self.config)

    # MARK: - Applying levels

    async def change_level(
        self, level: int, *, manual: bool = False
    ) -> Settings | None:
        """
        Store a new current level along with when and why it changed.

        Args:
            level: The level to store
            manual: True when the user picked the level by hand rather than
                accepting a suggestion

        Returns:
            The saved settings, or None when the level is invalid or the
            write failed
        """
        reason = MANUAL_REASON if manual else AUTO_DETECTION_REASON
        if level not in VALID_LEVELS:
            logger.warning("Refusing to set invalid level %r", level)
            return None
        try:
            settings = await self.settings_store.update(
                current_level=level,
                last_level_change=self.clock(),
                level_change_reason=reason,
            )
        except Exception:
            logger.exception("Could not save level %s", level)
            return None

        logger.info("Task level set to %s (%s)", level, reason)
        return settings

    async def apply_suggested_level(self, level: int) -> bool:
        """
        Store an accepted suggestion as the current level.

        Args:
            level: The suggested level the user accepted

        Returns:
            True when the settings were saved, False otherwise
        """
        return await self.change_level(level) is not None

    async def set_level(self, level: int) -> bool:
        """Store a level the user picked by hand."""
        return await self.change_level(level, manual=True) is not None

    # MARK: - Reporting

    async def get_level_analysis_report(self) -> AnalysisReport:
        """Explain the current level against a fresh detection."""
        detection = await self.detect_suggested_level()
        current_level = await self.current_level()
        return AnalysisReport(
            current_level=current_level,
            detection=detection,
            needs_change=detection.suggested_level != current_level,
            last_analysis=self.clock(),
        )
