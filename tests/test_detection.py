"""
Tests for the LevelDetector service.

These tests run the full pipeline against in-memory stores with a fixed
clock, and check that storage failures fail closed.
"""

import json
from datetime import date, datetime, timedelta

from mindcare_levels.config import DetectionConfig
from mindcare_levels.detection import LevelDetector
from mindcare_levels.models import MoodRecord, Settings, date_key_for
from mindcare_levels.store import (
    InMemoryMoodStore,
    InMemorySettingsStore,
    JsonMoodStore,
    JsonSettingsStore,
    StorageError,
)

NOW = datetime(2024, 1, 10, 21, 0)


def week_of(values: list[int], today: date = NOW.date()) -> dict[str, MoodRecord]:
    """Moods for consecutive days ending today, oldest value first."""
    start = today - timedelta(days=len(values) - 1)
    return {
        date_key_for(start + timedelta(days=i)): MoodRecord(value=value)
        for i, value in enumerate(values)
    }


class BrokenMoodStore(InMemoryMoodStore):
    async def read_all(self):
        raise StorageError("disk unavailable")


class BrokenSettingsStore(InMemorySettingsStore):
    async def read(self):
        raise StorageError("disk unavailable")

    async def update(self, **changes):
        raise StorageError("disk full")


class TestDetectSuggestedLevel:
    """Test suite for detect_suggested_level."""

    def make_detector(self, values, current_level=2):
        return LevelDetector(
            InMemoryMoodStore(week_of(values)),
            InMemorySettingsStore(Settings(current_level=current_level)),
            clock=lambda: NOW,
        )

    async def test_low_week(self):
        detector = self.make_detector([1, 1, 2, 1, 2, 1, 1])
        detection = await detector.detect_suggested_level()

        assert detection.suggested_level == 1
        assert detection.analysis.average == 1.29
        assert detection.analysis.patterns.has_consecutive_low_days is True
        assert detection.analysis.entries_analyzed == 7
        assert detection.analysis.days_analyzed == 7

    async def test_good_week(self):
        detector = self.make_detector([5, 4, 5, 5, 4, 5, 5])
        detection = await detector.detect_suggested_level()

        assert detection.suggested_level == 3
        assert detection.analysis.distribution.good_days == 7
        assert detection.analysis.stability > 0.8

    async def test_mixed_days(self):
        detector = self.make_detector([3, 4, 2, 3, 4, 3])
        detection = await detector.detect_suggested_level()

        assert detection.suggested_level == 2

    async def test_two_entries_is_not_enough(self):
        moods = {
            date_key_for(NOW - timedelta(days=1)): MoodRecord(value=1),
            date_key_for(NOW - timedelta(days=4)): MoodRecord(value=1),
        }
        detector = LevelDetector(
            InMemoryMoodStore(moods), InMemorySettingsStore(), clock=lambda: NOW
        )

        detection = await detector.detect_suggested_level()

        assert detection.suggested_level is None
        assert detection.confidence == 0
        assert detection.analysis is None

    async def test_old_entries_are_ignored(self):
        # Seven low days that ended more than a week ago.
        old = week_of([1] * 7, today=NOW.date() - timedelta(days=7))
        detector = LevelDetector(
            InMemoryMoodStore(old), InMemorySettingsStore(), clock=lambda: NOW
        )

        detection = await detector.detect_suggested_level()

        assert detection.suggested_level is None

    async def test_gaps_in_the_week(self):
        moods = {
            date_key_for(NOW - timedelta(days=6)): MoodRecord(value=2),
            date_key_for(NOW - timedelta(days=3)): MoodRecord(value=3),
            date_key_for(NOW): MoodRecord(value=2),
        }
        detector = LevelDetector(
            InMemoryMoodStore(moods), InMemorySettingsStore(), clock=lambda: NOW
        )

        detection = await detector.detect_suggested_level()

        assert detection.analysis.raw_values == [2, 3, 2]
        assert detection.analysis.entries_analyzed == 3

    async def test_idempotent(self):
        detector = self.make_detector([3, 1, 4, 1, 5, 2])

        first = await detector.detect_suggested_level()
        second = await detector.detect_suggested_level()

        assert first == second

    async def test_read_failure_degrades_to_no_suggestion(self, caplog):
        detector = LevelDetector(
            BrokenMoodStore(), InMemorySettingsStore(), clock=lambda: NOW
        )

        detection = await detector.detect_suggested_level()

        assert detection.suggested_level is None
        assert detection.confidence == 0
        assert "Could not read mood history" in caplog.text


class TestShouldSuggestLevelChange:
    """Test suite for should_suggest_level_change."""

    async def test_confident_change_is_suggested(self):
        detector = LevelDetector(
            InMemoryMoodStore(week_of([1, 1, 2, 1, 2, 1, 1])),
            InMemorySettingsStore(Settings(current_level=2)),
            clock=lambda: NOW,
        )

        suggestion = await detector.should_suggest_level_change()

        assert suggestion is not None
        assert suggestion.should_suggest is True
        assert suggestion.current_level == 2
        assert suggestion.suggested_level == 1
        assert suggestion.confidence >= 70

    async def test_matching_level_is_not_suggested(self):
        detector = LevelDetector(
            InMemoryMoodStore(week_of([1, 1, 2, 1, 2, 1, 1])),
            InMemorySettingsStore(Settings(current_level=1)),
            clock=lambda: NOW,
        )

        assert await detector.should_suggest_level_change() is None

    async def test_low_confidence_is_not_suggested(self):
        # Three scattered entries in a two-week window: mostly low days, but
        # the sample is small and unstable, so confidence lands at 66.
        moods = {
            date_key_for(NOW - timedelta(days=4)): MoodRecord(value=1),
            date_key_for(NOW - timedelta(days=2)): MoodRecord(value=5),
            date_key_for(NOW): MoodRecord(value=2),
        }
        detector = LevelDetector(
            InMemoryMoodStore(moods),
            InMemorySettingsStore(Settings(current_level=2)),
            DetectionConfig(days_to_analyze=14),
            clock=lambda: NOW,
        )

        detection = await detector.detect_suggested_level()
        assert detection.suggested_level == 1
        assert detection.confidence < 70
        assert await detector.should_suggest_level_change() is None

    async def test_insufficient_data_is_not_suggested(self):
        detector = LevelDetector(
            InMemoryMoodStore(), InMemorySettingsStore(), clock=lambda: NOW
        )

        assert await detector.should_suggest_level_change() is None

    async def test_settings_read_failure_uses_default_level(self):
        detector = LevelDetector(
            InMemoryMoodStore(week_of([5, 4, 5, 5, 4, 5, 5])),
            BrokenSettingsStore(),
            clock=lambda: NOW,
        )

        suggestion = await detector.should_suggest_level_change()

        assert suggestion.current_level == 2
        assert suggestion.suggested_level == 3


class TestApplySuggestedLevel:
    """Test suite for applying levels."""

    def setup_method(self):
        self.settings_store = InMemorySettingsStore()
        self.detector = LevelDetector(
            InMemoryMoodStore(), self.settings_store, clock=lambda: NOW
        )

    async def test_apply_records_provenance(self):
        assert await self.detector.apply_suggested_level(1) is True

        settings = await self.settings_store.read()
        assert settings.current_level == 1
        assert settings.last_level_change == NOW
        assert settings.level_change_reason == "auto-detection"

    async def test_manual_selection_is_distinguished(self):
        assert await self.detector.set_level(3) is True

        settings = await self.settings_store.read()
        assert settings.current_level == 3
        assert settings.level_change_reason == "manual"

    async def test_invalid_level_is_refused(self):
        assert await self.detector.apply_suggested_level(4) is False

        settings = await self.settings_store.read()
        assert settings.current_level == 2
        assert settings.last_level_change is None

    async def test_write_failure_returns_false(self, caplog):
        detector = LevelDetector(
            InMemoryMoodStore(), BrokenSettingsStore(), clock=lambda: NOW
        )

        assert await detector.apply_suggested_level(1) is False
        assert "Could not save level 1" in caplog.text

    async def test_apply_repairs_settings_without_a_level(self, tmp_path):
        (tmp_path / "mindcare_settings.json").write_text(
            json.dumps({"current_level": None})
        )
        settings_store = JsonSettingsStore(tmp_path)
        detector = LevelDetector(
            JsonMoodStore(tmp_path), settings_store, clock=lambda: NOW
        )

        assert await detector.current_level() == 2
        assert await detector.apply_suggested_level(1) is True

        settings = await settings_store.read()
        assert settings.current_level == 1
        assert settings.level_change_reason == "auto-detection"

    async def test_set_level_over_invalid_settings_file(self, tmp_path):
        (tmp_path / "mindcare_settings.json").write_text(
            json.dumps({"current_level": "high"})
        )
        detector = LevelDetector(
            JsonMoodStore(tmp_path), JsonSettingsStore(tmp_path), clock=lambda: NOW
        )

        assert await detector.current_level() == 2
        assert await detector.set_level(3) is True
        assert await detector.current_level() == 3


class TestLevelAnalysisReport:
    """Test suite for get_level_analysis_report."""

    async def test_report_flags_needed_change(self):
        detector = LevelDetector(
            InMemoryMoodStore(week_of([5, 4, 5, 5, 4, 5, 5])),
            InMemorySettingsStore(Settings(current_level=2)),
            clock=lambda: NOW,
        )

        report = await detector.get_level_analysis_report()

        assert report.current_level == 2
        assert report.detection.suggested_level == 3
        assert report.needs_change is True
        assert report.last_analysis == NOW

    async def test_report_reflects_latest_moods(self):
        mood_store = InMemoryMoodStore(week_of([3, 3]))
        detector = LevelDetector(
            mood_store, InMemorySettingsStore(), clock=lambda: NOW
        )

        before = await detector.get_level_analysis_report()
        await mood_store.save(
            date_key_for(NOW - timedelta(days=2)), MoodRecord(value=3)
        )
        after = await detector.get_level_analysis_report()

        assert before.detection.suggested_level is None
        assert before.needs_change is True
        assert after.detection.suggested_level == 2
        assert after.needs_change is False

    async def test_report_after_applying_suggestion(self):
        detector = LevelDetector(
            InMemoryMoodStore(week_of([1, 1, 2, 1, 2, 1, 1])),
            InMemorySettingsStore(),
            clock=lambda: NOW,
        )

        suggestion = await detector.should_suggest_level_change()
        assert await detector.apply_suggested_level(suggestion.suggested_level)

        report = await detector.get_level_analysis_report()
        assert report.current_level == 1
        assert report.needs_change is False
        assert await detector.should_suggest_level_change() is None
