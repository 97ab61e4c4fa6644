"""
FastAPI server for the MindCare level detection service.

This module exposes mood recording and the level detection operations over
HTTP so the app (or the CLI) can ask for suggestions, accept them and show
the analysis behind them.
"""

import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .config import DetectionConfig
from .detection import LevelDetector
from .levels import TASK_LEVELS, LevelInfo
from .models import (
    AnalysisReport,
    Level,
    LevelChangeSuggestion,
    LevelSuggestion,
    MoodRecord,
    Settings,
    date_key_for,
)
from .store import (
    InMemoryMoodStore,
    InMemorySettingsStore,
    JsonMoodStore,
    JsonSettingsStore,
    MoodStore,
    SettingsStore,
)

logger = logging.getLogger(__name__)


# API Request/Response Schemas
class MoodUpdate(BaseModel):
    """Payload for recording today's mood."""

    value: int = Field(..., ge=1, le=5, description="Mood from 1 to 5")
    emotions: list[str] = Field(default_factory=list)
    energy: int | None = Field(None, ge=1, le=4)
    notes: str | None = None


class MoodResponse(BaseModel):
    """Response model for mood endpoints."""

    date: str = Field(..., description="Day the mood belongs to")
    mood: MoodRecord | None = Field(..., description="The recorded mood")


class SuggestionResponse(BaseModel):
    suggestion: LevelChangeSuggestion | None


class LevelChange(BaseModel):
    """Payload for accepting a suggested level or picking one by hand."""

    level: Level


class LevelChangeResponse(BaseModel):
    success: bool
    settings: Settings


def create_app(
    mood_store: MoodStore,
    settings_store: SettingsStore,
    config: DetectionConfig | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> FastAPI:
    """
    Create a FastAPI application with the given stores.

    Args:
        mood_store: Where daily moods are read from and recorded
        settings_store: Where the current level is kept
        config: Detection thresholds; read from the environment when omitted
        clock: Returns the current time; decides which day "today" is

    Returns:
        Configured FastAPI application
    """
    detector = LevelDetector(mood_store, settings_store, config, clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for FastAPI application."""
        logger.info(
            "Level detection ready (window=%d days, min entries=%d)",
            detector.config.days_to_analyze,
            detector.config.min_entries_for_detection,
        )
        yield

    app = FastAPI(
        title="MindCare Levels",
        description="Adaptive task level detection from daily mood",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "mindcare-levels"}

    @app.get("/mood")
    async def get_mood() -> MoodResponse:
        """Get today's mood, if one has been recorded."""
        today = date_key_for(detector.clock())
        return MoodResponse(date=today, mood=await mood_store.read(today))

    @app.put("/mood")
    async def update_mood(mood_update: MoodUpdate) -> MoodResponse:
        """
        Record today's mood, replacing any earlier entry for the same day.

        Returns:
            The stored mood with its timestamp
        """
        now = detector.clock()
        today = date_key_for(now)
        try:
            record = MoodRecord(**mood_update.model_dump(), timestamp=now)
            saved = await mood_store.save(today, record)
            return MoodResponse(date=today, mood=saved)
        except Exception as e:
            logger.exception("Failed to record mood")
            raise HTTPException(
                status_code=500, detail=f"Failed to record mood: {str(e)}"
            )

    @app.get("/levels")
    async def list_levels() -> list[LevelInfo]:
        """The available task levels."""
        return list(TASK_LEVELS.values())

    @app.get("/level/detection")
    async def detect_level() -> LevelSuggestion:
        """Recommend a level from the last week of moods."""
        return await detector.detect_suggested_level()

    @app.get("/level/suggestion")
    async def level_suggestion() -> SuggestionResponse:
        """A level change worth showing to the user, or null."""
        return SuggestionResponse(
            suggestion=await detector.should_suggest_level_change()
        )

    @app.post("/level/apply")
    async def apply_level(payload: LevelChange) -> LevelChangeResponse:
        """
        Accept a suggested level.

        Raises:
            HTTPException: 500 when the settings could not be saved; the
                previous level stays in place
        """
        settings = await detector.change_level(payload.level)
        if settings is None:
            raise HTTPException(status_code=500, detail="Failed to apply level")
        return LevelChangeResponse(success=True, settings=settings)

    @app.put("/level")
    async def set_level(payload: LevelChange) -> LevelChangeResponse:
        """Store a level the user picked by hand."""
        settings = await detector.change_level(payload.level, manual=True)
        if settings is None:
            raise HTTPException(status_code=500, detail="Failed to set level")
        return LevelChangeResponse(success=True, settings=settings)

    @app.get("/level/report")
    async def level_report() -> AnalysisReport:
        """Current level together with a fresh detection."""
        return await detector.get_level_analysis_report()

    return app


def build_stores(config: DetectionConfig) -> tuple[MoodStore, SettingsStore]:
    """JSON file stores when a data directory is configured, memory otherwise."""
    if config.data_dir is None:
        return InMemoryMoodStore(), InMemorySettingsStore()
    return JsonMoodStore(config.data_dir), JsonSettingsStore(config.data_dir)


def build_default_app() -> FastAPI:
    config = DetectionConfig()
    return create_app(*build_stores(config), config)


def main() -> None:
    """Main entry point for the server."""
    import uvicorn

    config = DetectionConfig()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "mindcare_levels.server:build_default_app",
        factory=True,
        host=config.host,
        port=config.port,
        log_level=config.log_level,
    )


if __name__ == "__main__":
    main()
