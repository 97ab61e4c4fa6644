"""Catalogue of task levels shown to the user."""

from pydantic import BaseModel

from .models import Level


class LevelInfo(BaseModel):
    level: Level
    name: str
    description: str
    max_tasks: int
    message: str


TASK_LEVELS: dict[int, LevelInfo] = {
    1: LevelInfo(
        level=1,
        name="Survival",
        description="For very hard days - essentials only",
        max_tasks=3,
        message="It is fine to only manage the basics today. Every small step counts.",
    ),
    2: LevelInfo(
        level=2,
        name="Stabilization",
        description="Ordinary day - balance and self-care",
        max_tasks=7,
        message="You are doing well. These steps will help you keep your balance.",
    ),
    3: LevelInfo(
        level=3,
        name="Progress",
        description="Good days - growth and goals",
        max_tasks=10,
        message="Great to see you with energy today! Make the most of it.",
    ),
}


def level_name(level: int | None) -> str:
    """Human-readable level name, or "unknown" for anything outside 1-3."""
    info = TASK_LEVELS.get(level) if level is not None else None
    return info.name if info else "unknown"
