"""Achievement models: unlocked badges and per-category counts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sequence_engine.models.enums import AchievementCategory


@dataclass(frozen=True)
class Achievement:
    """A badge unlocked by the user.

    ``value`` is the threshold reached (workouts, streak days) or, for
    personal records, the record value itself.
    """

    badge_id: str
    category: AchievementCategory
    unlocked_at: datetime
    value: float
    exercise_name: str | None = None  # personal records only


@dataclass(frozen=True)
class AchievementStats:
    """Number of unlocked achievements, overall and per category."""

    total: int
    milestone: int
    streak: int
    personal_record: int
    consistency: int
