"""Achievement rules.

Three badge families are derived from completed executions: milestones for
the total workout count, streaks for consecutive workout days and
consistency for the number of workouts in a trailing window. A fourth
family, personal records, is emitted by the record detector as records are
set. Everything here is pure; storing awarded badges is the caller's job.
"""

from __future__ import annotations

import re
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable

from sequence_engine.models.achievement import Achievement, AchievementStats
from sequence_engine.models.enums import (
    CONSISTENCY_BADGES,
    CONSISTENCY_WINDOW_DAYS,
    MILESTONE_BADGES,
    PR_BADGE_PREFIX,
    STREAK_BADGES,
    AchievementCategory,
)
from sequence_engine.models.execution import Execution
from sequence_engine.models.personal_record import PersonalRecordResult
from sequence_engine.stats.activity import workout_streaks


def pr_badge_id(exercise_name: str) -> str:
    """Badge id for a record on *exercise_name*, e.g. ``pr_side_plank``."""
    return PR_BADGE_PREFIX + re.sub(r"\s+", "_", exercise_name.lower())


def pr_achievement(
    result: PersonalRecordResult, exercise_name: str, unlocked_at: datetime
) -> Achievement:
    return Achievement(
        badge_id=pr_badge_id(exercise_name),
        category=AchievementCategory.PERSONAL_RECORD,
        unlocked_at=unlocked_at,
        value=result.new_best,
        exercise_name=exercise_name,
    )


def check_badges(
    executions: Iterable[Execution],
    today: date,
    earned: Iterable[str] = (),
    unlocked_at: datetime | None = None,
) -> list[Achievement]:
    """Return the badges newly earned as of *today*.

    Args:
        executions: All executions; unfinished ones are ignored.
        today: Reference day for the streak and the consistency window.
        earned: Badge ids already unlocked. These are never returned again.
        unlocked_at: Timestamp stamped on new badges. Defaults to the start
            of *today* in UTC.

    Returns:
        New achievements: milestones first, then streaks, then consistency.
    """
    done = [e for e in executions if e.is_completed and e.completed_at is not None]
    earned_ids = set(earned)
    if unlocked_at is None:
        unlocked_at = datetime.combine(today, time.min, tzinfo=timezone.utc)

    window_start = today - timedelta(days=CONSISTENCY_WINDOW_DAYS)
    recent = sum(1 for e in done if e.completed_at.date() >= window_start)  # type: ignore[union-attr]
    streak = workout_streaks(done, today).current

    families = (
        (AchievementCategory.MILESTONE, MILESTONE_BADGES, len(done)),
        (AchievementCategory.STREAK, STREAK_BADGES, streak),
        (AchievementCategory.CONSISTENCY, CONSISTENCY_BADGES, recent),
    )
    new: list[Achievement] = []
    for category, thresholds, reached in families:
        for threshold, badge_id in thresholds:
            if reached >= threshold and badge_id not in earned_ids:
                new.append(
                    Achievement(
                        badge_id=badge_id,
                        category=category,
                        unlocked_at=unlocked_at,
                        value=threshold,
                    )
                )
    return new


def achievement_stats(achievements: Iterable[Achievement]) -> AchievementStats:
    counts = Counter(a.category for a in achievements)
    return AchievementStats(
        total=sum(counts.values()),
        milestone=counts[AchievementCategory.MILESTONE],
        streak=counts[AchievementCategory.STREAK],
        personal_record=counts[AchievementCategory.PERSONAL_RECORD],
        consistency=counts[AchievementCategory.CONSISTENCY],
    )
