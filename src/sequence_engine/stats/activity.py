"""Activity statistics over completed executions.

Totals, a zero-filled daily workout count for the recent window and
consecutive-day workout streaks. Only completed executions count;
abandoned runs are ignored everywhere.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable

import numpy as np
import pandas as pd

from sequence_engine.models.enums import STREAK_GRACE_DAYS, WEEKLY_PROGRESS_DAYS
from sequence_engine.models.execution import Execution


@dataclass(frozen=True)
class ActivityStats:
    """Lifetime totals across completed executions."""

    total_workouts: int
    total_exercises: int  # non-skipped steps, breaks included
    total_minutes: int
    avg_rating: float  # one decimal; 0.0 when nothing is rated
    personal_records: int


@dataclass(frozen=True)
class DailyCount:
    """Number of workouts started on one calendar day."""

    day: date
    workouts: int


@dataclass(frozen=True)
class Streaks:
    """Consecutive workout days: the ongoing run and the longest ever."""

    current: int
    longest: int


def _completed(executions: Iterable[Execution]) -> list[Execution]:
    return [e for e in executions if e.is_completed and e.completed_at is not None]


def detailed_stats(executions: Iterable[Execution]) -> ActivityStats:
    """Summarize completed executions.

    Minutes are active time (start to completion minus pauses), floored.
    """
    done = _completed(executions)
    if not done:
        return ActivityStats(0, 0, 0, 0.0, 0)

    total_exercises = sum(
        1 for e in done for step in e.steps if not step.skipped
    )
    active_seconds = np.array(
        [e.active_duration_seconds() for e in done], dtype=np.float64
    )
    ratings = np.array(
        [e.rating for e in done if e.rating is not None], dtype=np.float64
    )
    avg_rating = round(float(ratings.mean()), 1) if ratings.size else 0.0

    return ActivityStats(
        total_workouts=len(done),
        total_exercises=total_exercises,
        total_minutes=int(math.floor(active_seconds.sum() / 60.0)),
        avg_rating=avg_rating,
        personal_records=sum(len(e.personal_records) for e in done),
    )


def weekly_progress(
    executions: Iterable[Execution],
    today: date,
    days: int = WEEKLY_PROGRESS_DAYS,
) -> list[DailyCount]:
    """Workouts per day for the *days*-long window ending on *today*.

    Days are taken from each execution's start. Every day in the window is
    present, oldest first, with zero for days without workouts.
    """
    window = pd.date_range(end=pd.Timestamp(today), periods=days, freq="D")
    starts = pd.Series(
        [pd.Timestamp(e.started_at.date()) for e in _completed(executions)],
        dtype="datetime64[ns]",
    )
    counts = starts.value_counts().reindex(window, fill_value=0)
    return [
        DailyCount(day=ts.date(), workouts=int(n)) for ts, n in counts.items()
    ]


def workout_streaks(executions: Iterable[Execution], today: date) -> Streaks:
    """Compute current and longest runs of consecutive workout days.

    The current streak only counts if the latest workout was today or
    yesterday; otherwise it is broken and reported as zero.
    """
    days = sorted({e.completed_at.date() for e in _completed(executions)})  # type: ignore[union-attr]
    if not days:
        return Streaks(current=0, longest=0)

    ordinals = np.array([d.toordinal() for d in days], dtype=np.int64)
    gaps = np.flatnonzero(np.diff(ordinals) != 1)
    run_starts = np.concatenate(([0], gaps + 1))
    run_ends = np.concatenate((gaps, [len(ordinals) - 1]))
    lengths = run_ends - run_starts + 1

    days_since_last = today.toordinal() - int(ordinals[-1])
    current = int(lengths[-1]) if 0 <= days_since_last <= STREAK_GRACE_DAYS else 0
    return Streaks(current=current, longest=int(lengths.max()))
