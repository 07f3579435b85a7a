"""Read-only history projections of completed executions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sequence_engine.models.enums import Measure


@dataclass(frozen=True)
class HistoryStep:
    """One step of a completed execution as shown in the history list."""

    step_id: int | str
    exercise_name: str
    measure: Measure
    started_at: datetime | None
    completed_at: datetime | None
    value: float | None
    skipped: bool


@dataclass(frozen=True)
class ExecutionSummary:
    """Summary row for a completed execution."""

    execution_id: int
    sequence_id: int
    sequence_name: str
    started_at: datetime
    completed_at: datetime
    active_seconds: float
    rating: int | None = None
    feedback: str | None = None
    steps: tuple[HistoryStep, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LastAttempt:
    """Most recent recorded value for an exercise."""

    value: float
    completed_at: datetime | None
