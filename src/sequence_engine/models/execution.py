"""Execution: a single run-through of a sequence."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sequence_engine.models.enums import ExecutionState
from sequence_engine.models.personal_record import PersonalRecordResult
from sequence_engine.models.step import Step


@dataclass
class Execution:
    """Authoritative execution record.

    Unlike most models in this package the execution is mutable: it is
    created at sequence start and updated in place by the
    :class:`~sequence_engine.state_machine.ExecutionStateMachine` and the
    rating pipeline. ``steps`` keeps sequence order and never changes length.

    ``current_index`` is the index of the first step without
    ``completed_at``; once every step is done it equals ``step_count``.
    """

    execution_id: int
    sequence_id: int
    started_at: datetime
    steps: list[Step] = field(default_factory=list)
    sequence_name: str = ""
    state: ExecutionState = ExecutionState.RUNNING
    current_index: int = 0
    paused_at: datetime | None = None
    total_pause_duration: float = 0.0  # seconds
    completed_at: datetime | None = None
    rating: int | None = None
    feedback: str | None = None
    personal_records: tuple[PersonalRecordResult, ...] = field(default_factory=tuple)

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def is_paused(self) -> bool:
        return self.state == ExecutionState.PAUSED

    @property
    def is_completed(self) -> bool:
        """True in both terminal states (completed and rated)."""
        return self.state in (ExecutionState.COMPLETED, ExecutionState.RATED)

    @property
    def is_rated(self) -> bool:
        return self.state == ExecutionState.RATED

    @property
    def completed_step_count(self) -> int:
        return sum(1 for s in self.steps if s.is_done)

    @property
    def current_step(self) -> Step | None:
        """The open step, or None once the execution is completed."""
        if self.current_index >= self.step_count:
            return None
        return self.steps[self.current_index]

    @property
    def last_timestamp(self) -> datetime:
        """Latest timestamp recorded anywhere on the execution."""
        stamps = [self.started_at]
        for step in self.steps:
            if step.started_at is not None:
                stamps.append(step.started_at)
            if step.completed_at is not None:
                stamps.append(step.completed_at)
        if self.paused_at is not None:
            stamps.append(self.paused_at)
        if self.completed_at is not None:
            stamps.append(self.completed_at)
        return max(stamps)

    def active_duration_seconds(self, now: datetime | None = None) -> float:
        """Wall time from start to completion (or *now*) minus pauses."""
        end = self.completed_at or now or self.last_timestamp
        paused = self.total_pause_duration
        if self.paused_at is not None and end > self.paused_at:
            paused += (end - self.paused_at).total_seconds()
        return max(0.0, (end - self.started_at).total_seconds() - paused)


@dataclass(frozen=True)
class ExecutionUpdate:
    """Bulk state pushed by a client replaying its local transitions."""

    steps: tuple[Step, ...]
    total_pause_duration: float = 0.0
    paused_at: datetime | None = None
    completed_at: datetime | None = None
