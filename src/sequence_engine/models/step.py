"""Exercise step model: the unit of work inside an execution."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime

from sequence_engine.exceptions import ValidationError
from sequence_engine.models.enums import BREAK, Measure
from sequence_engine.models.sequence import SequenceItem


@dataclass(frozen=True)
class StepOutcome:
    """What the user did with the current step when advancing past it."""

    achieved_value: float | None = None
    skipped: bool = False

    def __post_init__(self) -> None:
        if self.achieved_value is not None and self.achieved_value < 0:
            raise ValidationError(
                f"achieved_value must not be negative, got {self.achieved_value!r}"
            )

    @classmethod
    def done(cls, value: float | None = None) -> StepOutcome:
        return cls(achieved_value=value)

    @classmethod
    def skip(cls) -> StepOutcome:
        return cls(skipped=True)


@dataclass(frozen=True)
class Step:
    """One exercise or rest break within an execution.

    ``measure`` and ``target_value`` are copied from the sequence definition
    and never change. ``started_at`` and ``completed_at`` are each set once.
    Steps are frozen; the state machine swaps in updated copies.
    """

    step_id: int | str
    measure: Measure
    target_value: float
    exercise_name: str = ""
    started_at: datetime | None = None
    completed_at: datetime | None = None
    achieved_value: float | None = None
    skipped: bool = False
    paused_seconds: float = 0.0  # pause time accrued while this step was current

    @classmethod
    def from_item(cls, item: SequenceItem) -> Step:
        return cls(
            step_id=item.step_id,
            measure=item.measure,
            target_value=item.target_value,
            exercise_name=item.exercise_name,
        )

    # -- State helpers ----------------------------------------------------

    @property
    def is_break(self) -> bool:
        return self.step_id == BREAK

    @property
    def is_started(self) -> bool:
        return self.started_at is not None

    @property
    def is_done(self) -> bool:
        """True once the step was completed or skipped."""
        return self.completed_at is not None

    @property
    def is_open(self) -> bool:
        """Started but not yet completed: the current step."""
        return self.started_at is not None and self.completed_at is None

    @property
    def counts_for_records(self) -> bool:
        """Whether this step's value may set a personal record."""
        return (
            not self.is_break
            and not self.skipped
            and self.is_done
            and self.achieved_value is not None
        )

    # -- Transitions (return new frozen copies) ---------------------------

    def start(self, at: datetime) -> Step:
        return dataclasses.replace(self, started_at=at)

    def finish(self, outcome: StepOutcome, at: datetime) -> Step:
        return dataclasses.replace(
            self,
            completed_at=at,
            achieved_value=outcome.achieved_value,
            skipped=outcome.skipped,
        )

    def add_pause(self, seconds: float) -> Step:
        return dataclasses.replace(self, paused_seconds=self.paused_seconds + seconds)

    def active_elapsed_seconds(self, now: datetime) -> float:
        """Seconds spent on this step excluding recorded pauses.

        Pauses still in progress are not included; callers subtract them.
        """
        if self.started_at is None:
            return 0.0
        end = self.completed_at or now
        return max(0.0, (end - self.started_at).total_seconds() - self.paused_seconds)
