"""Sequence definition: the fixed input consumed from the authoring side.

How sequences are authored or stored is not this package's concern; the
engine only needs the ordered list of steps with their target measures.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sequence_engine.exceptions import ValidationError
from sequence_engine.models.enums import BREAK, BREAK_NAME, Measure, SequenceGoal


@dataclass(frozen=True)
class SequenceItem:
    """One authored entry of a sequence: an exercise or a rest break."""

    step_id: int | str  # exercise id or BREAK
    measure: Measure
    target_value: float
    exercise_name: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.step_id, str) and self.step_id != BREAK:
            raise ValidationError(f"Invalid step id {self.step_id!r}")
        if self.target_value is None or self.target_value <= 0:
            raise ValidationError(
                f"target_value must be positive, got {self.target_value!r}"
            )
        if self.step_id == BREAK and not self.exercise_name:
            object.__setattr__(self, "exercise_name", BREAK_NAME)

    @property
    def is_break(self) -> bool:
        return self.step_id == BREAK

    @classmethod
    def rest(cls, seconds: float) -> SequenceItem:
        """Build a timed rest break."""
        return cls(step_id=BREAK, measure=Measure.TIME, target_value=seconds)


@dataclass(frozen=True)
class SequenceDefinition:
    """Frozen, ordered sequence of exercises and breaks."""

    sequence_id: int
    name: str
    items: tuple[SequenceItem, ...] = field(default_factory=tuple)
    goal: SequenceGoal = SequenceGoal.ELASTIC

    @property
    def step_count(self) -> int:
        return len(self.items)
