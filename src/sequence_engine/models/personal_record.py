"""Personal record models: best-ever values per exercise."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sequence_engine.models.enums import Measure


@dataclass(frozen=True)
class RecordHistoryItem:
    """A single record-setting value, with the best it replaced."""

    value: float
    previous_best: float | None
    achieved_at: datetime
    sequence_name: str = ""


@dataclass(frozen=True)
class PersonalRecordEntry:
    """Best value and record history for one exercise.

    ``history`` is ordered by recency, newest first. Use :meth:`with_record`
    to derive the entry after a new record.
    """

    exercise_id: int
    current_best: float
    measure: Measure = Measure.REPETITIONS
    history: tuple[RecordHistoryItem, ...] = field(default_factory=tuple)

    @property
    def last_achieved_at(self) -> datetime | None:
        return self.history[0].achieved_at if self.history else None

    def with_record(self, item: RecordHistoryItem) -> PersonalRecordEntry:
        return PersonalRecordEntry(
            exercise_id=self.exercise_id,
            current_best=item.value,
            measure=self.measure,
            history=(item,) + self.history,
        )


@dataclass(frozen=True)
class PersonalRecordResult:
    """A record detected for one execution, as reported back to the caller."""

    exercise_id: int
    measure: Measure
    previous_best: float | None
    new_best: float
