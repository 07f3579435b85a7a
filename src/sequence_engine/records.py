"""Personal record detection.

Higher is better for both measures: a longer hold or more repetitions is a
record. Only a strictly greater value counts; matching the current best does
not. Detection mutates the record store and is not idempotent, so it must run
at most once per execution (the rating pipeline guarantees this).
"""

from __future__ import annotations

import logging
from typing import Protocol

from sequence_engine.achievements import pr_achievement
from sequence_engine.models.achievement import Achievement
from sequence_engine.models.execution import Execution
from sequence_engine.models.personal_record import (
    PersonalRecordEntry,
    PersonalRecordResult,
    RecordHistoryItem,
)

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Storage the detector reads current bests from and writes records to."""

    def get(self, exercise_id: int) -> PersonalRecordEntry | None: ...

    def put(self, entry: PersonalRecordEntry) -> None: ...


class AchievementSink(Protocol):
    """Receiver for the badges unlocked by new personal records."""

    def add(self, achievement: Achievement) -> None: ...


def is_new_record(value: float, current_best: float | None) -> bool:
    """True if *value* beats *current_best* (absent best = no prior record).

    Zero never sets a record: nothing was achieved.
    """
    if value <= 0:
        return False
    return current_best is None or value > current_best


class PersonalRecordDetector:
    """Compares an execution's finalized values against per-exercise bests."""

    def __init__(self, store: RecordStore, achievements: AchievementSink | None = None) -> None:
        self.store = store
        self.achievements = achievements

    def detect(self, execution: Execution) -> list[PersonalRecordResult]:
        """Record every new best in *execution* and return what was found.

        Break steps, skipped steps and steps without an achieved value are
        ignored. An exercise appearing twice in one execution is compared
        against the best left by its earlier occurrence.
        """
        results: list[PersonalRecordResult] = []
        for step in execution.steps:
            if not step.counts_for_records:
                continue
            exercise_id = int(step.step_id)
            value = float(step.achieved_value)  # type: ignore[arg-type]
            entry = self.store.get(exercise_id)
            previous_best = entry.current_best if entry is not None else None
            if not is_new_record(value, previous_best):
                continue

            item = RecordHistoryItem(
                value=value,
                previous_best=previous_best,
                achieved_at=step.completed_at,  # type: ignore[arg-type]
                sequence_name=execution.sequence_name,
            )
            if entry is None:
                entry = PersonalRecordEntry(
                    exercise_id=exercise_id,
                    current_best=value,
                    measure=step.measure,
                    history=(item,),
                )
            else:
                entry = entry.with_record(item)
            self.store.put(entry)
            result = PersonalRecordResult(
                exercise_id=exercise_id,
                measure=step.measure,
                previous_best=previous_best,
                new_best=value,
            )
            results.append(result)
            if self.achievements is not None and step.exercise_name:
                self.achievements.add(
                    pr_achievement(result, step.exercise_name, item.achieved_at)
                )
            logger.info(
                "New personal record for exercise %d: %s (previous %s)",
                exercise_id,
                value,
                previous_best,
            )
        return results
