"""In-memory stores for sequences, executions, personal records and achievements.

Durable persistence belongs to the application embedding the engine; these
stores exist so the service contracts can run and be tested. Each store
guards its dict with a lock so concurrent readers never see a half-written
entry.
"""

from __future__ import annotations

import itertools
import threading

from sequence_engine.exceptions import ExecutionNotFound, SequenceNotFound
from sequence_engine.models.achievement import Achievement
from sequence_engine.models.execution import Execution
from sequence_engine.models.personal_record import PersonalRecordEntry
from sequence_engine.models.sequence import SequenceDefinition


class SequenceCatalog:
    """Read-only lookup of authored sequences by id."""

    def __init__(self, sequences: tuple[SequenceDefinition, ...] | list[SequenceDefinition] = ()) -> None:
        self._sequences: dict[int, SequenceDefinition] = {}
        self._lock = threading.Lock()
        for sequence in sequences:
            self.add(sequence)

    def add(self, sequence: SequenceDefinition) -> None:
        with self._lock:
            self._sequences[sequence.sequence_id] = sequence

    def get(self, sequence_id: int) -> SequenceDefinition:
        with self._lock:
            try:
                return self._sequences[sequence_id]
            except KeyError:
                raise SequenceNotFound(f"Sequence {sequence_id} not found") from None

    def __contains__(self, sequence_id: object) -> bool:
        return sequence_id in self._sequences


class ExecutionRepository:
    """Executions keyed by id, with ids assigned on insert."""

    def __init__(self) -> None:
        self._executions: dict[int, Execution] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._ids)

    def add(self, execution: Execution) -> None:
        with self._lock:
            self._executions[execution.execution_id] = execution

    def get(self, execution_id: int) -> Execution:
        with self._lock:
            try:
                return self._executions[execution_id]
            except KeyError:
                raise ExecutionNotFound(f"Execution {execution_id} not found") from None

    def all(self) -> list[Execution]:
        """All executions, newest start first."""
        with self._lock:
            executions = list(self._executions.values())
        return sorted(executions, key=lambda e: e.started_at, reverse=True)

    def completed(self) -> list[Execution]:
        return [e for e in self.all() if e.is_completed]


class InMemoryRecordStore:
    """Personal record entries keyed by exercise id."""

    def __init__(self) -> None:
        self._entries: dict[int, PersonalRecordEntry] = {}
        self._lock = threading.Lock()

    def get(self, exercise_id: int) -> PersonalRecordEntry | None:
        with self._lock:
            return self._entries.get(exercise_id)

    def put(self, entry: PersonalRecordEntry) -> None:
        with self._lock:
            self._entries[entry.exercise_id] = entry

    def all(self) -> list[PersonalRecordEntry]:
        """Entries ordered by their latest record, newest first."""
        with self._lock:
            entries = list(self._entries.values())
        return sorted(
            entries,
            key=lambda e: (e.last_achieved_at is not None, e.last_achieved_at),
            reverse=True,
        )


class AchievementStore:
    """Unlocked achievements in unlock order.

    Milestone, streak and consistency badges are unique per badge id.
    Personal record badges repeat, one per record set.
    """

    def __init__(self) -> None:
        self._achievements: list[Achievement] = []
        self._lock = threading.Lock()

    def add(self, achievement: Achievement) -> None:
        with self._lock:
            self._achievements.append(achievement)

    def add_new(self, candidates: list[Achievement]) -> list[Achievement]:
        """Store the candidates whose badge id is not unlocked yet; return them."""
        with self._lock:
            earned = {a.badge_id for a in self._achievements}
            added: list[Achievement] = []
            for achievement in candidates:
                if achievement.badge_id in earned:
                    continue
                earned.add(achievement.badge_id)
                self._achievements.append(achievement)
                added.append(achievement)
        return added

    def badge_ids(self) -> set[str]:
        with self._lock:
            return {a.badge_id for a in self._achievements}

    def all(self) -> list[Achievement]:
        """Achievements, most recently unlocked first."""
        with self._lock:
            achievements = list(self._achievements)
        return sorted(achievements, key=lambda a: a.unlocked_at, reverse=True)
