"""ExecutionService: the operation contracts exposed to callers.

Wires the sequence catalog, execution repository, state machine, sync
validation, rating pipeline and personal record detector together. Each
method maps to one request/response contract and is transport-agnostic.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

from sequence_engine.achievements import achievement_stats, check_badges
from sequence_engine.completion import RatingPipeline
from sequence_engine.exceptions import SequenceEngineError
from sequence_engine.models.achievement import Achievement, AchievementStats
from sequence_engine.models.execution import Execution, ExecutionUpdate
from sequence_engine.models.history import ExecutionSummary, HistoryStep, LastAttempt
from sequence_engine.models.personal_record import PersonalRecordEntry, PersonalRecordResult
from sequence_engine.models.step import Step
from sequence_engine.records import PersonalRecordDetector
from sequence_engine.serialization.execution_json import dump_export, to_execution_json
from sequence_engine.state_machine import Clock, ExecutionStateMachine, utc_now
from sequence_engine.stats.activity import (
    ActivityStats,
    DailyCount,
    Streaks,
    detailed_stats,
    weekly_progress,
    workout_streaks,
)
from sequence_engine.storage import (
    AchievementStore,
    ExecutionRepository,
    InMemoryRecordStore,
    SequenceCatalog,
)
from sequence_engine.sync import apply_update

logger = logging.getLogger(__name__)


class ExecutionService:
    """Facade over the execution lifecycle.

    Usage:
        service = ExecutionService(SequenceCatalog([sequence]))
        execution = service.start_execution(sequence.sequence_id)
        machine = service.open_machine(execution.execution_id)
        machine.complete(35)
        ...
        records = service.submit_rating(execution.execution_id, 4, "good")
        badges = service.check_badges()
    """

    def __init__(
        self,
        catalog: SequenceCatalog,
        executions: ExecutionRepository | None = None,
        records: InMemoryRecordStore | None = None,
        clock: Clock | None = None,
        achievements: AchievementStore | None = None,
    ) -> None:
        self.catalog = catalog
        self.executions = executions or ExecutionRepository()
        self.records = records or InMemoryRecordStore()
        self.achievements = achievements or AchievementStore()
        self.clock = clock or utc_now
        self.detector = PersonalRecordDetector(self.records, self.achievements)
        self.pipeline = RatingPipeline(self.detector)

    # ------------------------------------------------------------------
    # Execution lifecycle
    # ------------------------------------------------------------------

    def start_execution(self, sequence_id: int) -> Execution:
        """Create a RUNNING execution for an existing sequence."""
        sequence = self.catalog.get(sequence_id)
        machine = ExecutionStateMachine.start(
            sequence, execution_id=self.executions.next_id(), clock=self.clock
        )
        self.executions.add(machine.execution)
        return machine.execution

    def open_machine(self, execution_id: int) -> ExecutionStateMachine:
        """Bind a state machine to a stored execution for live updates."""
        execution = self.executions.get(execution_id)
        sequence = self.catalog.get(execution.sequence_id)
        return ExecutionStateMachine(execution, goal=sequence.goal, clock=self.clock)

    def get_execution(self, execution_id: int) -> Execution:
        return self.executions.get(execution_id)

    def update_execution(
        self,
        execution_id: int,
        steps: list[Step] | tuple[Step, ...],
        total_pause_duration: float,
        paused_at: datetime | None = None,
        completed_at: datetime | None = None,
    ) -> Execution:
        """Apply a client's bulk state, rejecting anything non-monotonic."""
        execution = self.executions.get(execution_id)
        update = ExecutionUpdate(
            steps=tuple(steps),
            total_pause_duration=total_pause_duration,
            paused_at=paused_at,
            completed_at=completed_at,
        )
        try:
            return apply_update(execution, update)
        except SequenceEngineError as exc:
            logger.warning("Rejected update for execution %d: %s", execution_id, exc)
            raise

    def submit_rating(
        self, execution_id: int, rating: int, feedback: str | None = None
    ) -> list[PersonalRecordResult]:
        """Rate a completed execution and return the personal records it set."""
        execution = self.executions.get(execution_id)
        return self.pipeline.submit_rating(execution, rating, feedback)

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    def get_history(
        self,
        exercise_id: int | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[ExecutionSummary]:
        """Completed executions, newest first.

        Dates bound the execution start (inclusive). With *exercise_id*, only
        executions containing that exercise are returned, each reduced to
        the matching steps.
        """
        summaries: list[ExecutionSummary] = []
        for execution in self.executions.completed():
            if start_date is not None and execution.started_at < start_date:
                continue
            if end_date is not None and execution.started_at > end_date:
                continue
            steps = tuple(
                _history_step(step)
                for step in execution.steps
                if exercise_id is None or step.step_id == exercise_id
            )
            if exercise_id is not None and not steps:
                continue
            summaries.append(
                ExecutionSummary(
                    execution_id=execution.execution_id,
                    sequence_id=execution.sequence_id,
                    sequence_name=execution.sequence_name,
                    started_at=execution.started_at,
                    completed_at=execution.completed_at,  # type: ignore[arg-type]
                    active_seconds=execution.active_duration_seconds(),
                    rating=execution.rating,
                    feedback=execution.feedback,
                    steps=steps,
                )
            )
        return summaries

    def get_personal_records(self) -> list[PersonalRecordEntry]:
        return self.records.all()

    def get_last_attempt(self, exercise_id: int) -> LastAttempt | None:
        """Most recent non-skipped value logged for *exercise_id*."""
        for execution in self.executions.completed():
            for step in execution.steps:
                if (
                    step.step_id == exercise_id
                    and not step.skipped
                    and step.achieved_value is not None
                ):
                    return LastAttempt(value=step.achieved_value, completed_at=step.completed_at)
        return None

    def export_data(self) -> list[dict]:
        """Every execution, serialized, newest first."""
        return [to_execution_json(e) for e in self.executions.all()]

    def write_export(self, path: Path | str) -> Path:
        """Write executions and personal records to an export file."""
        path = dump_export(
            self.executions.all(),
            path,
            records=self.records.all(),
            achievements=self.achievements.all(),
        )
        logger.info("Exported executions to %s", path)
        return path

    def check_badges(self, today: date | None = None) -> list[Achievement]:
        """Award the milestone, streak and consistency badges earned so far.

        Each badge id is unlocked at most once. Returns only the new ones.
        """
        now = self.clock()
        candidates = check_badges(
            self.executions.all(),
            today or now.date(),
            earned=self.achievements.badge_ids(),
            unlocked_at=now,
        )
        awarded = self.achievements.add_new(candidates)
        for achievement in awarded:
            logger.info("Unlocked badge %s", achievement.badge_id)
        return awarded

    def get_achievements(self) -> list[Achievement]:
        return self.achievements.all()

    def get_achievement_stats(self) -> AchievementStats:
        return achievement_stats(self.achievements.all())

    def get_detailed_stats(self) -> ActivityStats:
        return detailed_stats(self.executions.all())

    def get_weekly_progress(self, today: date | None = None) -> list[DailyCount]:
        return weekly_progress(self.executions.all(), today or self.clock().date())

    def get_streaks(self, today: date | None = None) -> Streaks:
        return workout_streaks(self.executions.all(), today or self.clock().date())


def _history_step(step: Step) -> HistoryStep:
    return HistoryStep(
        step_id=step.step_id,
        exercise_name=step.exercise_name,
        measure=step.measure,
        started_at=step.started_at,
        completed_at=step.completed_at,
        value=step.achieved_value,
        skipped=step.skipped,
    )
