"""Execution state machine: the runtime model of a user performing a sequence.

States: RUNNING, PAUSED and COMPLETED (RATED is reached only through the
rating pipeline). The authoritative cursor ``current_index`` only ever moves
forward; review of earlier steps goes through a separate, ephemeral
``viewing_index`` that never touches execution progress.

The machine does no locking. Callers apply one operation at a time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from sequence_engine.exceptions import InvalidTransition, OutOfRange, ValidationError
from sequence_engine.models.enums import ExecutionState, Measure, SequenceGoal, StepStatus
from sequence_engine.models.execution import Execution
from sequence_engine.models.sequence import SequenceDefinition
from sequence_engine.models.step import Step, StepOutcome

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionStateMachine:
    """Owns one Execution and enforces its navigation and completion rules.

    Usage:
        machine = ExecutionStateMachine.start(sequence, execution_id=1)
        machine.complete(35)
        machine.pause()
        machine.resume()
        machine.skip()

    Every mutating operation reads the clock once. A reading earlier than the
    latest timestamp already on the execution means operations arrived out
    of order and is rejected with InvalidTransition.
    """

    def __init__(
        self,
        execution: Execution,
        goal: SequenceGoal = SequenceGoal.ELASTIC,
        clock: Clock | None = None,
    ) -> None:
        self._execution = execution
        self._goal = goal
        self._clock = clock or utc_now
        self._viewing_index: int | None = None

    @classmethod
    def start(
        cls,
        sequence: SequenceDefinition,
        execution_id: int,
        clock: Clock | None = None,
        now: datetime | None = None,
    ) -> ExecutionStateMachine:
        """Create the initial RUNNING execution for *sequence*.

        The first step becomes current with ``started_at`` equal to the
        execution start time.
        """
        if sequence.step_count == 0:
            raise ValidationError(f"Sequence {sequence.sequence_id} has no steps")
        clock = clock or utc_now
        started_at = now or clock()
        steps = [Step.from_item(item) for item in sequence.items]
        steps[0] = steps[0].start(started_at)
        execution = Execution(
            execution_id=execution_id,
            sequence_id=sequence.sequence_id,
            sequence_name=sequence.name,
            started_at=started_at,
            steps=steps,
        )
        logger.info(
            "Started execution %d of sequence %d (%d steps)",
            execution_id,
            sequence.sequence_id,
            len(steps),
        )
        return cls(execution, goal=sequence.goal, clock=clock)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def execution(self) -> Execution:
        return self._execution

    @property
    def state(self) -> ExecutionState:
        return self._execution.state

    @property
    def goal(self) -> SequenceGoal:
        return self._goal

    @property
    def current_index(self) -> int:
        return self._execution.current_index

    @property
    def step_count(self) -> int:
        return self._execution.step_count

    @property
    def viewing_index(self) -> int | None:
        """Index under review, or None in live mode."""
        return self._viewing_index

    @property
    def display_index(self) -> int:
        """The index the UI should focus: the reviewed step, else the current one."""
        if self._viewing_index is not None:
            return self._viewing_index
        return self._execution.current_index

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def advance(self, outcome: StepOutcome, now: datetime | None = None) -> ExecutionState:
        """Finish the current step and move on.

        Starts the next step, or completes the execution when the finished
        step was the last one. Valid only while RUNNING.
        """
        self._require(ExecutionState.RUNNING, "advance")
        at = self._read_clock(now)
        ex = self._execution
        index = ex.current_index
        ex.steps[index] = ex.steps[index].finish(outcome, at)
        ex.current_index = index + 1
        logger.debug(
            "Execution %d step %d %s (value=%s)",
            ex.execution_id,
            index,
            "skipped" if outcome.skipped else "completed",
            outcome.achieved_value,
        )

        if ex.current_index < ex.step_count:
            ex.steps[ex.current_index] = ex.steps[ex.current_index].start(at)
        else:
            ex.completed_at = at
            ex.state = ExecutionState.COMPLETED
            logger.info(
                "Execution %d completed (%d steps, %.0fs paused)",
                ex.execution_id,
                ex.step_count,
                ex.total_pause_duration,
            )
        return ex.state

    def complete(self, value: float | None = None, now: datetime | None = None) -> ExecutionState:
        """Mark the current step done with an optional achieved value."""
        return self.advance(StepOutcome.done(value), now=now)

    def skip(self, now: datetime | None = None) -> ExecutionState:
        """Bypass the current step without completing it."""
        return self.advance(StepOutcome.skip(), now=now)

    def pause(self, now: datetime | None = None) -> None:
        """Pause the execution. Pausing twice is a caller bug and is rejected."""
        self._require(ExecutionState.RUNNING, "pause")
        at = self._read_clock(now)
        self._execution.paused_at = at
        self._execution.state = ExecutionState.PAUSED
        logger.debug("Execution %d paused", self._execution.execution_id)

    def resume(self, now: datetime | None = None) -> float:
        """Resume a paused execution. Returns the length of the pause in seconds."""
        self._require(ExecutionState.PAUSED, "resume")
        at = self._read_clock(now)
        ex = self._execution
        if ex.paused_at is None:
            raise InvalidTransition(
                f"Execution {ex.execution_id} is paused without a pause start",
                state=ex.state,
            )
        delta = (at - ex.paused_at).total_seconds()
        ex.total_pause_duration += delta
        ex.steps[ex.current_index] = ex.steps[ex.current_index].add_pause(delta)
        ex.paused_at = None
        ex.state = ExecutionState.RUNNING
        logger.debug("Execution %d resumed after %.1fs", ex.execution_id, delta)
        return delta

    # ------------------------------------------------------------------
    # Review mode
    # ------------------------------------------------------------------

    def navigate_to(self, index: int | None) -> int | None:
        """Move the review cursor.

        Any step up to and including the current one may be inspected;
        unstarted future steps may not. ``None`` or the current index returns
        to live mode. Returns the new viewing index.
        """
        current = self._execution.current_index
        if index is None or index == current:
            self._viewing_index = None
            return None
        if index < 0 or index > current:
            raise OutOfRange(
                f"Cannot navigate to step {index}; allowed range is 0..{current}",
                index=index,
                limit=current,
            )
        self._viewing_index = index
        return index

    def status_of(self, index: int) -> StepStatus:
        """Derive the display status of the step at *index*. Never mutates."""
        ex = self._execution
        if index < 0 or index >= ex.step_count:
            raise OutOfRange(
                f"Step index {index} outside 0..{ex.step_count - 1}",
                index=index,
                limit=ex.step_count,
            )
        step = ex.steps[index]
        if step.is_done:
            return StepStatus.SKIPPED if step.skipped else StepStatus.COMPLETED
        if index == ex.current_index and not ex.is_completed:
            return StepStatus.CURRENT
        return StepStatus.PENDING

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    def active_elapsed_seconds(self, now: datetime | None = None) -> float:
        """Active (unpaused) seconds spent on the current step so far."""
        step = self._execution.current_step
        if step is None:
            return 0.0
        at = now or self._clock()
        elapsed = step.active_elapsed_seconds(at)
        paused_at = self._execution.paused_at
        if paused_at is not None and at > paused_at:
            elapsed -= (at - paused_at).total_seconds()
        return max(0.0, elapsed)

    def remaining_seconds(self, now: datetime | None = None) -> float | None:
        """Countdown for strict timed steps; None when no countdown applies."""
        step = self._execution.current_step
        if (
            step is None
            or self._goal != SequenceGoal.STRICT
            or step.measure != Measure.TIME
        ):
            return None
        return max(0.0, step.target_value - self.active_elapsed_seconds(now))

    def tick(self, now: datetime | None = None) -> bool:
        """Auto-complete a strict timed step whose countdown has run out.

        Returns True when the step was advanced. No-op while paused or
        completed and for elastic sequences.
        """
        if self.state != ExecutionState.RUNNING:
            return False
        step = self._execution.current_step
        if step is None:
            return False
        at = now or self._clock()
        remaining = self.remaining_seconds(at)
        if remaining is None or remaining > 0:
            return False
        self.advance(StepOutcome.done(step.target_value), now=at)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require(self, expected: ExecutionState, operation: str) -> None:
        state = self._execution.state
        if state != expected:
            raise InvalidTransition(
                f"Cannot {operation} execution {self._execution.execution_id} "
                f"while {state.value}",
                state=state,
            )

    def _read_clock(self, now: datetime | None) -> datetime:
        at = now or self._clock()
        latest = self._execution.last_timestamp
        if at < latest:
            raise InvalidTransition(
                f"Timestamp {at.isoformat()} precedes last recorded "
                f"{latest.isoformat()}",
                state=self._execution.state,
            )
        return at
