"""Validation and application of bulk execution updates.

A client runs the state machine locally and periodically pushes the whole
execution state back. The receiver accepts a push only if it could have been
produced by forward transitions from what is already stored: completed steps
are never rewritten, the cursor never moves back, pause time never shrinks,
a recorded pause start never moves and timestamps never run backwards.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sequence_engine.exceptions import InvalidTransition, ValidationError
from sequence_engine.models.enums import ExecutionState
from sequence_engine.models.execution import Execution, ExecutionUpdate
from sequence_engine.models.step import Step

logger = logging.getLogger(__name__)


def apply_update(execution: Execution, update: ExecutionUpdate) -> Execution:
    """Validate *update* against *execution* and apply it in place.

    Raises:
        ValidationError: malformed payload (negative pause total, step list
            that does not match the sequence, negative values).
        InvalidTransition: the payload would move the execution backwards or
            change a completed execution.
    """
    if execution.is_completed:
        if _matches(execution, update):
            return execution
        raise InvalidTransition(
            f"Execution {execution.execution_id} is completed and cannot change",
            state=execution.state,
        )

    _check_shape(execution, update)
    _check_offsets(execution, update)
    _check_pause_total(execution, update)
    _check_pause_start(execution, update)
    open_index = _check_progression(execution, update.steps)
    _check_timeline(execution, update)

    completed_at = update.completed_at
    if open_index is None and completed_at is None:
        # Every step done: the execution completes with its last step.
        completed_at = update.steps[-1].completed_at
    if completed_at is not None and open_index is not None:
        raise InvalidTransition(
            f"Execution {execution.execution_id} cannot complete with step "
            f"{open_index} still open",
            state=execution.state,
        )
    if completed_at is not None and update.paused_at is not None:
        raise InvalidTransition(
            "A completed execution cannot be paused", state=execution.state
        )

    execution.steps = list(update.steps)
    execution.current_index = open_index if open_index is not None else execution.step_count
    execution.total_pause_duration = update.total_pause_duration
    execution.paused_at = update.paused_at
    execution.completed_at = completed_at
    if completed_at is not None:
        execution.state = ExecutionState.COMPLETED
    elif update.paused_at is not None:
        execution.state = ExecutionState.PAUSED
    else:
        execution.state = ExecutionState.RUNNING
    logger.debug(
        "Execution %d synced: index=%d state=%s",
        execution.execution_id,
        execution.current_index,
        execution.state.value,
    )
    return execution


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _check_shape(execution: Execution, update: ExecutionUpdate) -> None:
    if len(update.steps) != execution.step_count:
        raise ValidationError(
            f"Expected {execution.step_count} steps, got {len(update.steps)}"
        )
    for index, (stored, incoming) in enumerate(zip(execution.steps, update.steps)):
        if (
            incoming.step_id != stored.step_id
            or incoming.measure != stored.measure
            or incoming.target_value != stored.target_value
        ):
            raise ValidationError(f"Step {index} does not match the sequence definition")
        if incoming.achieved_value is not None and incoming.achieved_value < 0:
            raise ValidationError(f"Step {index} has a negative achieved value")
        if incoming.paused_seconds < 0:
            raise ValidationError(f"Step {index} has negative pause time")


def _check_offsets(execution: Execution, update: ExecutionUpdate) -> None:
    """Every timestamp must agree with the stored start on carrying a UTC offset."""
    aware = _is_aware(execution.started_at)
    for label, stamp in _stamps(execution, update):
        if _is_aware(stamp) != aware:
            problem = "lacks" if aware else "carries"
            raise ValidationError(f"{label} ({stamp.isoformat()}) {problem} a UTC offset")


def _check_pause_total(execution: Execution, update: ExecutionUpdate) -> None:
    total = update.total_pause_duration
    if total is None or total < 0:
        raise ValidationError(f"total_pause_duration must be >= 0, got {total!r}")
    if total < execution.total_pause_duration:
        raise InvalidTransition(
            f"total_pause_duration cannot decrease "
            f"({execution.total_pause_duration} -> {total})",
            state=execution.state,
        )


def _check_pause_start(execution: Execution, update: ExecutionUpdate) -> None:
    stored = execution.paused_at
    if stored is None or update.paused_at is None:
        return
    if update.paused_at != stored:
        raise InvalidTransition(
            f"Pause start cannot change ({stored.isoformat()} -> "
            f"{update.paused_at.isoformat()})",
            state=execution.state,
        )


def _check_progression(execution: Execution, steps: tuple[Step, ...]) -> int | None:
    """Check the cursor and per-step history. Returns the open step index."""
    open_index: int | None = None
    for index, (stored, incoming) in enumerate(zip(execution.steps, steps)):
        if stored.is_done and (
            incoming.completed_at != stored.completed_at
            or incoming.started_at != stored.started_at
            or incoming.achieved_value != stored.achieved_value
            or incoming.skipped != stored.skipped
        ):
            raise InvalidTransition(
                f"Step {index} is already completed and cannot be rewritten",
                state=execution.state,
            )
        if stored.is_started and incoming.started_at != stored.started_at:
            raise InvalidTransition(
                f"Step {index} start time cannot change", state=execution.state
            )
        if incoming.paused_seconds < stored.paused_seconds:
            raise InvalidTransition(
                f"Step {index} pause time cannot decrease "
                f"({stored.paused_seconds} -> {incoming.paused_seconds})",
                state=execution.state,
            )

        if open_index is None:
            if incoming.is_done:
                if incoming.started_at is None:
                    raise ValidationError(f"Step {index} completed without being started")
                continue
            if incoming.started_at is None:
                raise ValidationError(f"Current step {index} has no start time")
            open_index = index
        elif incoming.is_started:
            raise InvalidTransition(
                f"Step {index} started before step {open_index} was finished",
                state=execution.state,
            )
    return open_index


def _check_timeline(execution: Execution, update: ExecutionUpdate) -> None:
    stamps = _stamps(execution, update)
    for (prev_label, prev), (label, stamp) in zip(stamps, stamps[1:]):
        if stamp < prev:
            logger.warning(
                "Rejected update for execution %d: %s precedes %s",
                execution.execution_id,
                label,
                prev_label,
            )
            raise InvalidTransition(
                f"{label} ({stamp.isoformat()}) precedes {prev_label} "
                f"({prev.isoformat()})",
                state=execution.state,
            )


def _matches(execution: Execution, update: ExecutionUpdate) -> bool:
    return (
        list(update.steps) == execution.steps
        and update.total_pause_duration == execution.total_pause_duration
        and update.paused_at is None
        and update.completed_at in (None, execution.completed_at)
    )


def _stamps(execution: Execution, update: ExecutionUpdate) -> list[tuple[str, datetime]]:
    """Labelled timestamps of *update* in the order they must occur."""
    stamps: list[tuple[str, datetime]] = [("execution start", execution.started_at)]
    for index, step in enumerate(update.steps):
        if step.started_at is not None:
            stamps.append((f"step {index} start", step.started_at))
        if step.completed_at is not None:
            stamps.append((f"step {index} completion", step.completed_at))
    if update.paused_at is not None:
        stamps.append(("pause", update.paused_at))
    if update.completed_at is not None:
        stamps.append(("completion", update.completed_at))
    return stamps


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None
