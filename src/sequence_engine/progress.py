"""Progress presentation adapter.

Pure projections of an ExecutionStateMachine for rendering a segmented
progress bar. Nothing here owns state or mutates the machine; statuses are
recomputed from the steps on every call.
"""

from __future__ import annotations

from dataclasses import dataclass

from sequence_engine.exceptions import OutOfRange
from sequence_engine.models.enums import DENSITY_TIERS, SegmentDensity, StepStatus
from sequence_engine.state_machine import ExecutionStateMachine

_LIVE = object()


@dataclass(frozen=True)
class StepProgress:
    """Display state of one progress segment."""

    index: int
    status: StepStatus
    is_active: bool  # the segment the UI is focused on
    can_navigate: bool  # reviewable: at or before the current step


def build_progress(
    machine: ExecutionStateMachine,
    viewing_index: int | None | object = _LIVE,
) -> list[StepProgress]:
    """Derive one StepProgress per step.

    Args:
        machine: The execution to project.
        viewing_index: Review cursor to project with. Defaults to the
            machine's own cursor; pass None explicitly for live mode.

    Returns:
        Progress entries in step order.
    """
    current = machine.current_index
    if viewing_index is _LIVE:
        viewing_index = machine.viewing_index
    if viewing_index is not None:
        if not 0 <= viewing_index <= current:  # type: ignore[operator]
            raise OutOfRange(
                f"Viewing index {viewing_index} outside 0..{current}",
                index=viewing_index,  # type: ignore[arg-type]
                limit=current,
            )
    display = viewing_index if viewing_index is not None else current

    return [
        StepProgress(
            index=i,
            status=machine.status_of(i),
            is_active=i == display,
            can_navigate=i <= current,
        )
        for i in range(machine.step_count)
    ]


def segment_density(step_count: int) -> SegmentDensity:
    """Pick the segment width tier: more steps means narrower segments."""
    for upper_bound, density in DENSITY_TIERS:
        if step_count <= upper_bound:
            return density
    return SegmentDensity.COMPACT


def previous_index(machine: ExecutionStateMachine) -> int | None:
    """Index the 'previous' arrow leads to, or None at the first step."""
    display = machine.display_index
    return display - 1 if display > 0 else None


def next_index(machine: ExecutionStateMachine) -> int | None:
    """Index the 'next' arrow leads to. Never past the current step."""
    display = machine.display_index
    return display + 1 if display < machine.current_index else None
