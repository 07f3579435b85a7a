"""Tests for derived Execution properties."""

from datetime import timedelta

import pytest

from sequence_engine.models.enums import ExecutionState


def test_fresh_execution(machine, clock):
    execution = machine.execution
    assert execution.state == ExecutionState.RUNNING
    assert execution.current_step is execution.steps[0]
    assert execution.last_timestamp == clock.now
    assert execution.completed_step_count == 0


def test_terminal_properties(machine, clock):
    for _ in range(3):
        clock.tick(10)
        machine.complete(5)
    execution = machine.execution
    assert execution.is_completed and not execution.is_rated
    assert execution.current_step is None
    assert execution.completed_step_count == 3
    assert execution.last_timestamp == execution.completed_at


def test_active_duration_counts_open_pause(machine, clock):
    start = clock.now
    clock.tick(20)
    machine.pause()
    later = start + timedelta(seconds=50)
    assert machine.execution.active_duration_seconds(later) == pytest.approx(20.0)
