"""End-to-end: a full workout through the service, from start to rating."""

from __future__ import annotations

import pytest

from sequence_engine.models.enums import ExecutionState, Measure, StepStatus
from sequence_engine.models.personal_record import PersonalRecordEntry, RecordHistoryItem
from sequence_engine.progress import build_progress
from sequence_engine.serialization import from_execution_json, to_execution_json
from sequence_engine.state_machine import ExecutionStateMachine


@pytest.fixture
def seeded_service(service, clock):
    """Service where push-ups already have a best of 10 reps."""
    service.records.put(
        PersonalRecordEntry(
            exercise_id=2,
            current_best=10,
            measure=Measure.REPETITIONS,
            history=(RecordHistoryItem(10, None, clock.now, "Older session"),),
        )
    )
    return service


def test_full_workout(seeded_service, clock) -> None:
    service = seeded_service
    execution = service.start_execution(7)
    machine = service.open_machine(execution.execution_id)

    clock.tick(35)
    machine.complete(35)
    machine.pause()
    clock.tick(5)
    assert machine.resume() == pytest.approx(5.0)
    assert execution.total_pause_duration == pytest.approx(5.0)

    # Reviewing the plank while resting does not move the cursor.
    machine.navigate_to(0)
    rows = build_progress(machine, viewing_index=machine.viewing_index)
    assert rows[0].is_active and rows[0].status == StepStatus.COMPLETED
    assert rows[1].status == StepStatus.CURRENT
    machine.navigate_to(None)

    clock.tick(20)
    machine.skip()
    clock.tick(40)
    assert machine.complete(10) == ExecutionState.COMPLETED

    assert execution.current_index == 3
    assert [s.skipped for s in execution.steps] == [False, True, False]
    assert execution.steps[1].paused_seconds == pytest.approx(5.0)
    assert execution.active_duration_seconds() == pytest.approx(95.0)

    records = service.submit_rating(execution.execution_id, 4, "good")
    assert execution.state == ExecutionState.RATED
    assert execution.feedback == "good"
    assert len(records) == 1
    assert records[0].exercise_id == 1
    assert records[0].new_best == 35
    assert records[0].previous_best is None

    restored = from_execution_json(to_execution_json(execution))
    assert restored == execution


def test_client_sync_then_rating(service, clock) -> None:
    """A client drives its own copy and syncs the final state back."""
    execution = service.start_execution(7)
    client = from_execution_json(to_execution_json(execution))
    local = ExecutionStateMachine(client, clock=clock)

    for value in (40, None, 12):
        clock.tick(30)
        if value is None:
            local.skip()
        else:
            local.complete(value)

    synced = service.update_execution(
        execution.execution_id,
        client.steps,
        total_pause_duration=client.total_pause_duration,
        completed_at=client.completed_at,
    )
    assert synced.state == ExecutionState.COMPLETED
    records = service.submit_rating(execution.execution_id, 5)
    assert {r.exercise_id: r.new_best for r in records} == {1: 40, 2: 12}
