"""Shared test fixtures: a manual clock, sample sequences, fresh services."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from sequence_engine.models.enums import Measure, SequenceGoal
from sequence_engine.models.sequence import SequenceDefinition, SequenceItem
from sequence_engine.service import ExecutionService
from sequence_engine.state_machine import ExecutionStateMachine
from sequence_engine.storage import SequenceCatalog

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)  # a Monday morning

PLANK = 1
PUSH_UP = 2
SQUAT = 3


class ManualClock:
    """Clock that only moves when a test tells it to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def tick(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def three_step_sequence() -> SequenceDefinition:
    """Plank 30 s, a 60 s break, push-ups 10 reps."""
    return SequenceDefinition(
        sequence_id=7,
        name="Morning Core",
        items=(
            SequenceItem(PLANK, Measure.TIME, 30, "Plank"),
            SequenceItem.rest(60),
            SequenceItem(PUSH_UP, Measure.REPETITIONS, 10, "Push-up"),
        ),
    )


@pytest.fixture
def strict_sequence() -> SequenceDefinition:
    """Strict goal: timed steps auto-advance at their target."""
    return SequenceDefinition(
        sequence_id=8,
        name="Strict Intervals",
        items=(
            SequenceItem(PLANK, Measure.TIME, 30, "Plank"),
            SequenceItem(SQUAT, Measure.REPETITIONS, 15, "Squat"),
        ),
        goal=SequenceGoal.STRICT,
    )


@pytest.fixture
def machine(three_step_sequence: SequenceDefinition, clock: ManualClock) -> ExecutionStateMachine:
    return ExecutionStateMachine.start(three_step_sequence, execution_id=1, clock=clock)


@pytest.fixture
def service(
    three_step_sequence: SequenceDefinition,
    strict_sequence: SequenceDefinition,
    clock: ManualClock,
) -> ExecutionService:
    catalog = SequenceCatalog([three_step_sequence, strict_sequence])
    return ExecutionService(catalog, clock=clock)
