"""Data models for the sequence engine."""

from sequence_engine.models.achievement import Achievement, AchievementStats
from sequence_engine.models.enums import (
    BREAK,
    AchievementCategory,
    ExecutionState,
    Measure,
    SegmentDensity,
    SequenceGoal,
    StepStatus,
)
from sequence_engine.models.execution import Execution, ExecutionUpdate
from sequence_engine.models.history import ExecutionSummary, HistoryStep, LastAttempt
from sequence_engine.models.personal_record import (
    PersonalRecordEntry,
    PersonalRecordResult,
    RecordHistoryItem,
)
from sequence_engine.models.sequence import SequenceDefinition, SequenceItem
from sequence_engine.models.step import Step, StepOutcome

__all__ = [
    "BREAK",
    "Achievement",
    "AchievementCategory",
    "AchievementStats",
    "Execution",
    "ExecutionState",
    "ExecutionSummary",
    "ExecutionUpdate",
    "HistoryStep",
    "LastAttempt",
    "Measure",
    "PersonalRecordEntry",
    "PersonalRecordResult",
    "RecordHistoryItem",
    "SegmentDensity",
    "SequenceDefinition",
    "SequenceGoal",
    "SequenceItem",
    "Step",
    "StepOutcome",
    "StepStatus",
]
