"""JSON serialization for executions, personal records and achievements.

Keys are camelCase to match the wire contract clients sync with
(``executionId``, ``steps[].stepId``, ``totalPauseDuration``, ...).
Timestamps are ISO-8601 strings. All functions are pure except the
export file helpers at the bottom.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from sequence_engine.exceptions import ValidationError
from sequence_engine.models.achievement import Achievement
from sequence_engine.models.enums import (
    BREAK,
    EXPORT_FORMAT_VERSION,
    AchievementCategory,
    ExecutionState,
    Measure,
)
from sequence_engine.models.execution import Execution, ExecutionUpdate
from sequence_engine.models.personal_record import (
    PersonalRecordEntry,
    PersonalRecordResult,
    RecordHistoryItem,
)
from sequence_engine.models.step import Step


def to_execution_json(execution: Execution) -> dict:
    """Convert an Execution to a JSON-compatible dict."""
    return {
        "executionId": execution.execution_id,
        "sequenceId": execution.sequence_id,
        "sequenceName": execution.sequence_name,
        "state": execution.state.value,
        "startedAt": _dt_out(execution.started_at),
        "currentIndex": execution.current_index,
        "steps": [to_step_json(s) for s in execution.steps],
        "pausedAt": _dt_out(execution.paused_at),
        "totalPauseDuration": execution.total_pause_duration,
        "completedAt": _dt_out(execution.completed_at),
        "rating": execution.rating,
        "feedback": execution.feedback,
        "personalRecords": [_result_out(r) for r in execution.personal_records],
    }


def to_execution_json_string(execution: Execution, indent: int = 2) -> str:
    return json.dumps(to_execution_json(execution), indent=indent)


def from_execution_json(data: dict) -> Execution:
    """Rebuild an Execution from :func:`to_execution_json` output."""
    try:
        return Execution(
            execution_id=int(data["executionId"]),
            sequence_id=int(data["sequenceId"]),
            sequence_name=data.get("sequenceName", ""),
            state=ExecutionState(data.get("state", ExecutionState.RUNNING.value)),
            started_at=_dt_in(data["startedAt"]),  # type: ignore[arg-type]
            current_index=int(data.get("currentIndex", 0)),
            steps=[from_step_json(s) for s in data.get("steps", [])],
            paused_at=_dt_in(data.get("pausedAt")),
            total_pause_duration=float(data.get("totalPauseDuration", 0.0)),
            completed_at=_dt_in(data.get("completedAt")),
            rating=data.get("rating"),
            feedback=data.get("feedback"),
            personal_records=tuple(
                _result_in(r) for r in data.get("personalRecords") or []
            ),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Malformed execution payload: {exc}") from exc


def to_step_json(step: Step) -> dict:
    return {
        "stepId": step.step_id,
        "exerciseName": step.exercise_name,
        "measure": step.measure.value,
        "targetValue": step.target_value,
        "startedAt": _dt_out(step.started_at),
        "completedAt": _dt_out(step.completed_at),
        "value": step.achieved_value,
        "skipped": step.skipped,
        "pausedSeconds": step.paused_seconds,
    }


def from_step_json(data: dict) -> Step:
    step_id = data["stepId"]
    if step_id != BREAK:
        step_id = int(step_id)
    value = data.get("value")
    return Step(
        step_id=step_id,
        measure=Measure(data["measure"]),
        target_value=float(data["targetValue"]),
        exercise_name=data.get("exerciseName", ""),
        started_at=_dt_in(data.get("startedAt")),
        completed_at=_dt_in(data.get("completedAt")),
        achieved_value=float(value) if value is not None else None,
        skipped=bool(data.get("skipped", False)),
        paused_seconds=float(data.get("pausedSeconds", 0.0)),
    )


def update_from_json(data: dict) -> ExecutionUpdate:
    """Parse an ``updateExecution`` request body."""
    try:
        return ExecutionUpdate(
            steps=tuple(from_step_json(s) for s in data["steps"]),
            total_pause_duration=float(data["totalPauseDuration"]),
            paused_at=_dt_in(data.get("pausedAt")),
            completed_at=_dt_in(data.get("completedAt")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Malformed update payload: {exc}") from exc


def to_record_json(entry: PersonalRecordEntry) -> dict:
    return {
        "exerciseId": entry.exercise_id,
        "measure": entry.measure.value,
        "currentBest": entry.current_best,
        "history": [
            {
                "value": item.value,
                "previousBest": item.previous_best,
                "achievedAt": _dt_out(item.achieved_at),
                "sequenceName": item.sequence_name,
            }
            for item in entry.history
        ],
    }


def from_record_json(data: dict) -> PersonalRecordEntry:
    try:
        return PersonalRecordEntry(
            exercise_id=int(data["exerciseId"]),
            current_best=float(data["currentBest"]),
            measure=Measure(data.get("measure", Measure.REPETITIONS.value)),
            history=tuple(
                RecordHistoryItem(
                    value=float(h["value"]),
                    previous_best=h.get("previousBest"),
                    achieved_at=_dt_in(h["achievedAt"]),  # type: ignore[arg-type]
                    sequence_name=h.get("sequenceName", ""),
                )
                for h in data.get("history", [])
            ),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Malformed personal record payload: {exc}") from exc


def to_achievement_json(achievement: Achievement) -> dict:
    return {
        "badgeId": achievement.badge_id,
        "category": achievement.category.value,
        "unlockedAt": _dt_out(achievement.unlocked_at),
        "metadata": {
            "value": achievement.value,
            "exerciseName": achievement.exercise_name,
        },
    }


def from_achievement_json(data: dict) -> Achievement:
    try:
        metadata = data.get("metadata") or {}
        return Achievement(
            badge_id=str(data["badgeId"]),
            category=AchievementCategory(data["category"]),
            unlocked_at=_dt_in(data["unlockedAt"]),  # type: ignore[arg-type]
            value=float(metadata.get("value", 0)),
            exercise_name=metadata.get("exerciseName"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ValidationError(f"Malformed achievement payload: {exc}") from exc


# ---------------------------------------------------------------------------
# Export files
# ---------------------------------------------------------------------------


def dump_export(
    executions: Iterable[Execution],
    path: Path | str,
    records: Iterable[PersonalRecordEntry] = (),
    achievements: Iterable[Achievement] = (),
) -> Path:
    """Write executions, personal records and achievements as a versioned export."""
    path = Path(path)
    document = {
        "formatVersion": EXPORT_FORMAT_VERSION,
        "executions": [to_execution_json(e) for e in executions],
        "personalRecords": [to_record_json(r) for r in records],
        "achievements": [to_achievement_json(a) for a in achievements],
    }
    path.write_text(json.dumps(document, indent=2))
    return path


def _read_export(path: Path | str) -> dict:
    document = json.loads(Path(path).read_text())
    version = document.get("formatVersion")
    if version != EXPORT_FORMAT_VERSION:
        raise ValidationError(f"Unsupported export format version: {version!r}")
    return document


def load_export(path: Path | str) -> list[Execution]:
    """Read the executions of an export written by :func:`dump_export`."""
    document = _read_export(path)
    return [from_execution_json(d) for d in document.get("executions", [])]


def load_export_records(path: Path | str) -> list[PersonalRecordEntry]:
    """Read the personal records of an export written by :func:`dump_export`."""
    document = _read_export(path)
    return [from_record_json(d) for d in document.get("personalRecords", [])]


def load_export_achievements(path: Path | str) -> list[Achievement]:
    """Read the achievements of an export; older exports without them yield none."""
    document = _read_export(path)
    return [from_achievement_json(d) for d in document.get("achievements", [])]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _dt_out(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _dt_in(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, datetime):
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(f"Timestamp {value.isoformat()} has no UTC offset")
    return value


def _result_out(result: PersonalRecordResult) -> dict:
    return {
        "exerciseId": result.exercise_id,
        "type": result.measure.value,
        "previousBest": result.previous_best,
        "newBest": result.new_best,
    }


def _result_in(data: dict) -> PersonalRecordResult:
    return PersonalRecordResult(
        exercise_id=int(data["exerciseId"]),
        measure=Measure(data.get("type", Measure.REPETITIONS.value)),
        previous_best=data.get("previousBest"),
        new_best=float(data["newBest"]),
    )
