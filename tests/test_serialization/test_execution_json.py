"""Tests for execution JSON serialization and export files."""

import json

import pytest

from sequence_engine.exceptions import ValidationError
from sequence_engine.models.enums import EXPORT_FORMAT_VERSION, ExecutionState, Measure
from sequence_engine.serialization import (
    dump_export,
    from_execution_json,
    from_record_json,
    load_export,
    load_export_records,
    to_execution_json,
    to_execution_json_string,
    to_record_json,
    update_from_json,
)


@pytest.fixture
def finished(machine, clock):
    clock.tick(35)
    machine.complete(35)
    clock.tick(60)
    machine.skip()
    clock.tick(30)
    machine.complete(10)
    return machine.execution


class TestExecutionJson:
    def test_camel_case_keys(self, finished):
        data = to_execution_json(finished)
        assert data["executionId"] == 1
        assert data["state"] == "completed"
        assert data["totalPauseDuration"] == 0.0
        step = data["steps"][1]
        assert step["stepId"] == "break"
        assert step["skipped"] is True
        assert step["value"] is None
        assert data["steps"][0]["startedAt"] == "2026-03-02T09:00:00+00:00"

    def test_string_is_valid_json(self, finished):
        assert json.loads(to_execution_json_string(finished))["sequenceId"] == 7

    def test_round_trip(self, finished):
        assert from_execution_json(to_execution_json(finished)) == finished

    def test_accepts_zulu_timestamps(self, finished):
        data = to_execution_json(finished)
        data["startedAt"] = "2026-03-02T09:00:00Z"
        restored = from_execution_json(data)
        assert restored.started_at == finished.started_at

    def test_missing_field_is_validation_error(self):
        with pytest.raises(ValidationError):
            from_execution_json({"sequenceId": 7})

    def test_unknown_state_is_validation_error(self, finished):
        data = to_execution_json(finished)
        data["state"] = "sleeping"
        with pytest.raises(ValidationError):
            from_execution_json(data)


class TestUpdateFromJson:
    def test_parses_request_body(self, finished):
        body = to_execution_json(finished)
        update = update_from_json(body)
        assert len(update.steps) == 3
        assert update.steps[0].measure == Measure.TIME
        assert update.completed_at == finished.completed_at
        assert update.paused_at is None

    def test_missing_pause_total(self, finished):
        body = to_execution_json(finished)
        del body["totalPauseDuration"]
        with pytest.raises(ValidationError):
            update_from_json(body)


class TestExportFile:
    def test_versioned_document(self, service, clock, tmp_path):
        execution = service.start_execution(7)
        path = service.write_export(tmp_path / "export.json")
        document = json.loads(path.read_text())
        assert document["formatVersion"] == EXPORT_FORMAT_VERSION
        assert document["executions"][0]["executionId"] == execution.execution_id
        assert document["personalRecords"] == []

    def test_load_round_trip(self, finished, tmp_path):
        path = dump_export([finished], tmp_path / "export.json")
        loaded = load_export(path)
        assert loaded == [finished]
        assert loaded[0].state == ExecutionState.COMPLETED
        assert load_export_records(path) == []

    def test_unsupported_version(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({"formatVersion": 99, "executions": []}))
        with pytest.raises(ValidationError):
            load_export(path)


class TestRecordJson:
    def test_round_trip(self, service, clock):
        execution = service.start_execution(7)
        machine = service.open_machine(execution.execution_id)
        for value in (35, None, 10):
            clock.tick(20)
            machine.complete(value)
        service.submit_rating(execution.execution_id, 4)
        entries = service.get_personal_records()
        assert [from_record_json(to_record_json(e)) for e in entries] == entries

    @pytest.mark.parametrize(
        "payload",
        [
            {"currentBest": 30},
            {"exerciseId": 1, "currentBest": 30, "history": [{"value": 30}]},
            {"exerciseId": 1, "currentBest": "lots"},
        ],
    )
    def test_malformed_entry_is_validation_error(self, payload):
        with pytest.raises(ValidationError):
            from_record_json(payload)

    def test_timestamp_without_offset_rejected(self):
        payload = {
            "exerciseId": 1,
            "currentBest": 30,
            "history": [{"value": 30, "achievedAt": "2026-03-02T09:00:00"}],
        }
        with pytest.raises(ValidationError):
            from_record_json(payload)
