"""Tests for the nightly report job."""

import json
from datetime import date

from scheduler.nightly import build_report, nightly_job

TODAY = date(2026, 3, 2)


def _export(service, clock, tmp_path):
    execution = service.start_execution(7)
    machine = service.open_machine(execution.execution_id)
    for value in (35, None, 10):
        clock.tick(60)
        if value is None:
            machine.skip()
        else:
            machine.complete(value)
    service.submit_rating(execution.execution_id, 4, "good")
    return service.write_export(tmp_path / "executions.json")


def test_build_report(service, clock, tmp_path):
    report = build_report(_export(service, clock, tmp_path), TODAY)
    assert report["date"] == "2026-03-02"
    assert report["stats"]["total_workouts"] == 1
    assert report["stats"]["avg_rating"] == 4.0
    assert report["weeklyProgress"][-1] == {"date": "2026-03-02", "workouts": 1}
    assert report["streaks"] == {"current": 1, "longest": 1}
    assert {r["exerciseId"] for r in report["personalRecords"]} == {1, 2}
    assert report["achievements"]["personal_record"] == 2
    assert report["achievements"]["total"] == 2


def test_nightly_job_writes_dated_report(service, clock, tmp_path):
    export = _export(service, clock, tmp_path)
    report_dir = tmp_path / "reports"
    path = nightly_job(export_path=export, report_dir=report_dir, today=TODAY)
    assert path == report_dir / "report-2026-03-02.json"
    assert json.loads(path.read_text())["stats"]["total_exercises"] == 2


def test_missing_export_is_skipped(tmp_path):
    result = nightly_job(
        export_path=tmp_path / "absent.json", report_dir=tmp_path / "reports", today=TODAY
    )
    assert result is None
    assert not (tmp_path / "reports").exists()


def test_unreadable_export_is_skipped(tmp_path):
    export = tmp_path / "executions.json"
    export.write_text("{not json")
    assert nightly_job(export_path=export, report_dir=tmp_path, today=TODAY) is None

    export.write_text(json.dumps({"formatVersion": 0}))
    assert nightly_job(export_path=export, report_dir=tmp_path, today=TODAY) is None


def test_malformed_record_is_skipped(tmp_path):
    export = tmp_path / "executions.json"
    export.write_text(
        json.dumps(
            {
                "formatVersion": 1,
                "executions": [],
                "personalRecords": [{"exerciseId": 1}],
            }
        )
    )
    result = nightly_job(export_path=export, report_dir=tmp_path / "reports", today=TODAY)
    assert result is None
    assert not (tmp_path / "reports").exists()
