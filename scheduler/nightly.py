"""Nightly report: summarizes exported executions into a daily JSON report.

Usage:
    python -m scheduler.nightly --once      # single run (for cron)
    python -m scheduler.nightly --daemon    # APScheduler loop
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from datetime import date
from pathlib import Path

from sequence_engine.achievements import achievement_stats
from sequence_engine.exceptions import ValidationError
from sequence_engine.serialization import (
    load_export,
    load_export_achievements,
    load_export_records,
    to_record_json,
)
from sequence_engine.stats.activity import detailed_stats, weekly_progress, workout_streaks

from scheduler.config import EXPORT_PATH, LOG_LEVEL, NIGHTLY_HOUR, NIGHTLY_MINUTE, REPORT_DIR

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_report(export_path: Path, today: date) -> dict:
    """Compute the report document for the export at *export_path*."""
    executions = load_export(export_path)
    records = load_export_records(export_path)
    achievements = load_export_achievements(export_path)
    stats = detailed_stats(executions)
    progress = weekly_progress(executions, today)
    streaks = workout_streaks(executions, today)
    return {
        "date": today.isoformat(),
        "stats": dataclasses.asdict(stats),
        "weeklyProgress": [
            {"date": d.day.isoformat(), "workouts": d.workouts} for d in progress
        ],
        "streaks": dataclasses.asdict(streaks),
        "personalRecords": [to_record_json(r) for r in records],
        "achievements": dataclasses.asdict(achievement_stats(achievements)),
    }


def nightly_job(
    export_path: Path = EXPORT_PATH,
    report_dir: Path = REPORT_DIR,
    today: date | None = None,
) -> Path | None:
    """Execute one nightly cycle. Returns the written report path, if any."""
    logger.info("Starting nightly report")
    today = today or date.today()

    if not export_path.exists():
        logger.error("Export not found at %s", export_path)
        return None

    try:
        report = build_report(export_path, today)
    except (ValidationError, json.JSONDecodeError) as exc:
        logger.error("Failed to read export %s: %s", export_path, exc)
        return None

    report_dir.mkdir(parents=True, exist_ok=True)
    report_path = report_dir / f"report-{today.isoformat()}.json"
    report_path.write_text(json.dumps(report, indent=2))
    logger.info(
        "Wrote report %s (%d workouts, current streak %d)",
        report_path,
        report["stats"]["total_workouts"],
        report["streaks"]["current"],
    )
    return report_path


def main() -> None:
    parser = argparse.ArgumentParser(description="Sequence execution nightly report")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--once", action="store_true", help="Run once and exit")
    group.add_argument("--daemon", action="store_true", help="Run as APScheduler daemon")
    args = parser.parse_args()

    if args.once:
        nightly_job()
    else:
        from apscheduler.schedulers.blocking import BlockingScheduler

        scheduler = BlockingScheduler()
        scheduler.add_job(
            nightly_job,
            "cron",
            hour=NIGHTLY_HOUR,
            minute=NIGHTLY_MINUTE,
            id="nightly_report",
        )
        logger.info(
            "Scheduler started: nightly report at %02d:%02d",
            NIGHTLY_HOUR,
            NIGHTLY_MINUTE,
        )
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler stopped")


if __name__ == "__main__":
    main()
