"""Environment-variable-based configuration for the nightly report job."""

from __future__ import annotations

import os
from pathlib import Path

EXPORT_PATH: Path = Path(
    os.environ.get("SEQUENCE_EXPORT_PATH", "data/executions.json")
).expanduser()
REPORT_DIR: Path = Path(os.environ.get("SEQUENCE_REPORT_DIR", "data/reports")).expanduser()
NIGHTLY_HOUR: int = int(os.environ.get("SCHEDULER_HOUR", "21"))
NIGHTLY_MINUTE: int = int(os.environ.get("SCHEDULER_MINUTE", "0"))
LOG_LEVEL: str = os.environ.get("SEQUENCE_LOG_LEVEL", "INFO").upper()
