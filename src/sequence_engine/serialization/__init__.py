"""Serialization module: executions, records and achievements to and from JSON."""

from sequence_engine.serialization.execution_json import (
    dump_export,
    from_achievement_json,
    from_execution_json,
    from_record_json,
    load_export,
    load_export_achievements,
    load_export_records,
    to_achievement_json,
    to_execution_json,
    to_execution_json_string,
    to_record_json,
    update_from_json,
)

__all__ = [
    "dump_export",
    "from_achievement_json",
    "from_execution_json",
    "from_record_json",
    "load_export",
    "load_export_achievements",
    "load_export_records",
    "to_achievement_json",
    "to_execution_json",
    "to_execution_json_string",
    "to_record_json",
    "update_from_json",
]
