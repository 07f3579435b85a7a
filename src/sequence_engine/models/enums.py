"""Enumerations and domain constants for the sequence engine.

Enum values double as wire strings, so they use ``str`` mixins rather than
integer tiers.
"""

from enum import Enum


class Measure(str, Enum):
    """Unit a step's target is expressed in. Fixed at authoring time."""

    TIME = "time"  # seconds
    REPETITIONS = "repetitions"  # count


class SequenceGoal(str, Enum):
    """How strictly a sequence enforces its targets.

    STRICT sequences auto-advance timed steps once the target elapses;
    ELASTIC sequences always wait for the user.
    """

    STRICT = "strict"
    ELASTIC = "elastic"


class ExecutionState(str, Enum):
    """Lifecycle of a single sequence run.

    RATED is the terminal sub-state of COMPLETED reached through the
    rating pipeline. Only the pipeline moves an execution into it.
    """

    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    RATED = "rated"


class StepStatus(str, Enum):
    """Per-step display status derived from the execution."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    CURRENT = "current"
    PENDING = "pending"


class AchievementCategory(str, Enum):
    """Family an unlocked badge belongs to."""

    MILESTONE = "milestone"
    STREAK = "streak"
    PERSONAL_RECORD = "personal-record"
    CONSISTENCY = "consistency"


class SegmentDensity(str, Enum):
    """Width tier of the progress bar segments, by sequence length."""

    WIDE = "wide"
    MEDIUM = "medium"
    NARROW = "narrow"
    COMPACT = "compact"


# ---------------------------------------------------------------------------
# Step identifiers
# ---------------------------------------------------------------------------
BREAK = "break"  # step_id sentinel for rest breaks
BREAK_NAME = "Break"

# ---------------------------------------------------------------------------
# Rating
# ---------------------------------------------------------------------------
MIN_RATING = 1
MAX_RATING = 5

# ---------------------------------------------------------------------------
# Progress bar density tiers: upper bound on step count for each tier
# ---------------------------------------------------------------------------
DENSITY_TIERS = (
    (10, SegmentDensity.WIDE),
    (20, SegmentDensity.MEDIUM),
    (30, SegmentDensity.NARROW),
)

# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------
WEEKLY_PROGRESS_DAYS = 7
# Streak only counts as current if the last workout was at most this many
# calendar days ago (today or yesterday).
STREAK_GRACE_DAYS = 1

# ---------------------------------------------------------------------------
# Achievements: (threshold, badge id) pairs, awarded once each
# ---------------------------------------------------------------------------
MILESTONE_BADGES = (
    (1, "first_workout"),
    (5, "workout_5"),
    (10, "workout_10"),
    (25, "workout_25"),
    (50, "workout_50"),
    (100, "workout_100"),
)
STREAK_BADGES = (
    (3, "streak_3"),
    (7, "streak_7"),
    (14, "streak_14"),
    (30, "streak_30"),
    (100, "streak_100"),
)
# Workouts completed within the trailing window
CONSISTENCY_BADGES = (
    (12, "consistent_12"),
    (20, "consistent_20"),
)
CONSISTENCY_WINDOW_DAYS = 30
PR_BADGE_PREFIX = "pr_"

# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------
EXPORT_FORMAT_VERSION = 1
