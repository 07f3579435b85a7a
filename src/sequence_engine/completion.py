"""Completion & rating pipeline.

COMPLETED -> RATED is a one-way gate. Passing it stores the rating and
feedback and runs personal record detection exactly once for the execution.
If detection fails the execution still ends up rated, with no records.
"""

from __future__ import annotations

import logging
import threading

from sequence_engine.exceptions import AlreadyRated, InvalidTransition, ValidationError
from sequence_engine.models.enums import MAX_RATING, MIN_RATING, ExecutionState
from sequence_engine.models.execution import Execution
from sequence_engine.models.personal_record import PersonalRecordResult
from sequence_engine.records import PersonalRecordDetector

logger = logging.getLogger(__name__)


def validate_rating(rating: object, feedback: object = None) -> None:
    """Raise ValidationError unless *rating* is an integer in [1, 5]."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError(f"Rating must be an integer, got {rating!r}")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}"
        )
    if feedback is not None and not isinstance(feedback, str):
        raise ValidationError(f"Feedback must be text, got {type(feedback).__name__}")


class RatingPipeline:
    """Finalizes completed executions with a rating and PR detection."""

    def __init__(self, detector: PersonalRecordDetector) -> None:
        self.detector = detector
        self._lock = threading.Lock()

    def submit_rating(
        self,
        execution: Execution,
        rating: int,
        feedback: str | None = None,
    ) -> list[PersonalRecordResult]:
        """Rate *execution* and detect its personal records.

        Raises:
            AlreadyRated: the execution was rated before.
            InvalidTransition: the execution is not completed yet.
            ValidationError: rating outside 1-5 or feedback not text.
        """
        with self._lock:
            if execution.state == ExecutionState.RATED:
                raise AlreadyRated(
                    f"Execution {execution.execution_id} is already rated",
                    state=execution.state,
                )
            if execution.state != ExecutionState.COMPLETED:
                raise InvalidTransition(
                    f"Cannot rate execution {execution.execution_id} "
                    f"while {execution.state.value}",
                    state=execution.state,
                )
            validate_rating(rating, feedback)

            execution.rating = rating
            execution.feedback = feedback or None
            # Detection runs at most once, even when it fails.
            execution.state = ExecutionState.RATED
            try:
                records = self.detector.detect(execution)
            except Exception:
                logger.exception(
                    "Record detection failed for execution %d; it stays rated "
                    "without personal records",
                    execution.execution_id,
                )
                raise
            execution.personal_records = tuple(records)

        logger.info(
            "Execution %d rated %d (%d personal records)",
            execution.execution_id,
            rating,
            len(records),
        )
        return records
