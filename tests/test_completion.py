"""Tests for the completion & rating pipeline."""

from __future__ import annotations

import threading

import pytest

from sequence_engine.completion import RatingPipeline, validate_rating
from sequence_engine.exceptions import AlreadyRated, InvalidTransition, ValidationError
from sequence_engine.models.enums import ExecutionState
from sequence_engine.records import PersonalRecordDetector
from sequence_engine.storage import InMemoryRecordStore


class CountingDetector(PersonalRecordDetector):
    def __init__(self) -> None:
        super().__init__(InMemoryRecordStore())
        self.calls = 0

    def detect(self, execution):
        self.calls += 1
        return super().detect(execution)


class FailingDetector(CountingDetector):
    def detect(self, execution):
        super().detect(execution)
        raise RuntimeError("record store unavailable")


@pytest.fixture
def detector() -> CountingDetector:
    return CountingDetector()


@pytest.fixture
def pipeline(detector: CountingDetector) -> RatingPipeline:
    return RatingPipeline(detector)


@pytest.fixture
def completed(machine, clock):
    for value in (35, None, 10):
        clock.tick(10)
        if value is None:
            machine.skip()
        else:
            machine.complete(value)
    return machine.execution


class TestValidateRating:
    @pytest.mark.parametrize("rating", [1, 2, 3, 4, 5])
    def test_accepts_one_to_five(self, rating: int) -> None:
        validate_rating(rating)

    @pytest.mark.parametrize("rating", [0, 6, -1, 4.5, "4", None, True])
    def test_rejects_everything_else(self, rating) -> None:
        with pytest.raises(ValidationError):
            validate_rating(rating)

    def test_rejects_non_text_feedback(self) -> None:
        with pytest.raises(ValidationError):
            validate_rating(3, feedback=42)


class TestSubmitRating:
    def test_rates_and_detects_once(self, pipeline, detector, completed) -> None:
        records = pipeline.submit_rating(completed, 5, "great")
        assert completed.rating == 5
        assert completed.feedback == "great"
        assert completed.state == ExecutionState.RATED
        assert detector.calls == 1
        assert {r.exercise_id for r in records} == {1, 2}
        assert completed.personal_records == tuple(records)

    def test_second_call_already_rated(self, pipeline, detector, completed) -> None:
        pipeline.submit_rating(completed, 5)
        with pytest.raises(AlreadyRated):
            pipeline.submit_rating(completed, 3, "changed my mind")
        with pytest.raises(AlreadyRated):
            pipeline.submit_rating(completed, 99)
        assert completed.rating == 5
        assert detector.calls == 1

    def test_invalid_rating_leaves_execution_unrated(self, pipeline, detector, completed) -> None:
        with pytest.raises(ValidationError):
            pipeline.submit_rating(completed, 6)
        assert completed.state == ExecutionState.COMPLETED
        assert completed.rating is None
        assert detector.calls == 0
        pipeline.submit_rating(completed, 4)
        assert completed.rating == 4

    def test_rating_before_completion_rejected(self, pipeline, detector, machine) -> None:
        with pytest.raises(InvalidTransition) as excinfo:
            pipeline.submit_rating(machine.execution, 4)
        assert not isinstance(excinfo.value, AlreadyRated)
        assert detector.calls == 0

    def test_empty_feedback_stored_as_none(self, pipeline, completed) -> None:
        pipeline.submit_rating(completed, 3, "")
        assert completed.feedback is None

    def test_concurrent_submissions_detect_once(self, pipeline, detector, completed) -> None:
        outcomes: list[str] = []

        def submit() -> None:
            try:
                pipeline.submit_rating(completed, 4)
                outcomes.append("ok")
            except AlreadyRated:
                outcomes.append("already")

        threads = [threading.Thread(target=submit) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert outcomes.count("ok") == 1
        assert outcomes.count("already") == 7
        assert detector.calls == 1

    def test_failed_detection_leaves_execution_rated(self, completed) -> None:
        detector = FailingDetector()
        pipeline = RatingPipeline(detector)
        with pytest.raises(RuntimeError):
            pipeline.submit_rating(completed, 4, "fine")
        assert completed.state == ExecutionState.RATED
        assert completed.rating == 4
        assert completed.personal_records == ()
        with pytest.raises(AlreadyRated):
            pipeline.submit_rating(completed, 4)
        assert detector.calls == 1
