"""Exception hierarchy for the sequence engine.

Every error is scoped to the single execution operation that raised it and
is reported to the caller synchronously. None of them are retried.
"""

from __future__ import annotations


class SequenceEngineError(Exception):
    """Base exception for all sequence_engine errors."""


class InvalidTransition(SequenceEngineError):
    """An operation was invoked in a state that forbids it."""

    def __init__(self, message: str, state: object | None = None) -> None:
        super().__init__(message)
        self.state = state


class AlreadyRated(InvalidTransition):
    """The execution has already been rated. Rating is one-time."""


class OutOfRange(SequenceEngineError, IndexError):
    """A step index outside the range the operation accepts."""

    def __init__(self, message: str, index: int | None = None, limit: int | None = None) -> None:
        super().__init__(message)
        self.index = index
        self.limit = limit


class ValidationError(SequenceEngineError, ValueError):
    """Malformed input (rating outside 1-5, negative pause duration, ...)."""


class ExecutionNotFound(SequenceEngineError, KeyError):
    """No execution is stored under the requested id."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Execution not found"


class SequenceNotFound(SequenceEngineError, KeyError):
    """The referenced sequence does not exist in the catalog."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Sequence not found"
