"""Exception hierarchy shared by the quiz core modules."""
from __future__ import annotations


class QuizCoreError(Exception):
    """Base class for every error raised by quizmaster_core."""


class StateInvariantError(QuizCoreError, ValueError):
    """A round/question pointer does not refer to anything in the config."""


class SnapshotError(QuizCoreError, ValueError):
    """A serialized quiz state could not be reconstructed."""


class TransitionRejected(QuizCoreError, ValueError):
    """A moderator command was refused; the state was left untouched."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
