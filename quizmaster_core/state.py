"""Quiz session state aggregate and its plain-dict snapshot form.

The state is a frozen value. Transitions (see ``session``) build a new
instance, so a reader holding a snapshot never observes a half-applied
update.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, ClassVar, assert_never

from .errors import SnapshotError
from .timer import EPOCH, NULL_TIMER, TimerState
from .types import QuizStateDict, SubmissionValueDict, TimerStateDict


ONLY_POSSIBLE_ID = 1

_MS = timedelta(milliseconds=1)


# ==================== SUBMISSION VALUES ====================


@dataclass(frozen=True)
class PressedTheOneButton:
    """Bare "we are answering" signal; marks participation only."""

    is_scorable: ClassVar[bool] = False


@dataclass(frozen=True)
class MultipleChoiceAnswer:
    answer_index: int

    is_scorable: ClassVar[bool] = True


@dataclass(frozen=True)
class FreeTextAnswer:
    answer: str

    is_scorable: ClassVar[bool] = True


SubmissionValue = PressedTheOneButton | MultipleChoiceAnswer | FreeTextAnswer


@dataclass(frozen=True)
class Submission:
    team_id: int
    value: SubmissionValue


# ==================== SETTINGS ====================


class AnswerBulletType(str, Enum):
    ARROWS = "arrows"
    CHARACTERS = "characters"


@dataclass(frozen=True)
class GeneralQuizSettings:
    show_answers: bool = True
    answer_bullet_type: AnswerBulletType = AnswerBulletType.ARROWS


# ==================== STATE ====================


@dataclass(frozen=True)
class QuizState:
    """Snapshot of a running quiz.

    Attributes:
        round_index: -1 before the quiz starts, ``len(rounds)`` once it has ended.
        question_index: -1 while only the round name is shown.
        question_progress_index: Reveal stage of the current question, in
            ``[0, question.progress_steps_count())``. Ignored when no question
            is selected.
        submissions: Submissions for the current question only, in arrival order.
        last_update_time: Owned by the persistence layer; passed through untouched.
    """

    round_index: int = -1
    question_index: int = -1
    question_progress_index: int = 0
    timer_state: TimerState = NULL_TIMER
    submissions: tuple[Submission, ...] = ()
    image_is_enlarged: bool = False
    general_quiz_settings: GeneralQuizSettings = field(default_factory=GeneralQuizSettings)
    last_update_time: datetime | None = None

    @property
    def id(self) -> int:
        return ONLY_POSSIBLE_ID

    def with_last_update_time(self, time: datetime | None) -> QuizState:
        return replace(self, last_update_time=time)

    def to_dict(self) -> QuizStateDict:
        return {
            "id": ONLY_POSSIBLE_ID,
            "roundIndex": self.round_index,
            "questionIndex": self.question_index,
            "questionProgressIndex": self.question_progress_index,
            "timerState": _timer_to_dict(self.timer_state),
            "submissions": [
                {"teamId": s.team_id, "value": submission_value_to_dict(s.value)}
                for s in self.submissions
            ],
            "imageIsEnlarged": self.image_is_enlarged,
            "generalQuizSettings": {
                "showAnswers": self.general_quiz_settings.show_answers,
                "answerBulletType": self.general_quiz_settings.answer_bullet_type.value,
            },
            "lastUpdateTimeMs": (
                None if self.last_update_time is None else _instant_to_ms(self.last_update_time)
            ),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> QuizState:
        """Rebuild a state from its snapshot form.

        Raises:
            SnapshotError: if a field is missing or has the wrong shape.
        """
        if not isinstance(data, Mapping):
            raise SnapshotError("quiz state snapshot must be a mapping")
        snapshot_id = data.get("id", ONLY_POSSIBLE_ID)
        if snapshot_id != ONLY_POSSIBLE_ID:
            raise SnapshotError(f"quiz state id must be {ONLY_POSSIBLE_ID}, got {snapshot_id!r}")

        settings_data = _require(data, "generalQuizSettings", Mapping)
        bullet_tag = _require(settings_data, "answerBulletType", str)
        try:
            bullet_type = AnswerBulletType(bullet_tag)
        except ValueError:
            raise SnapshotError(f"unknown answerBulletType {bullet_tag!r}") from None

        raw_submissions = _require(data, "submissions", list)
        submissions = []
        for i, raw in enumerate(raw_submissions):
            if not isinstance(raw, Mapping):
                raise SnapshotError(f"submissions[{i}] must be a mapping")
            submissions.append(
                Submission(
                    team_id=_require(raw, "teamId", int),
                    value=submission_value_from_dict(_require(raw, "value", Mapping)),
                )
            )

        last_update_ms = data.get("lastUpdateTimeMs")
        if last_update_ms is not None and (
            isinstance(last_update_ms, bool) or not isinstance(last_update_ms, int)
        ):
            raise SnapshotError("lastUpdateTimeMs must be an int or null")

        return cls(
            round_index=_require(data, "roundIndex", int),
            question_index=_require(data, "questionIndex", int),
            question_progress_index=_require(data, "questionProgressIndex", int),
            timer_state=_timer_from_dict(_require(data, "timerState", Mapping)),
            submissions=tuple(submissions),
            image_is_enlarged=_require(data, "imageIsEnlarged", bool),
            general_quiz_settings=GeneralQuizSettings(
                show_answers=_require(settings_data, "showAnswers", bool),
                answer_bullet_type=bullet_type,
            ),
            last_update_time=None if last_update_ms is None else _instant_from_ms(last_update_ms),
        )


NULL_STATE = QuizState()


# ==================== SERIALIZATION HELPERS ====================


def submission_value_to_dict(value: SubmissionValue) -> SubmissionValueDict:
    match value:
        case PressedTheOneButton():
            return {"kind": "pressed_the_one_button"}
        case MultipleChoiceAnswer(answer_index=answer_index):
            return {"kind": "multiple_choice", "answerIndex": answer_index}
        case FreeTextAnswer(answer=answer):
            return {"kind": "free_text", "answer": answer}
        case _:
            assert_never(value)


def submission_value_from_dict(data: Mapping[str, Any]) -> SubmissionValue:
    kind = data.get("kind")
    if kind == "pressed_the_one_button":
        return PressedTheOneButton()
    if kind == "multiple_choice":
        return MultipleChoiceAnswer(answer_index=_require(data, "answerIndex", int))
    if kind == "free_text":
        return FreeTextAnswer(answer=_require(data, "answer", str))
    raise SnapshotError(f"unknown submission value kind {kind!r}")


def _instant_to_ms(instant: datetime) -> int:
    return (instant - EPOCH) // _MS


def _instant_from_ms(ms: int) -> datetime:
    try:
        return EPOCH + ms * _MS
    except OverflowError:
        raise SnapshotError(f"instant {ms} ms is out of range") from None


def _timer_to_dict(timer: TimerState) -> TimerStateDict:
    return {
        "lastSnapshotInstantMs": _instant_to_ms(timer.last_snapshot_instant),
        "lastSnapshotElapsedMs": timer.last_snapshot_elapsed_time // _MS,
        "timerRunning": timer.timer_running,
    }


def _timer_from_dict(data: Mapping[str, Any]) -> TimerState:
    elapsed_ms = _require(data, "lastSnapshotElapsedMs", int)
    if elapsed_ms < 0:
        raise SnapshotError("timerState.lastSnapshotElapsedMs must not be negative")
    try:
        elapsed = elapsed_ms * _MS
    except OverflowError:
        raise SnapshotError(f"timerState.lastSnapshotElapsedMs {elapsed_ms} is out of range") from None
    return TimerState(
        last_snapshot_instant=_instant_from_ms(_require(data, "lastSnapshotInstantMs", int)),
        last_snapshot_elapsed_time=elapsed,
        timer_running=_require(data, "timerRunning", bool),
    )


def _require(data: Mapping[str, Any], key: str, expected: type) -> Any:
    if key not in data:
        raise SnapshotError(f"snapshot is missing {key!r}")
    value = data[key]
    # bool is an int subclass; never accept it where a number is expected
    if expected is int and isinstance(value, bool):
        raise SnapshotError(f"{key!r} must be int, got bool")
    if not isinstance(value, expected):
        raise SnapshotError(
            f"{key!r} must be {expected.__name__}, got {type(value).__name__}"
        )
    return value
