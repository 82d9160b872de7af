"""
Quiz configuration schema using Pydantic v2.

A config document describes rounds, their questions and the scoring rules
of each question. Models are frozen: once parsed, a QuizConfig is shared
read-only by every reader of the session.

Durations (``maxTime``, ``expectedTime``) are written either as a
non-negative number of seconds (``30``, ``12.5``) or as ``"MM:SS"``
(``"01:30"``). They are always dumped back as seconds.
"""
from __future__ import annotations

import math
import re
from datetime import timedelta
from typing import Annotated, Any, Literal, Union, assert_never

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Discriminator,
    PlainSerializer,
    StrictBool,
    StrictInt,
    StrictStr,
    StringConstraints,
    Tag,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .state import FreeTextAnswer, MultipleChoiceAnswer, PressedTheOneButton, SubmissionValue

QUESTION_TYPES = ("standard", "double")

MIN_CHOICES = 2
MAX_CHOICES = 10

_MM_SS = re.compile(r"(\d{1,2}):([0-5]\d)")


# ==================== DURATIONS ====================


def describe_value(value: Any) -> str:
    return f"{type(value).__name__} {value!r}"


def parse_duration(value: Any) -> timedelta:
    """Parse a duration written as seconds or "MM:SS".

    Examples:
        - 30 → 0:00:30
        - 12.5 → 0:00:12.500000
        - "05:00" → 0:05:00
        - "abc" → error
    """
    if isinstance(value, timedelta):
        if value >= timedelta(0):
            return value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        if math.isfinite(value) and value >= 0:
            try:
                return timedelta(seconds=value)
            except OverflowError:
                pass
    elif isinstance(value, str):
        match = _MM_SS.fullmatch(value.strip())
        if match:
            return timedelta(minutes=int(match[1]), seconds=int(match[2]))
    raise PydanticCustomError(
        "duration_parsing",
        "expected duration (non-negative seconds or 'MM:SS'), got {got}",
        {"got": describe_value(value)},
    )


def duration_to_seconds(duration: timedelta) -> int | float:
    seconds = duration.total_seconds()
    return int(seconds) if seconds.is_integer() else seconds


Duration = Annotated[
    timedelta,
    BeforeValidator(parse_duration),
    PlainSerializer(duration_to_seconds, return_type=Union[int, float]),
]
NonEmptyStr = Annotated[StrictStr, StringConstraints(strip_whitespace=True, min_length=1)]


def normalize_free_text(text: str) -> str:
    return " ".join(text.split()).casefold()


def _check_choices(choices: tuple[str, ...], answer: str, field_name: str) -> None:
    if not MIN_CHOICES <= len(choices) <= MAX_CHOICES:
        raise PydanticCustomError(
            "choices_count",
            "{field} must have between {low} and {high} entries, got {count}",
            {"field": field_name, "low": MIN_CHOICES, "high": MAX_CHOICES, "count": len(choices)},
        )
    if len(set(choices)) != len(choices):
        raise PydanticCustomError("choices_unique", "{field} must not repeat entries", {"field": field_name})
    if answer not in choices:
        raise PydanticCustomError(
            "answer_not_in_choices",
            "answer '{answer}' is not one of {field}",
            {"answer": answer, "field": field_name},
        )


# ==================== MODELS ====================


class _ConfigModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", alias_generator=to_camel)


class StandardQuestion(_ConfigModel):
    """A single prompt, answered by multiple choice when ``choices`` is set.

    Progress steps: 0 shows only the question title, 1 shows the question
    (and its choices) with submissions open and the timer running, 2 reveals
    the answer when answers are shown.
    """

    type: Literal["standard"] = "standard"
    question: NonEmptyStr
    answer: NonEmptyStr
    choices: tuple[NonEmptyStr, ...] | None = None
    accepted_answers: tuple[NonEmptyStr, ...] = ()
    answer_detail: StrictStr | None = None
    image: StrictStr | None = None
    master_notes: StrictStr | None = None
    points_to_gain: StrictInt = 1
    points_to_gain_on_first_answer: StrictInt | None = None
    points_to_gain_on_wrong_answer: StrictInt = 0
    max_time: Duration
    only_first_gains_points: StrictBool = False

    @model_validator(mode="after")
    def validate_choices(self) -> StandardQuestion:
        if self.choices is not None:
            _check_choices(self.choices, self.answer, "choices")
        return self

    @property
    def is_multiple_choice(self) -> bool:
        return self.choices is not None

    @property
    def first_answer_points(self) -> int:
        if self.points_to_gain_on_first_answer is None:
            return self.points_to_gain
        return self.points_to_gain_on_first_answer

    @property
    def wrong_answer_points(self) -> int:
        return self.points_to_gain_on_wrong_answer

    def progress_steps_count(self, include_answers: bool = True) -> int:
        return 3 if include_answers else 2

    def submissions_are_open(self, question_progress_index: int) -> bool:
        return question_progress_index == 1

    def should_show_timer(self, question_progress_index: int) -> bool:
        return question_progress_index == 1

    def is_correct_answer(self, value: SubmissionValue) -> bool:
        match value:
            case PressedTheOneButton():
                return False
            case MultipleChoiceAnswer(answer_index=index):
                if self.choices is None or not 0 <= index < len(self.choices):
                    return False
                return self.choices[index] == self.answer
            case FreeTextAnswer(answer=text):
                accepted = {normalize_free_text(a) for a in (self.answer, *self.accepted_answers)}
                return normalize_free_text(text) in accepted
            case _:
                assert_never(value)


class DoubleQuestion(_ConfigModel):
    """A spoken question followed by a textual multiple-choice question.

    Only the first correct team gains points.
    """

    type: Literal["double"]
    verbal_question: NonEmptyStr
    verbal_answer: NonEmptyStr
    textual_question: NonEmptyStr
    textual_answer: NonEmptyStr
    textual_choices: tuple[NonEmptyStr, ...]
    points_to_gain: StrictInt = 1
    max_time: Duration

    @model_validator(mode="after")
    def validate_choices(self) -> DoubleQuestion:
        _check_choices(self.textual_choices, self.textual_answer, "textualChoices")
        return self

    @property
    def only_first_gains_points(self) -> bool:
        return True

    @property
    def first_answer_points(self) -> int:
        return self.points_to_gain

    @property
    def wrong_answer_points(self) -> int:
        return 0

    def progress_steps_count(self, include_answers: bool = True) -> int:
        return 3 if include_answers else 2

    def submissions_are_open(self, question_progress_index: int) -> bool:
        return question_progress_index == 1

    def should_show_timer(self, question_progress_index: int) -> bool:
        return question_progress_index == 1

    def is_correct_answer(self, value: SubmissionValue) -> bool:
        match value:
            case PressedTheOneButton() | FreeTextAnswer():
                return False
            case MultipleChoiceAnswer(answer_index=index):
                if not 0 <= index < len(self.textual_choices):
                    return False
                return self.textual_choices[index] == self.textual_answer
            case _:
                assert_never(value)


def _question_kind(value: Any) -> str:
    if isinstance(value, dict):
        return value.get("type", "standard")
    return getattr(value, "type", "standard")


Question = Annotated[
    Union[
        Annotated[StandardQuestion, Tag("standard")],
        Annotated[DoubleQuestion, Tag("double")],
    ],
    Discriminator(
        _question_kind,
        custom_error_type="question_type",
        custom_error_message="type must be one of 'standard', 'double'",
    ),
]


class Round(_ConfigModel):
    name: NonEmptyStr
    questions: tuple[Question, ...] = ()
    expected_time: Duration | None = None


class QuizConfig(_ConfigModel):
    title: StrictStr | None = None
    author: StrictStr | None = None
    rounds: tuple[Round, ...]

    @field_validator("rounds")
    @classmethod
    def validate_rounds(cls, v: tuple[Round, ...]) -> tuple[Round, ...]:
        # Only reached when every round validated
        if not v:
            raise PydanticCustomError("rounds_empty", "a quiz needs at least one round")
        return v

    @property
    def question_count(self) -> int:
        return sum(len(r.questions) for r in self.rounds)
