"""Type definitions for serialized quiz state and moderator commands."""
from __future__ import annotations

from typing import List, Literal, Optional, TypedDict, Union


class PressedTheOneButtonDict(TypedDict):
    kind: Literal["pressed_the_one_button"]


class MultipleChoiceAnswerDict(TypedDict):
    kind: Literal["multiple_choice"]
    answerIndex: int


class FreeTextAnswerDict(TypedDict):
    kind: Literal["free_text"]
    answer: str


SubmissionValueDict = Union[PressedTheOneButtonDict, MultipleChoiceAnswerDict, FreeTextAnswerDict]


class SubmissionDict(TypedDict):
    teamId: int
    value: SubmissionValueDict


class TimerStateDict(TypedDict):
    # Epoch milliseconds of the last snapshot
    lastSnapshotInstantMs: int
    lastSnapshotElapsedMs: int
    timerRunning: bool


class GeneralQuizSettingsDict(TypedDict):
    showAnswers: bool
    answerBulletType: str  # 'arrows' | 'characters'


class QuizStateDict(TypedDict):
    """
    Plain structured form of the quiz state exchanged with the
    persistence/broadcast layer. Every reader holding the same QuizConfig
    rebuilds identical derived views from it plus its own clock reading.
    """
    id: int

    # Pointers
    roundIndex: int  # -1 (welcome) .. len(rounds) (end of quiz)
    questionIndex: int  # -1 (round name only) .. len(questions) - 1
    questionProgressIndex: int

    timerState: TimerStateDict
    submissions: List[SubmissionDict]

    # Display toggles
    imageIsEnlarged: bool
    generalQuizSettings: GeneralQuizSettingsDict

    # Opaque to the core; owned by the sync layer
    lastUpdateTimeMs: Optional[int]


class CommandPayload(TypedDict, total=False):
    """
    TypedDict for command payloads sent to apply_command().

    Fields vary by command type.
    """
    # Common
    type: str
    actionId: Optional[str]

    # GO_TO_QUESTION
    roundIndex: Optional[int]
    questionIndex: Optional[int]

    # ADD_SUBMISSION
    teamId: Optional[int]
    value: Optional[SubmissionValueDict]

    # SET_SHOW_ANSWERS
    showAnswers: Optional[bool]
    # SET_ANSWER_BULLET_TYPE
    answerBulletType: Optional[str]

