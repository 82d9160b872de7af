from .config import DoubleQuestion, Question, QuizConfig, Round, StandardQuestion, parse_duration
from .config_parser import (
    ConfigError,
    ConfigIssue,
    dump_quiz_config,
    load_quiz_config,
    parse_quiz_config,
)
from .errors import QuizCoreError, SnapshotError, StateInvariantError, TransitionRejected
from .policy import (
    can_any_team_submit,
    can_team_submit,
    check_state_pointers,
    current_question,
    current_round,
    is_correct_submission,
    points_for_submissions,
    quiz_has_ended,
    quiz_is_being_set_up,
)
from .session import CommandOutcome, QuizSession, apply_command
from .state import (
    NULL_STATE,
    AnswerBulletType,
    FreeTextAnswer,
    GeneralQuizSettings,
    MultipleChoiceAnswer,
    PressedTheOneButton,
    QuizState,
    Submission,
    SubmissionValue,
)
from .timer import NULL_TIMER, TimerState
from .types import CommandPayload, QuizStateDict
from .validation import InputSanitizer, ValidatedCmd

__all__ = [
    "AnswerBulletType",
    "CommandOutcome",
    "CommandPayload",
    "ConfigError",
    "ConfigIssue",
    "DoubleQuestion",
    "FreeTextAnswer",
    "GeneralQuizSettings",
    "InputSanitizer",
    "MultipleChoiceAnswer",
    "NULL_STATE",
    "NULL_TIMER",
    "PressedTheOneButton",
    "Question",
    "QuizConfig",
    "QuizCoreError",
    "QuizSession",
    "QuizState",
    "QuizStateDict",
    "Round",
    "SnapshotError",
    "StandardQuestion",
    "StateInvariantError",
    "Submission",
    "SubmissionValue",
    "TimerState",
    "TransitionRejected",
    "ValidatedCmd",
    "apply_command",
    "can_any_team_submit",
    "can_team_submit",
    "check_state_pointers",
    "current_question",
    "current_round",
    "dump_quiz_config",
    "is_correct_submission",
    "load_quiz_config",
    "parse_duration",
    "parse_quiz_config",
    "points_for_submissions",
    "quiz_has_ended",
    "quiz_is_being_set_up",
]
