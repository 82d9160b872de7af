"""Quiz session state transitions (pure, no transport/persistence).

This module implements the moderator-driven state machine of a live quiz.
Transitions are deterministic and side-effect free: they take the current
QuizState, a command dict, the QuizConfig and the current instant, and return
a new QuizState. Nothing here reads a clock or takes a lock.

Architecture:
- QuizState is a frozen dataclass; every transition builds a whole new value
- Commands are plain dicts with a 'type' field (GO_TO_NEXT_STEP, ADD_SUBMISSION, ...)
- apply_command() returns a CommandOutcome with the new state
- A refused command raises TransitionRejected and leaves the state untouched
- QuizSession owns the authoritative state of one quiz and swaps it on each command;
  the caller serializes commands (one at a time)

Navigation (rounds R = len(config.rounds)):
- Position is (round_index, question_index, question_progress_index)
- (-1, -1, 0) is the welcome screen, (R, -1, 0) the end screen
- (r, -1, 0) shows the name of round r
- Walking past either end of the quiz is rejected, never clamped

Every position change restarts the timer at `now`, un-enlarges the image, and
clears the submissions when the question changes.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict

from .config import QuizConfig
from .errors import SnapshotError, TransitionRejected
from .policy import can_team_submit, check_state_pointers, current_question, is_correct_submission
from .state import (
    NULL_STATE,
    AnswerBulletType,
    QuizState,
    Submission,
    submission_value_from_dict,
)
from .timer import NULL_TIMER, TimerState
from .validation import InputSanitizer

logger = logging.getLogger(__name__)

Position = tuple[int, int, int]


@dataclass
class CommandOutcome:
    """Result of applying a moderator command."""

    state: QuizState
    cmd_payload: Dict[str, Any]
    snapshot_required: bool


# ==================== NAVIGATION ====================


def _steps_count(config: QuizConfig, state: QuizState, round_index: int, question_index: int) -> int:
    question = config.rounds[round_index].questions[question_index]
    return question.progress_steps_count(state.general_quiz_settings.show_answers)


def _last_position_of_round(config: QuizConfig, state: QuizState, round_index: int) -> Position:
    """Last step of the last question, or the round name when it has no questions."""
    questions = config.rounds[round_index].questions
    if not questions:
        return round_index, -1, 0
    last_q = len(questions) - 1
    return round_index, last_q, _steps_count(config, state, round_index, last_q) - 1


def _after_question(config: QuizConfig, round_index: int, question_index: int) -> Position:
    if question_index + 1 < len(config.rounds[round_index].questions):
        return round_index, question_index + 1, 0
    return round_index + 1, -1, 0


def _next_step(config: QuizConfig, state: QuizState) -> Position:
    r, q, p = state.round_index, state.question_index, state.question_progress_index
    if r == -1:
        return 0, -1, 0
    if q == -1:
        return _after_question(config, r, -1)
    if p + 1 < _steps_count(config, state, r, q):
        return r, q, p + 1
    return _after_question(config, r, q)


def _previous_step(config: QuizConfig, state: QuizState) -> Position:
    r, q, p = state.round_index, state.question_index, state.question_progress_index
    if q == -1:
        if r == 0:
            return -1, -1, 0
        return _last_position_of_round(config, state, r - 1)
    if p > 0:
        return r, q, p - 1
    if q > 0:
        return r, q - 1, _steps_count(config, state, r, q - 1) - 1
    return r, -1, 0


def _next_question(config: QuizConfig, state: QuizState) -> Position:
    if state.round_index == -1:
        return 0, -1, 0
    return _after_question(config, state.round_index, state.question_index)


def _previous_question(config: QuizConfig, state: QuizState) -> Position:
    r, q, p = state.round_index, state.question_index, state.question_progress_index
    if q == -1:
        if r == 0:
            return -1, -1, 0
        prev_r, prev_q, _ = _last_position_of_round(config, state, r - 1)
        return prev_r, prev_q, 0
    # From inside a question, first rewind to its start
    if p > 0:
        return r, q, 0
    return r, q - 1, 0


def _previous_round(state: QuizState) -> Position:
    if state.question_index != -1:
        return state.round_index, -1, 0
    return state.round_index - 1, -1, 0


def _checked_jump(config: QuizConfig, round_index: Any, question_index: Any) -> Position:
    rounds_count = len(config.rounds)
    for name, value in (("roundIndex", round_index), ("questionIndex", question_index)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TransitionRejected("invalid_command", f"GO_TO_QUESTION requires int {name}")
    if not -1 <= round_index <= rounds_count:
        raise TransitionRejected(
            "out_of_range", f"roundIndex {round_index} outside [-1, {rounds_count}]"
        )
    if 0 <= round_index < rounds_count:
        questions_count = len(config.rounds[round_index].questions)
        if not -1 <= question_index < questions_count:
            raise TransitionRejected(
                "out_of_range",
                f"questionIndex {question_index} outside [-1, {questions_count}) "
                f"for round {round_index}",
            )
    elif question_index != -1:
        raise TransitionRejected(
            "out_of_range", f"round {round_index} has no questions; questionIndex must be -1"
        )
    return round_index, question_index, 0


def _move_to(state: QuizState, position: Position, now: datetime) -> QuizState:
    round_index, question_index, progress_index = position
    same_question = (round_index, question_index) == (state.round_index, state.question_index)
    return replace(
        state,
        round_index=round_index,
        question_index=question_index,
        question_progress_index=progress_index,
        timer_state=TimerState.create_started(now),
        submissions=state.submissions if same_question else (),
        image_is_enlarged=False,
    )


# ==================== TRANSITIONS ====================


def _apply_transition(
    state: QuizState, cmd: Mapping[str, Any], config: QuizConfig, now: datetime
) -> CommandOutcome:
    """Compute the state that follows ``cmd``.

    Args:
        state: Current quiz state (never mutated)
        cmd: Command dict with 'type' field and command-specific params
        config: Parsed quiz config the state points into
        now: Current instant; used for timer snapshots and eligibility

    Returns:
        CommandOutcome with:
        - state: New state value
        - cmd_payload: Command enriched with resolved fields (position, correctness)
        - snapshot_required: True if the state actually changed

    Raises:
        TransitionRejected: kind 'out_of_range' when walking past the quiz bounds
            or jumping to a missing question, 'submissions_closed' when nobody may
            submit, 'invalid_command' for an unknown type or malformed fields.
    """
    ctype = cmd.get("type")
    payload = dict(cmd)
    rounds_count = len(config.rounds)
    at_start = state.round_index == -1
    at_end = state.round_index == rounds_count

    if ctype in {"GO_TO_NEXT_STEP", "GO_TO_NEXT_QUESTION", "GO_TO_NEXT_ROUND"} and at_end:
        raise TransitionRejected("out_of_range", f"{ctype}: the quiz has already ended")
    if ctype in {"GO_TO_PREVIOUS_STEP", "GO_TO_PREVIOUS_QUESTION", "GO_TO_PREVIOUS_ROUND"} and at_start:
        raise TransitionRejected("out_of_range", f"{ctype}: the quiz has not started yet")

    if ctype == "GO_TO_NEXT_STEP":
        new_state = _move_to(state, _next_step(config, state), now)

    elif ctype == "GO_TO_PREVIOUS_STEP":
        new_state = _move_to(state, _previous_step(config, state), now)

    elif ctype == "GO_TO_NEXT_QUESTION":
        new_state = _move_to(state, _next_question(config, state), now)

    elif ctype == "GO_TO_PREVIOUS_QUESTION":
        new_state = _move_to(state, _previous_question(config, state), now)

    elif ctype == "GO_TO_NEXT_ROUND":
        new_state = _move_to(state, (state.round_index + 1, -1, 0), now)

    elif ctype == "GO_TO_PREVIOUS_ROUND":
        new_state = _move_to(state, _previous_round(state), now)

    elif ctype == "GO_TO_QUESTION":
        position = _checked_jump(config, cmd.get("roundIndex"), cmd.get("questionIndex"))
        new_state = _move_to(state, position, now)

    elif ctype == "START_TIMER":
        new_state = replace(state, timer_state=TimerState.create_started(now))

    elif ctype == "PAUSE_TIMER":
        new_state = replace(state, timer_state=state.timer_state.pause(now))

    elif ctype == "RESUME_TIMER":
        new_state = replace(state, timer_state=state.timer_state.resume(now))

    elif ctype == "TOGGLE_TIMER_PAUSED":
        new_state = replace(state, timer_state=state.timer_state.toggle_paused(now))

    elif ctype == "RESET_TIMER":
        new_state = replace(state, timer_state=NULL_TIMER)

    elif ctype == "ADD_SUBMISSION":
        team_id = cmd.get("teamId")
        raw_value = cmd.get("value")
        if isinstance(team_id, bool) or not isinstance(team_id, int):
            raise TransitionRejected("invalid_command", "ADD_SUBMISSION requires int teamId")
        if not isinstance(raw_value, Mapping):
            raise TransitionRejected("invalid_command", "ADD_SUBMISSION requires a value object")
        try:
            value = submission_value_from_dict(raw_value)
        except SnapshotError as e:
            raise TransitionRejected("invalid_command", f"ADD_SUBMISSION {e}") from e
        if not can_team_submit(team_id, state, config, now):
            raise TransitionRejected(
                "submissions_closed", f"team {team_id} cannot submit for the current question"
            )

        submission = Submission(team_id=team_id, value=value)
        question = current_question(state, config)
        payload["roundIndex"] = state.round_index
        payload["questionIndex"] = state.question_index
        payload["isCorrectAnswer"] = is_correct_submission(question, submission)
        new_state = replace(state, submissions=state.submissions + (submission,))

    elif ctype == "TOGGLE_IMAGE_ENLARGED":
        new_state = replace(state, image_is_enlarged=not state.image_is_enlarged)

    elif ctype == "SET_SHOW_ANSWERS":
        show_answers = cmd.get("showAnswers")
        if not isinstance(show_answers, bool):
            raise TransitionRejected("invalid_command", "SET_SHOW_ANSWERS requires bool showAnswers")
        settings = replace(state.general_quiz_settings, show_answers=show_answers)
        new_state = replace(state, general_quiz_settings=settings)
        # Hiding answers removes the last step; step back onto the new last step.
        if state.question_index != -1:
            steps = _steps_count(config, new_state, state.round_index, state.question_index)
            if state.question_progress_index >= steps:
                position = (state.round_index, state.question_index, steps - 1)
                new_state = _move_to(new_state, position, now)

    elif ctype == "SET_ANSWER_BULLET_TYPE":
        try:
            bullet_type = AnswerBulletType(cmd.get("answerBulletType"))
        except ValueError:
            raise TransitionRejected(
                "invalid_command",
                f"unknown answerBulletType {cmd.get('answerBulletType')!r}",
            ) from None
        settings = replace(state.general_quiz_settings, answer_bullet_type=bullet_type)
        new_state = replace(state, general_quiz_settings=settings)

    elif ctype == "RESET_QUIZ":
        new_state = replace(NULL_STATE, last_update_time=state.last_update_time)

    else:
        raise TransitionRejected("invalid_command", f"unknown command type {ctype!r}")

    if ctype.startswith("GO_TO_"):
        payload["roundIndex"] = new_state.round_index
        payload["questionIndex"] = new_state.question_index
        payload["questionProgressIndex"] = new_state.question_progress_index

    return CommandOutcome(
        state=new_state, cmd_payload=payload, snapshot_required=new_state != state
    )


def apply_command(
    state: QuizState, cmd: Mapping[str, Any], config: QuizConfig, now: datetime
) -> CommandOutcome:
    """Apply a moderator command to a quiz state.

    The input state is never changed; consume CommandOutcome.state.
    """
    outcome = _apply_transition(state, cmd, config, now)
    logger.debug(
        f"{cmd.get('type')}: round={outcome.state.round_index} "
        f"question={outcome.state.question_index} "
        f"step={outcome.state.question_progress_index} "
        f"submissions={len(outcome.state.submissions)}"
    )
    return outcome


# ==================== SESSION ====================


class QuizSession:
    """Owner of the authoritative state of one quiz.

    Each accepted command replaces the state wholesale; ``snapshot`` hands out
    the current immutable value. Commands must be applied one at a time by the
    caller; this class does no locking.
    """

    def __init__(self, config: QuizConfig, state: QuizState = NULL_STATE) -> None:
        check_state_pointers(state, config)
        self._config = config
        self._state = state

    @property
    def config(self) -> QuizConfig:
        return self._config

    @property
    def snapshot(self) -> QuizState:
        return self._state

    def apply(self, cmd: Mapping[str, Any], now: datetime) -> CommandOutcome:
        outcome = apply_command(self._state, cmd, self._config, now)
        self._state = outcome.state
        return outcome

    def handle(self, raw_cmd: dict, now: datetime) -> CommandOutcome:
        """Validate an untrusted command payload, then apply it."""
        try:
            validated = InputSanitizer.validate_and_sanitize_cmd(raw_cmd)
        except ValueError as e:
            raise TransitionRejected("invalid_command", str(e)) from e
        return self.apply(validated.to_payload(), now)

    def restore(self, snapshot: Mapping[str, Any]) -> QuizState:
        """Replace the state with one read back from persistence.

        Raises:
            SnapshotError: malformed snapshot.
            StateInvariantError: snapshot does not fit this session's config.
        """
        state = QuizState.from_dict(snapshot)
        check_state_pointers(state, self._config)
        self._state = state
        logger.info(
            f"Restored quiz state: round={state.round_index} question={state.question_index}"
        )
        return state
