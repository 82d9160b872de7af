"""Submission eligibility, derived views and scoring.

Every function here is a pure function of (state, config, now). Nothing
reads a clock; callers pass the instant they want the answer for.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Sequence

from .config import Question, QuizConfig, Round
from .errors import StateInvariantError
from .state import QuizState, Submission

Translate = Callable[[str], str]

WELCOME_KEY = "app.welcome"
END_OF_QUIZ_KEY = "app.end-of-the-quiz"


def quiz_is_being_set_up(state: QuizState) -> bool:
    return state.round_index < 0


def quiz_has_ended(state: QuizState, config: QuizConfig) -> bool:
    return state.round_index >= len(config.rounds)


def check_state_pointers(state: QuizState, config: QuizConfig) -> None:
    """Raise StateInvariantError unless every pointer of ``state`` fits ``config``.

    Rules:
        - round_index in [-1, len(rounds)]
        - question_index is -1 outside a real round, else in [-1, len(questions))
        - question_progress_index in [0, progress_steps_count) when a question
          is selected
    """
    rounds_count = len(config.rounds)
    if not -1 <= state.round_index <= rounds_count:
        raise StateInvariantError(
            f"round_index {state.round_index} outside [-1, {rounds_count}]"
        )
    if state.question_index == -1:
        return
    question = current_question(state, config)
    steps = question.progress_steps_count(state.general_quiz_settings.show_answers)
    if not 0 <= state.question_progress_index < steps:
        raise StateInvariantError(
            f"question_progress_index {state.question_progress_index} outside [0, {steps})"
        )


def current_round(state: QuizState, config: QuizConfig, translate: Translate) -> Round:
    """The round to display.

    Before the quiz and after its end this is a pseudo round without
    questions, named through ``translate``.
    """
    if state.round_index < -1 or state.round_index > len(config.rounds):
        raise StateInvariantError(f"round_index {state.round_index} is out of range")
    if state.round_index == -1:
        return Round.model_construct(name=translate(WELCOME_KEY))
    if state.round_index < len(config.rounds):
        return config.rounds[state.round_index]
    return Round.model_construct(name=translate(END_OF_QUIZ_KEY))


def current_question(state: QuizState, config: QuizConfig) -> Question | None:
    if state.question_index == -1:
        return None
    if not 0 <= state.round_index < len(config.rounds):
        raise StateInvariantError(
            f"question_index {state.question_index} selected outside a round "
            f"(round_index {state.round_index})"
        )
    questions = config.rounds[state.round_index].questions
    if not 0 <= state.question_index < len(questions):
        raise StateInvariantError(
            f"question_index {state.question_index} outside round {state.round_index} "
            f"with {len(questions)} questions"
        )
    return questions[state.question_index]


def is_correct_submission(question: Question, submission: Submission) -> bool:
    return submission.value.is_scorable and question.is_correct_answer(submission.value)


def question_is_won(state: QuizState, question: Question) -> bool:
    """True once a correct answer closed a first-answer-only question."""
    if not question.only_first_gains_points:
        return False
    return any(is_correct_submission(question, s) for s in state.submissions)


def can_any_team_submit(state: QuizState, config: QuizConfig, now: datetime) -> bool:
    question = current_question(state, config)
    if question is None:
        return False

    step = state.question_progress_index
    if not question.submissions_are_open(step):
        return False

    if question.should_show_timer(step):
        timer = state.timer_state
        if not timer.timer_running or timer.has_finished(question.max_time, now):
            return False

    return not question_is_won(state, question)


def can_team_submit(team_id: int, state: QuizState, config: QuizConfig, now: datetime) -> bool:
    """Whether ``team_id`` may submit now.

    No rule singles out a team yet, so this is the same answer as
    can_any_team_submit(). Per-team gating belongs here.
    """
    return can_any_team_submit(state, config, now)


def points_for_submissions(question: Question, submissions: Sequence[Submission]) -> dict[int, int]:
    """Points gained by each team that submitted for ``question``.

    Only a team's last scorable submission counts. Teams whose last answer is
    correct are ranked by their earliest correct submission, so re-sending a
    correct answer keeps a team's place. The first of them gains
    ``first_answer_points``; later ones gain ``points_to_gain`` unless only the
    first gains points. Wrong answers gain ``wrong_answer_points``. Teams that
    only pressed the button gain 0.
    """
    points: dict[int, int] = {}
    final_by_team: dict[int, Submission] = {}
    first_correct_at: dict[int, int] = {}
    for i, submission in enumerate(submissions):
        points.setdefault(submission.team_id, 0)
        if not submission.value.is_scorable:
            continue
        final_by_team[submission.team_id] = submission
        if submission.team_id not in first_correct_at and is_correct_submission(question, submission):
            first_correct_at[submission.team_id] = i

    correct_teams = []
    for team_id, submission in final_by_team.items():
        if is_correct_submission(question, submission):
            correct_teams.append(team_id)
        else:
            points[team_id] = question.wrong_answer_points

    correct_teams.sort(key=first_correct_at.__getitem__)
    for rank, team_id in enumerate(correct_teams):
        if rank == 0:
            points[team_id] = question.first_answer_points
        elif not question.only_first_gains_points:
            points[team_id] = question.points_to_gain
    return points
