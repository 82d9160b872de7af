from datetime import datetime, timezone

import pytest

from quizmaster_core import (
    NULL_STATE,
    AnswerBulletType,
    FreeTextAnswer,
    GeneralQuizSettings,
    MultipleChoiceAnswer,
    PressedTheOneButton,
    QuizState,
    SnapshotError,
    Submission,
    TimerState,
)

from conftest import T0, seconds


def _busy_state():
    return QuizState(
        round_index=0,
        question_index=1,
        question_progress_index=1,
        timer_state=TimerState.create_started(T0).pause(T0 + seconds(12)),
        submissions=(
            Submission(team_id=1, value=PressedTheOneButton()),
            Submission(team_id=2, value=MultipleChoiceAnswer(answer_index=3)),
            Submission(team_id=3, value=FreeTextAnswer(answer="Volga")),
        ),
        image_is_enlarged=True,
        general_quiz_settings=GeneralQuizSettings(
            show_answers=False, answer_bullet_type=AnswerBulletType.CHARACTERS
        ),
        last_update_time=datetime(2024, 5, 1, 20, 5, tzinfo=timezone.utc),
    )


def test_default_state_is_before_the_quiz():
    assert NULL_STATE.round_index == -1
    assert NULL_STATE.question_index == -1
    assert NULL_STATE.question_progress_index == 0
    assert NULL_STATE.timer_state.timer_running is False
    assert NULL_STATE.submissions == ()
    assert NULL_STATE.general_quiz_settings.show_answers is True
    assert NULL_STATE.general_quiz_settings.answer_bullet_type is AnswerBulletType.ARROWS
    assert NULL_STATE.id == 1


def test_scorability_of_submission_values():
    assert PressedTheOneButton().is_scorable is False
    assert MultipleChoiceAnswer(answer_index=0).is_scorable is True
    assert FreeTextAnswer(answer="x").is_scorable is True


def test_to_dict_uses_plain_values_and_string_tags():
    data = _busy_state().to_dict()
    assert data["id"] == 1
    assert data["roundIndex"] == 0
    assert data["timerState"] == {
        "lastSnapshotInstantMs": 1714593612000,
        "lastSnapshotElapsedMs": 12000,
        "timerRunning": False,
    }
    assert data["submissions"] == [
        {"teamId": 1, "value": {"kind": "pressed_the_one_button"}},
        {"teamId": 2, "value": {"kind": "multiple_choice", "answerIndex": 3}},
        {"teamId": 3, "value": {"kind": "free_text", "answer": "Volga"}},
    ]
    assert data["generalQuizSettings"] == {"showAnswers": False, "answerBulletType": "characters"}
    assert data["lastUpdateTimeMs"] == 1714593900000


def test_snapshot_rebuilds_identical_state():
    state = _busy_state()
    assert QuizState.from_dict(state.to_dict()) == state
    assert QuizState.from_dict(NULL_STATE.to_dict()) == NULL_STATE


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("roundIndex"),
        lambda d: d.update(questionIndex=True),
        lambda d: d.update(id=2),
        lambda d: d.update(submissions={}),
        lambda d: d["submissions"].append({"teamId": 9, "value": {"kind": "smoke_signal"}}),
        lambda d: d["generalQuizSettings"].update(answerBulletType="stars"),
        lambda d: d["timerState"].update(lastSnapshotElapsedMs=-1),
        lambda d: d.update(lastUpdateTimeMs="yesterday"),
        lambda d: d.update(lastUpdateTimeMs=10**20),
        lambda d: d["timerState"].update(lastSnapshotInstantMs=10**20),
        lambda d: d["timerState"].update(lastSnapshotElapsedMs=10**20),
    ],
)
def test_malformed_snapshots_are_rejected(mutate):
    data = _busy_state().to_dict()
    mutate(data)
    with pytest.raises(SnapshotError):
        QuizState.from_dict(data)


def test_snapshot_must_be_a_mapping():
    with pytest.raises(SnapshotError):
        QuizState.from_dict([1, 2, 3])
