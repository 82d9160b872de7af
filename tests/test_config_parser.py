import logging
from datetime import timedelta

import pytest
from pydantic import ValidationError

from quizmaster_core import (
    ConfigError,
    DoubleQuestion,
    StandardQuestion,
    dump_quiz_config,
    load_quiz_config,
    parse_quiz_config,
)
from quizmaster_core.config_parser import format_path

MINIMAL = {
    "rounds": [
        {
            "name": "Warm-up",
            "questions": [{"question": "2 + 2?", "answer": "4", "maxTime": 30}],
        }
    ]
}


def _paths(error):
    return {issue.path for issue in error.issues}


def _issue(error, path):
    return next(issue for issue in error.issues if issue.path == path)


def test_minimal_document_mirrors_input():
    config = parse_quiz_config(MINIMAL)
    assert len(config.rounds) == 1
    round_ = config.rounds[0]
    assert round_.name == "Warm-up"
    assert len(round_.questions) == 1
    question = round_.questions[0]
    assert isinstance(question, StandardQuestion)
    assert question.question == "2 + 2?"
    assert question.answer == "4"
    assert question.max_time == timedelta(seconds=30)
    assert question.choices is None
    assert question.only_first_gains_points is False
    assert question.points_to_gain == 1
    assert question.first_answer_points == 1
    assert question.wrong_answer_points == 0


def test_full_document_parses_both_question_types(quiz_config):
    assert quiz_config.title == "Pub Quiz"
    assert quiz_config.question_count == 3
    geography, music = quiz_config.rounds
    assert geography.expected_time == timedelta(minutes=10)

    capital = geography.questions[0]
    assert capital.choices == ("Lyon", "Paris", "Nice")
    assert capital.first_answer_points == 3
    assert capital.only_first_gains_points is True

    double = music.questions[0]
    assert isinstance(double, DoubleQuestion)
    assert double.only_first_gains_points is True
    assert double.max_time == timedelta(seconds=15)


def test_missing_max_time_names_its_path():
    document = {"rounds": [{"name": "R", "questions": [{"question": "Q?", "answer": "A"}]}]}
    with pytest.raises(ConfigError) as exc:
        parse_quiz_config(document)
    assert _paths(exc.value) == {"rounds[0].questions[0].maxTime"}
    assert _issue(exc.value, "rounds[0].questions[0].maxTime").message == "required field is missing"


def test_all_errors_are_reported_in_one_pass():
    document = {
        "rounds": [
            {
                "name": "One",
                "questions": [
                    {"question": "Q1", "answer": "A", "maxTime": 10},
                    {"question": "Q2", "answer": "A", "maxTime": 10, "pointsToGain": "3"},
                ],
            },
            {"name": "Two", "questions": [{"question": "Q3", "answer": "A", "maxTime": "abc"}]},
            {"questions": []},
        ]
    }
    with pytest.raises(ConfigError) as exc:
        parse_quiz_config(document)

    error = exc.value
    assert _paths(error) == {
        "rounds[0].questions[1].pointsToGain",
        "rounds[1].questions[0].maxTime",
        "rounds[2].name",
    }
    duration_issue = _issue(error, "rounds[1].questions[0].maxTime")
    assert "expected duration" in duration_issue.message
    assert "str 'abc'" in duration_issue.message
    assert "str '3'" in _issue(error, "rounds[0].questions[1].pointsToGain").message
    assert error.format().splitlines()[0] == "3 error(s) in quiz config:"


@pytest.mark.parametrize("value", [True, -5, "5:60", "1:2:3", None, 10**20, 1e300])
def test_invalid_durations_are_rejected(value):
    document = {"rounds": [{"name": "R", "questions": [{"question": "Q", "answer": "A", "maxTime": value}]}]}
    with pytest.raises(ConfigError) as exc:
        parse_quiz_config(document)
    assert _paths(exc.value) == {"rounds[0].questions[0].maxTime"}


def test_mm_ss_and_fractional_durations():
    document = {
        "rounds": [
            {
                "name": "R",
                "questions": [
                    {"question": "Q1", "answer": "A", "maxTime": "01:30"},
                    {"question": "Q2", "answer": "A", "maxTime": 12.5},
                ],
            }
        ]
    }
    config = parse_quiz_config(document)
    assert config.rounds[0].questions[0].max_time == timedelta(seconds=90)
    assert config.rounds[0].questions[1].max_time == timedelta(seconds=12.5)


def test_unknown_keys_are_errors_in_strict_mode():
    document = {
        "theme": "dark",
        "rounds": [
            {"name": "R", "questions": [{"question": "Q", "answer": "A", "maxTime": 5, "hint": "x"}]}
        ],
    }
    with pytest.raises(ConfigError) as exc:
        parse_quiz_config(document)
    assert _paths(exc.value) == {"theme", "rounds[0].questions[0].hint"}
    assert all(issue.message == "unknown field" for issue in exc.value.issues)


def test_unknown_keys_are_warned_and_dropped_in_lenient_mode(caplog):
    caplog.set_level(logging.WARNING, logger="quizmaster_core.config_parser")
    document = {
        "theme": "dark",
        "rounds": [
            {"name": "R", "questions": [{"question": "Q", "answer": "A", "maxTime": 5, "hint": "x"}]}
        ],
    }
    config = parse_quiz_config(document, strict=False)
    assert config.rounds[0].questions[0].question == "Q"
    assert "theme" not in config.model_dump()
    assert "Ignoring unknown config key theme" in caplog.text
    assert "Ignoring unknown config key rounds[0].questions[0].hint" in caplog.text
    # The input document is left as it was
    assert document["theme"] == "dark"


def test_lenient_mode_still_reports_real_errors():
    document = {"extra": 1, "rounds": [{"name": "R", "questions": [{"question": "Q", "answer": "A"}]}]}
    with pytest.raises(ConfigError) as exc:
        parse_quiz_config(document, strict=False)
    assert _paths(exc.value) == {"rounds[0].questions[0].maxTime"}


def test_unknown_question_type_is_rejected():
    document = {
        "rounds": [{"name": "R", "questions": [{"type": "triple", "question": "Q", "answer": "A", "maxTime": 5}]}]
    }
    with pytest.raises(ConfigError) as exc:
        parse_quiz_config(document)
    (issue,) = exc.value.issues
    assert issue.path == "rounds[0].questions[0]"
    assert "type must be one of" in issue.message


def test_answer_must_be_one_of_the_choices():
    document = {
        "rounds": [
            {
                "name": "R",
                "questions": [
                    {"question": "Q", "answer": "Marseille", "choices": ["Lyon", "Paris"], "maxTime": 5}
                ],
            }
        ]
    }
    with pytest.raises(ConfigError) as exc:
        parse_quiz_config(document)
    (issue,) = exc.value.issues
    assert issue.path == "rounds[0].questions[0]"
    assert issue.message == "answer 'Marseille' is not one of choices"


def test_double_question_checks_textual_choices(quiz_document):
    quiz_document["rounds"][1]["questions"][0]["textualChoices"] = ["1982"]
    with pytest.raises(ConfigError) as exc:
        parse_quiz_config(quiz_document)
    (issue,) = exc.value.issues
    assert issue.path == "rounds[1].questions[0]"
    assert "textualChoices must have between 2 and 10 entries" in issue.message


def test_document_must_be_a_mapping_with_rounds():
    with pytest.raises(ConfigError) as exc:
        parse_quiz_config(["not", "a", "mapping"])
    assert _paths(exc.value) == {"<root>"}

    with pytest.raises(ConfigError) as exc:
        parse_quiz_config({"rounds": []})
    assert _paths(exc.value) == {"rounds"}
    assert exc.value.issues[0].message == "a quiz needs at least one round"


def test_broken_round_is_not_also_reported_as_missing_rounds():
    document = {"rounds": [{"name": "R", "questions": [{"question": "Q", "answer": "A", "maxTime": "abc"}]}]}
    with pytest.raises(ConfigError) as exc:
        parse_quiz_config(document)
    assert [issue.path for issue in exc.value.issues] == ["rounds[0].questions[0].maxTime"]


def test_dump_parses_back_to_equal_config(quiz_config):
    dumped = dump_quiz_config(quiz_config)
    assert dumped["rounds"][0]["questions"][0]["maxTime"] == 30
    assert dumped["rounds"][0]["expectedTime"] == 600
    assert parse_quiz_config(dumped) == quiz_config


def test_config_is_immutable(quiz_config):
    with pytest.raises(ValidationError):
        quiz_config.rounds[0].name = "Changed"


def test_format_path_drops_variant_tags():
    assert format_path(("rounds", 2, "questions", 0, "standard", "maxTime")) == "rounds[2].questions[0].maxTime"
    assert format_path(("rounds", 0, "questions", 1, "double")) == "rounds[0].questions[1]"
    assert format_path(()) == "<root>"


def test_load_quiz_config_reads_yaml(tmp_path):
    path = tmp_path / "quiz.yaml"
    path.write_text(
        """
title: Friday quiz
rounds:
  - name: Warm-up
    questions:
      - question: 2 + 2?
        answer: "4"
        maxTime: "00:45"
""",
        encoding="utf-8",
    )
    config = load_quiz_config(path)
    assert config.title == "Friday quiz"
    assert config.rounds[0].questions[0].max_time == timedelta(seconds=45)


def test_load_quiz_config_reports_missing_file_and_bad_yaml(tmp_path):
    with pytest.raises(ConfigError) as exc:
        load_quiz_config(tmp_path / "missing.yaml")
    assert "could not find" in exc.value.issues[0].message

    path = tmp_path / "broken.yaml"
    path.write_text("rounds: [1, 2\n", encoding="utf-8")
    with pytest.raises(ConfigError) as exc:
        load_quiz_config(path)
    (issue,) = exc.value.issues
    assert issue.path.startswith("line ")
    assert issue.message.startswith("invalid YAML")
    assert exc.value.source == str(path)


def test_load_quiz_config_reports_undecodable_file(tmp_path):
    path = tmp_path / "latin1.yaml"
    path.write_bytes(b"\xff\xfe title: x\n")
    with pytest.raises(ConfigError) as exc:
        load_quiz_config(path)
    (issue,) = exc.value.issues
    assert issue.path == "<root>"
    assert issue.message.startswith(f"could not read {path}")
