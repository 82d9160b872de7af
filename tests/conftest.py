from copy import deepcopy
from datetime import datetime, timedelta, timezone

import pytest

from quizmaster_core import parse_quiz_config

T0 = datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc)

QUIZ_DOCUMENT = {
    "title": "Pub Quiz",
    "author": "Quiz Team",
    "rounds": [
        {
            "name": "Geography",
            "expectedTime": "10:00",
            "questions": [
                {
                    "question": "What is the capital of France?",
                    "choices": ["Lyon", "Paris", "Nice"],
                    "answer": "Paris",
                    "maxTime": 30,
                    "onlyFirstGainsPoints": True,
                    "pointsToGain": 2,
                    "pointsToGainOnFirstAnswer": 3,
                },
                {
                    "question": "Which is the longest river in Europe?",
                    "answer": "Volga",
                    "acceptedAnswers": ["the Volga"],
                    "maxTime": 20,
                    "pointsToGainOnWrongAnswer": -1,
                },
            ],
        },
        {
            "name": "Music",
            "questions": [
                {
                    "type": "double",
                    "verbalQuestion": "Who sang Thriller?",
                    "verbalAnswer": "Michael Jackson",
                    "textualQuestion": "In which year was Thriller released?",
                    "textualAnswer": "1982",
                    "textualChoices": ["1980", "1982", "1984", "1986"],
                    "pointsToGain": 2,
                    "maxTime": 15,
                },
            ],
        },
    ],
}


def seconds(n):
    return timedelta(seconds=n)


@pytest.fixture()
def quiz_document():
    return deepcopy(QUIZ_DOCUMENT)


@pytest.fixture()
def quiz_config(quiz_document):
    return parse_quiz_config(quiz_document)
