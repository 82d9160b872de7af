"""
Input validation schemas using Pydantic v2
Validates moderator command payloads before they reach the session
"""

import logging
import re
from typing import Literal, Optional, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

MAX_FREE_TEXT_LENGTH = 500

ALLOWED_COMMAND_TYPES = frozenset(
    {
        "GO_TO_NEXT_STEP",
        "GO_TO_PREVIOUS_STEP",
        "GO_TO_NEXT_QUESTION",
        "GO_TO_PREVIOUS_QUESTION",
        "GO_TO_NEXT_ROUND",
        "GO_TO_PREVIOUS_ROUND",
        "GO_TO_QUESTION",
        "START_TIMER",
        "PAUSE_TIMER",
        "RESUME_TIMER",
        "TOGGLE_TIMER_PAUSED",
        "RESET_TIMER",
        "ADD_SUBMISSION",
        "TOGGLE_IMAGE_ENLARGED",
        "SET_SHOW_ANSWERS",
        "SET_ANSWER_BULLET_TYPE",
        "RESET_QUIZ",
    }
)

# ==================== VALIDATOR FUNCTIONS ====================


class InputSanitizer:
    """Utility class for input sanitization"""

    @staticmethod
    def sanitize_string(value: str, max_length: int = 255) -> str:
        """Sanitize string input"""
        if not isinstance(value, str):
            return str(value)[:max_length]

        # Strip whitespace
        value = value.strip()

        # Limit length
        value = value[:max_length]

        # Remove null bytes
        value = value.replace("\0", "")

        return value

    @staticmethod
    def sanitize_free_text_answer(answer: str) -> str:
        """Sanitize a team's typed answer; keeps letters in any script and punctuation"""
        answer = InputSanitizer.sanitize_string(answer, MAX_FREE_TEXT_LENGTH)
        answer = re.sub(r"[\x00-\x1f\x7f]", " ", answer)
        return " ".join(answer.split())

    @staticmethod
    def validate_and_sanitize_cmd(cmd_dict: dict) -> "ValidatedCmd":
        """
        Validate and sanitize command dictionary

        Returns:
            ValidatedCmd: Validated command object

        Raises:
            ValueError: If validation fails
        """
        try:
            return ValidatedCmd(**cmd_dict)
        except Exception as e:
            logger.warning(f"Command validation failed: {e}")
            raise ValueError(f"Invalid command: {str(e)}") from e


class SubmissionValuePayload(BaseModel):
    """Tagged submission value as sent by a team client"""

    kind: Literal["pressed_the_one_button", "multiple_choice", "free_text"]
    answerIndex: Optional[int] = Field(None, ge=0, le=99, description="Chosen option")
    answer: Optional[str] = Field(
        None, max_length=MAX_FREE_TEXT_LENGTH, description="Typed answer"
    )

    @field_validator("answer")
    @classmethod
    def validate_answer(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = InputSanitizer.sanitize_free_text_answer(v)
        if len(v) == 0:
            raise ValueError("answer cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_kind_fields(self) -> Self:
        if self.kind == "multiple_choice" and self.answerIndex is None:
            raise ValueError("multiple_choice requires answerIndex")
        if self.kind == "free_text" and self.answer is None:
            raise ValueError("free_text requires answer")
        return self

    model_config = ConfigDict(extra="forbid")


class ValidatedCmd(BaseModel):
    """Moderator command with per-type field requirements"""

    type: str = Field(..., min_length=1, max_length=50, description="Command type")
    actionId: Optional[str] = Field(None, max_length=64)

    # GO_TO_QUESTION
    roundIndex: Optional[int] = Field(None, ge=-1, le=999, description="Round index")
    questionIndex: Optional[int] = Field(
        None, ge=-1, le=999, description="Question index (-1 for round name)"
    )

    # ADD_SUBMISSION
    teamId: Optional[int] = Field(None, ge=0, description="Submitting team")
    value: Optional[SubmissionValuePayload] = None

    # Settings
    showAnswers: Optional[bool] = None
    answerBulletType: Optional[Literal["arrows", "characters"]] = None

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        """Validate command type is one of allowed types"""
        if v not in ALLOWED_COMMAND_TYPES:
            raise ValueError(f"type must be one of {sorted(ALLOWED_COMMAND_TYPES)}, got {v}")
        return v

    @model_validator(mode="after")
    def validate_command_fields(self) -> Self:
        """Validate required fields based on command type"""
        cmd_type = self.type

        if cmd_type == "GO_TO_QUESTION":
            if self.roundIndex is None:
                raise ValueError("GO_TO_QUESTION requires roundIndex")
            if self.questionIndex is None:
                raise ValueError("GO_TO_QUESTION requires questionIndex")

        elif cmd_type == "ADD_SUBMISSION":
            if self.teamId is None:
                raise ValueError("ADD_SUBMISSION requires teamId")
            if self.value is None:
                raise ValueError("ADD_SUBMISSION requires value")

        elif cmd_type == "SET_SHOW_ANSWERS":
            if self.showAnswers is None:
                raise ValueError("SET_SHOW_ANSWERS requires showAnswers")

        elif cmd_type == "SET_ANSWER_BULLET_TYPE":
            if self.answerBulletType is None:
                raise ValueError("SET_ANSWER_BULLET_TYPE requires answerBulletType")

        return self

    def to_payload(self) -> dict:
        """Command dict for apply_command()"""
        return self.model_dump(exclude_none=True)

    model_config = ConfigDict(extra="forbid")


# ==================== EXPORT ====================

__all__ = [
    "ALLOWED_COMMAND_TYPES",
    "InputSanitizer",
    "SubmissionValuePayload",
    "ValidatedCmd",
]
