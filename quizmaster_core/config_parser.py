"""Validating parser for quiz config documents.

Turns a YAML document (or an already-loaded mapping) into a QuizConfig, or
raises ConfigError listing every problem found, each qualified by its path
in the document (``rounds[2].questions[0].maxTime``).

The parser never logs at error level or exits; the bootstrap layer decides
what to do with a ConfigError.
"""
from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence

import yaml
from pydantic import ValidationError

from .config import QUESTION_TYPES, QuizConfig, describe_value
from .errors import QuizCoreError

logger = logging.getLogger(__name__)

ROOT_PATH = "<root>"

_MESSAGE_OVERRIDES = {
    "missing": "required field is missing",
    "extra_forbidden": "unknown field",
}
# Error types whose message already says what was received
_SELF_DESCRIBING = {"missing", "extra_forbidden", "duration_parsing", "question_type"}


@dataclass(frozen=True)
class ConfigIssue:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class ConfigError(QuizCoreError):
    """The config document violates the schema.

    Carries every issue found in one pass; never a partially valid config.
    """

    def __init__(self, issues: Iterable[ConfigIssue], source: str | None = None) -> None:
        self.issues = tuple(issues)
        self.source = source
        super().__init__(self.format())

    def format(self) -> str:
        where = self.source or "quiz config"
        lines = [f"{len(self.issues)} error(s) in {where}:"]
        lines.extend(f"  {issue}" for issue in self.issues)
        return "\n".join(lines)


def format_path(loc: Sequence[Any]) -> str:
    """Render a pydantic error location as ``rounds[0].questions[1].maxTime``.

    Question variant tags that pydantic inserts after a list index are dropped.
    """
    path = ""
    previous: Any = None
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif isinstance(previous, int) and part in QUESTION_TYPES:
            pass
        else:
            path = f"{path}.{part}" if path else str(part)
        previous = part
    return path or ROOT_PATH


def _issue_from_error(error: dict[str, Any]) -> ConfigIssue:
    error_type = error["type"]
    message = _MESSAGE_OVERRIDES.get(error_type, error["msg"])
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    value = error.get("input")
    if error_type not in _SELF_DESCRIBING and (
        value is None or isinstance(value, (str, int, float, bool))
    ):
        message = f"{message}, got {describe_value(value)}"
    return ConfigIssue(path=format_path(error["loc"]), message=message)


def _without_keys(document: dict[str, Any], locs: Iterable[Sequence[Any]]) -> dict[str, Any]:
    pruned = deepcopy(document)
    for loc in locs:
        node: Any = pruned
        for part in loc[:-1]:
            if isinstance(node, list) and isinstance(part, int):
                node = node[part]
            elif isinstance(node, dict) and part in node:
                node = node[part]
            # else: a variant tag, not a document key
        if isinstance(node, dict):
            node.pop(loc[-1], None)
    return pruned


def parse_quiz_config(
    document: Any,
    *,
    strict: bool = True,
    source: str | None = None,
) -> QuizConfig:
    """Validate a loaded document and build the QuizConfig.

    Args:
        document: Result of loading the YAML file (expected: a mapping).
        strict: When True, unknown keys are errors. When False they are
            logged as warnings and ignored.
        source: Name of the document used in error messages.

    Raises:
        ConfigError: with every issue found.
    """
    if not isinstance(document, dict):
        raise ConfigError(
            [ConfigIssue(ROOT_PATH, f"expected a mapping, got {describe_value(document)}")],
            source=source,
        )

    try:
        return QuizConfig.model_validate(document)
    except ValidationError as e:
        errors = e.errors()

    if not strict:
        unknown = [err for err in errors if err["type"] == "extra_forbidden"]
        for err in unknown:
            logger.warning(f"Ignoring unknown config key {format_path(err['loc'])}")
        errors = [err for err in errors if err["type"] != "extra_forbidden"]
        if not errors:
            try:
                return QuizConfig.model_validate(
                    _without_keys(document, [err["loc"] for err in unknown])
                )
            except ValidationError as e:
                errors = e.errors()

    raise ConfigError([_issue_from_error(err) for err in errors], source=source)


def load_quiz_config(path: str | Path, *, strict: bool = True) -> QuizConfig:
    """Read and validate a YAML quiz config file.

    Raises:
        ConfigError: if the file is missing, is not valid YAML, or does not
            match the schema.
    """
    path = Path(path)
    source = str(path)
    if not path.is_file():
        raise ConfigError([ConfigIssue(ROOT_PATH, f"could not find {path} as file")], source=source)

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError([ConfigIssue(ROOT_PATH, f"could not read {path}: {e}")], source=source) from e

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f"line {mark.line + 1}, column {mark.column + 1}" if mark else ROOT_PATH
        problem = getattr(e, "problem", None) or str(e)
        raise ConfigError([ConfigIssue(where, f"invalid YAML: {problem}")], source=source) from e

    config = parse_quiz_config(document, strict=strict, source=source)
    logger.info(
        f"Loaded quiz config from {path}: {len(config.rounds)} rounds, {config.question_count} questions"
    )
    return config


def dump_quiz_config(config: QuizConfig) -> dict[str, Any]:
    """Plain-data form of a config; parsing it again yields an equal QuizConfig."""
    return config.model_dump(mode="json", by_alias=True, exclude_none=True)


def dump_quiz_config_yaml(config: QuizConfig) -> str:
    return yaml.safe_dump(dump_quiz_config(config), sort_keys=False, allow_unicode=True)
