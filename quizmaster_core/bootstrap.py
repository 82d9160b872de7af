"""Process-level wiring: locate the quiz config, load it, set up logging.

The config path comes from the environment:

    QUIZ_CONFIG_PATH    path to the YAML quiz config (required)
    QUIZ_CONFIG_STRICT  "1"/"true"/"yes" (default) rejects unknown keys,
                        anything else only warns about them
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Mapping

from .config import QuizConfig
from .config_parser import ConfigError, ConfigIssue, ROOT_PATH, load_quiz_config

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "QUIZ_CONFIG_PATH"
CONFIG_STRICT_ENV = "QUIZ_CONFIG_STRICT"

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure basic logging for the process and return the package logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return logging.getLogger("quizmaster_core")


def _env_flag(value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def load_config_from_environment(
    env: Mapping[str, str] | None = None,
    *,
    exit_on_failure: bool = True,
) -> QuizConfig:
    """Load the QuizConfig named by the environment.

    On failure every issue is logged. With ``exit_on_failure`` the process
    stops with status 1 so startup does not continue without a config;
    otherwise the ConfigError is re-raised for the caller.
    """
    env = os.environ if env is None else env
    raw_path = env.get(CONFIG_PATH_ENV, "")
    strict = _env_flag(env.get(CONFIG_STRICT_ENV), default=True)

    try:
        if not raw_path.strip():
            raise ConfigError([ConfigIssue(ROOT_PATH, f"{CONFIG_PATH_ENV} is not set")])
        # Canonicalization may fail too, so it stays inside the try
        path = Path(raw_path).expanduser().resolve()
        return load_quiz_config(path, strict=strict)
    except (ConfigError, OSError) as e:
        logger.error(f"Error when parsing {raw_path or '<unset>'}:\n\n{e}")
        if exit_on_failure:
            sys.exit(1)
        raise
