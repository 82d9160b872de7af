"""Command line entry point: ``python -m quizmaster_core validate quiz.yaml``."""
from __future__ import annotations

import argparse
import logging
import sys

from .bootstrap import configure_logging
from .config_parser import ConfigError, load_quiz_config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quizmaster_core")
    commands = parser.add_subparsers(dest="command", required=True)

    validate = commands.add_parser("validate", help="check a quiz config file")
    validate.add_argument("path", help="YAML quiz config")
    validate.add_argument(
        "--lenient",
        action="store_true",
        help="warn about unknown keys instead of rejecting them",
    )
    validate.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = load_quiz_config(args.path, strict=not args.lenient)
    except ConfigError as e:
        print(e.format(), file=sys.stderr)
        return 1

    print(f"{config.title or args.path}: {len(config.rounds)} rounds, {config.question_count} questions")
    for i, round_ in enumerate(config.rounds):
        print(f"  [{i}] {round_.name} ({len(round_.questions)} questions)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
