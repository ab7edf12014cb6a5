"""Entry points for the ``play``, ``console`` and ``topics`` commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from ..catalog import LEVELS, TOPICS
from ..core.logging import configure_logger
from ..settings import (
    LoadResult,
    SettingsError,
    SettingsOverrides,
    load_settings,
)
from .console import osc52_clipboard, run_console_session
from .session import QuizController
from .view import DactiloLabApp

LOGGER_NAME = "dactilolab"


def build_arg_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description=description,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--topic",
        choices=list(TOPICS),
        help="Initial study topic (defaults to quiz.topic from the config)",
    )
    parser.add_argument(
        "--level",
        choices=list(LEVELS),
        help="Initial expert level (defaults to quiz.level from the config)",
    )
    parser.add_argument("--model", help="Override the generation model")
    parser.add_argument("--config", type=Path, help="Path to dactilolab.toml")
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root (defaults to DACTILOLAB_HOME or ~/.dactilolab)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Mirror log records to stderr",
    )
    return parser


def _prepare(
    parser: argparse.ArgumentParser, argv: Optional[Sequence[str]]
) -> tuple[argparse.Namespace, LoadResult, QuizController]:
    args = parser.parse_args(list(argv) if argv is not None else None)
    overrides = SettingsOverrides(
        topic=args.topic,
        level=args.level,
        model=args.model,
        log_level=args.log_level,
        verbose=args.verbose,
    )
    try:
        loaded = load_settings(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except SettingsError as exc:
        parser.error(str(exc))

    settings = loaded.settings
    logger, _ = configure_logger(
        LOGGER_NAME,
        log_dir=loaded.layout.path_for("logs"),
        level=settings.logging.level,
        verbose=settings.logging.verbose,
    )
    logger.debug(
        "DactiloLab invoked",
        extra={
            "prog": parser.prog,
            "config_path": loaded.config_path,
            "model": settings.ai.model,
        },
    )
    controller = QuizController.from_settings(settings, logger=logger)
    return args, loaded, controller


def main_play(argv: Optional[Sequence[str]] = None) -> int:
    """Launch the Textual quiz interface."""

    parser = build_arg_parser(
        "dactilolab play", "Forensic fingerprint quiz (terminal UI)"
    )
    _, loaded, controller = _prepare(parser, argv)
    app = DactiloLabApp(
        controller,
        topic=loaded.settings.quiz.topic,
        level=loaded.settings.quiz.level,
    )
    app.run()
    return 0


def main_console(argv: Optional[Sequence[str]] = None) -> int:
    """Run the quiz as a line-oriented Rich console session."""

    parser = build_arg_parser(
        "dactilolab console", "Forensic fingerprint quiz (plain console)"
    )
    _, loaded, controller = _prepare(parser, argv)
    console = Console()
    run_console_session(
        controller,
        console,
        lambda: console.input("[bold cyan]> [/]"),
        topic=loaded.settings.quiz.topic,
        level=loaded.settings.quiz.level,
        clipboard=osc52_clipboard(console),
    )
    return 0


def main_topics(argv: Optional[Sequence[str]] = None) -> int:
    """Print the available study topics and expert levels."""

    argparse.ArgumentParser(
        prog="dactilolab topics",
        description="List study topics and expert levels",
    ).parse_args(list(argv) if argv is not None else None)
    lines = ["Topics:"]
    lines.extend(f"  {value}  ({label})" for value, label in TOPICS.items())
    lines.append("Levels:")
    lines.extend(f"  {name}" for name in LEVELS)
    sys.stdout.write("\n".join(lines) + "\n")
    return 0
