"""``dactilolab`` entry point dispatching to the quiz and workspace commands."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Mapping, Optional, Sequence

from rich.console import Console
from rich.table import Table

PROG = "dactilolab"
DEFAULT_COMMAND = "play"


@dataclass(frozen=True)
class Subcommand:
    """A subcommand whose handler is imported only when it runs.

    ``target`` uses entry-point notation, ``"package.module:function"``.
    """

    name: str
    summary: str
    target: str
    tui: bool = False

    def load(self) -> Callable[[list[str]], object]:
        module_name, _, attr = self.target.partition(":")
        return getattr(import_module(module_name), attr or "main")

    def run(self, argv: Sequence[str]) -> int:
        return _call_entry(self.load(), f"{PROG} {self.name}", argv)


SUBCOMMANDS: Mapping[str, Subcommand] = {
    command.name: command
    for command in (
        Subcommand(
            "play",
            "Start a forensic fingerprint quiz.",
            "dactilolab.quiz._main:main_play",
            tui=True,
        ),
        Subcommand(
            "console",
            "Start a quiz in the plain Rich console.",
            "dactilolab.quiz._main:main_console",
        ),
        Subcommand(
            "topics",
            "List study topics and expert levels.",
            "dactilolab.quiz._main:main_topics",
        ),
        Subcommand(
            "init",
            "Create the workspace and default dactilolab.toml.",
            "dactilolab.workspace_cli:main",
        ),
    )
}


def command_table() -> Table:
    table = Table(
        title="Available commands:",
        title_justify="left",
        title_style="bold",
        box=None,
        show_header=False,
    )
    table.add_column("command", style="cyan", no_wrap=True)
    table.add_column("summary")
    for command in SUBCOMMANDS.values():
        suffix = " (TUI)" if command.tui else ""
        table.add_row(command.name, command.summary + suffix)
    return table


def _console(*, stderr: bool = False) -> Console:
    return Console(stderr=stderr, highlight=False)


def _show_usage(argv: Sequence[str]) -> int:
    out = _console()
    out.print(f"Usage: {PROG} <command> [args...]", markup=False)
    out.print(
        f"Run `{PROG} list` for commands or `{PROG} help <name>` for "
        "details.",
        markup=False,
    )
    out.print()
    out.print(command_table())
    return 0


def _show_commands(argv: Sequence[str]) -> int:
    _console().print(command_table())
    return 0


def _show_version(argv: Sequence[str]) -> int:
    try:
        version = metadata.version(PROG)
    except metadata.PackageNotFoundError:
        version = "unknown"
    _console().print(version, markup=False)
    return 0


def _show_help(argv: Sequence[str]) -> int:
    if not argv:
        return _show_usage(argv)
    command = SUBCOMMANDS.get(argv[0])
    if command is None:
        return _unknown_command(argv[0])
    out = _console()
    out.print(f"{command.name}: {command.summary}", markup=False)
    out.print(
        f"Run `{PROG} {command.name} --help` for command options.",
        markup=False,
    )
    return 0


def _unknown_command(name: str) -> int:
    err = _console(stderr=True)
    err.print(f"Unknown command '{name}'.", markup=False)
    err.print(command_table())
    return 2


_BUILTINS: Mapping[str, Callable[[Sequence[str]], int]] = {
    "-h": _show_usage,
    "--help": _show_usage,
    "list": _show_commands,
    "help": _show_help,
    "version": _show_version,
    "-V": _show_version,
    "--version": _show_version,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        return SUBCOMMANDS[DEFAULT_COMMAND].run([])

    head, *rest = args
    builtin = _BUILTINS.get(head)
    if builtin is not None:
        return builtin(rest)
    command = SUBCOMMANDS.get(head)
    if command is None:
        return _unknown_command(head)
    return command.run(rest)


def _call_entry(
    entry: Callable[[list[str]], object], prog: str, argv: Sequence[str]
) -> int:
    """Run ``entry`` with ``sys.argv`` rewritten, mapping ``SystemExit``."""

    saved = sys.argv
    sys.argv = [prog, *argv]
    try:
        result = entry(list(argv))
    except SystemExit as exc:
        return _exit_code(exc.code)
    finally:
        sys.argv = saved
    return result if isinstance(result, int) else 0


def _exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _console(stderr=True).print(str(code), markup=False)
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
