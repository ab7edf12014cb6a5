"""Rich-powered console front end for a quiz session.

The loop renders the controller's current phase, reads one command per line
from an injectable input provider, and dispatches it as an intent. Keeping
input behind a callable lets tests script an entire session without a
terminal.
"""

from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..catalog import LEVELS, TOPICS
from .models import OPTION_COUNT
from .session import (
    ClipboardWriter,
    LoadingPhase,
    Phase,
    PlayingPhase,
    QuizController,
    ResultsPhase,
    SetupPhase,
    ShareMethod,
)

InputProvider = Callable[[], str]
CommandType = Literal[
    "start", "topic", "level", "select", "next", "restart", "share", "quit"
]

_LETTERS = "ABCD"


@dataclass(frozen=True)
class ConsoleCommand:
    """Normalized user command parsed from console input."""

    type: CommandType
    value: Optional[int] = None


def parse_command(
    raw: Optional[str], phase: Phase
) -> Optional[ConsoleCommand]:
    """Parse a line of input in the context of ``phase``."""

    if raw is None:
        return None
    text = raw.strip().lower()
    if text in {"q", "quit", "exit"}:
        return ConsoleCommand("quit")

    if isinstance(phase, SetupPhase):
        if text in {"", "s", "start", "iniciar"}:
            return ConsoleCommand("start")
        head, _, tail = text.partition(" ")
        if head in {"t", "topic", "l", "level"} and tail.strip().isdigit():
            kind: CommandType = "topic" if head.startswith("t") else "level"
            return ConsoleCommand(kind, int(tail.strip()) - 1)
        return None

    if isinstance(phase, PlayingPhase):
        if text in {"", "n", "next", "continuar"}:
            return ConsoleCommand("next")
        if text.isdigit() and 1 <= int(text) <= OPTION_COUNT:
            return ConsoleCommand("select", int(text) - 1)
        if len(text) == 1 and text.upper() in _LETTERS:
            return ConsoleCommand("select", _LETTERS.index(text.upper()))
        return None

    if isinstance(phase, ResultsPhase):
        if text in {"r", "restart", "reiniciar"}:
            return ConsoleCommand("restart")
        if text in {"c", "share", "compartir"}:
            return ConsoleCommand("share")
    return None


def osc52_clipboard(console: Console) -> Optional[ClipboardWriter]:
    """Return a clipboard writer using the OSC 52 escape, when interactive."""

    if not console.is_terminal:
        return None

    def _copy(text: str) -> None:
        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
        console.file.write(f"\x1b]52;c;{encoded}\a")
        console.file.flush()

    return _copy


def run_console_session(
    controller: QuizController,
    console: Console,
    input_provider: InputProvider,
    *,
    topic: str,
    level: str,
    clipboard: Optional[ClipboardWriter] = None,
) -> Phase:
    """Drive ``controller`` until the user quits; return the last phase."""

    topic_keys = list(TOPICS)

    def _on_phase(phase: Phase) -> None:
        if isinstance(phase, LoadingPhase):
            _render_loading(console, phase)

    unsubscribe = controller.subscribe(_on_phase)
    try:
        while True:
            phase = controller.phase
            _render_phase(console, phase, topic=topic, level=level)
            try:
                raw = input_provider()
            except (EOFError, KeyboardInterrupt, StopIteration):
                console.print("\n[bold yellow]Sesión interrumpida.[/]")
                break
            command = parse_command(raw, phase)
            if command is None:
                console.print("[red]Comando no reconocido.[/]")
                continue
            if command.type == "quit":
                break
            if command.type == "topic" and command.value is not None:
                if 0 <= command.value < len(topic_keys):
                    topic = topic_keys[command.value]
                continue
            if command.type == "level" and command.value is not None:
                if 0 <= command.value < len(LEVELS):
                    level = LEVELS[command.value]
                continue
            _dispatch(command, controller, console, topic, level, clipboard)
    finally:
        unsubscribe()
    return controller.phase


def _dispatch(
    command: ConsoleCommand,
    controller: QuizController,
    console: Console,
    topic: str,
    level: str,
    clipboard: Optional[ClipboardWriter],
) -> None:
    if command.type == "start":
        asyncio.run(controller.start(topic, level))
    elif command.type == "select" and command.value is not None:
        controller.select_option(command.value)
    elif command.type == "next":
        phase = controller.phase
        if isinstance(phase, PlayingPhase) and not phase.answered:
            console.print("[yellow]Selecciona una opción primero.[/]")
            return
        controller.advance()
    elif command.type == "restart":
        controller.restart()
    elif command.type == "share":
        outcome = controller.share(clipboard=clipboard)
        if outcome.method is ShareMethod.COPIED:
            console.print("[bold green]COPIADO[/] al portapapeles.")
        else:
            console.print(Panel(outcome.text, border_style="cyan"))


def _render_phase(
    console: Console, phase: Phase, *, topic: str, level: str
) -> None:
    if isinstance(phase, SetupPhase):
        _render_setup(console, phase, topic=topic, level=level)
    elif isinstance(phase, PlayingPhase):
        _render_question(console, phase)
    elif isinstance(phase, ResultsPhase):
        _render_results(console, phase)


def _render_setup(
    console: Console, phase: SetupPhase, *, topic: str, level: str
) -> None:
    console.print()
    console.rule(Text("DACTILOLAB", style="bold cyan"))
    console.print(
        Text(
            "SISTEMA DE ENTRENAMIENTO FORENSE - UNIDAD VUCETICH", style="dim"
        )
    )

    topics = Table(title="Módulo de estudio", box=box.SIMPLE, expand=True)
    topics.add_column("#", justify="right", style="cyan")
    topics.add_column("Tema")
    for idx, (value, label) in enumerate(TOPICS.items(), start=1):
        marker = "•" if value == topic else " "
        topics.add_row(str(idx), f"{marker} {label}")
    console.print(topics)

    levels = Text("Rango del perito: ")
    for idx, name in enumerate(LEVELS, start=1):
        style = "bold cyan" if name == level else "dim"
        levels.append(f"[{idx}] {name}  ", style=style)
    console.print(levels)

    if phase.error_message:
        console.print(Panel(phase.error_message, border_style="red"))
    console.print(
        Text(
            "Comandos: t <n> (tema), l <n> (nivel), start, quit", style="dim"
        )
    )


def _render_loading(console: Console, phase: LoadingPhase) -> None:
    if phase.retrying:
        console.print(
            f"[yellow]REINTENTANDO CONEXIÓN POR SATURACIÓN... "
            f"(intento {phase.attempt + 1})[/]"
        )
    else:
        console.print("[cyan]PROCESANDO BASE DE DATOS CRIMINALÍSTICA...[/]")


def _render_question(console: Console, phase: PlayingPhase) -> None:
    question = phase.current
    header = Text.assemble(
        (f"Caso {phase.current_index + 1}", "bold cyan"),
        (f" / {phase.total}", "dim"),
        (f"  {phase.topic}", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(Text("> " + question.prompt, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Opción")
    for idx, option in enumerate(question.options):
        row = Text(option)
        if phase.answered:
            if idx == question.correct_index:
                row.stylize("bold green")
            elif idx == phase.selected_option:
                row.stylize("bold red")
            else:
                row.stylize("dim")
        table.add_row(_LETTERS[idx], row)
    console.print(table)

    if phase.explanation_visible:
        correct = phase.selected_option == question.correct_index
        border = "green" if correct else "red"
        console.print(
            Panel(
                question.explanation,
                title="Observación técnica",
                border_style=border,
            )
        )
        console.print(Text("Enter / n para continuar", style="dim"))
    else:
        console.print(Text("Responde con A-D o 1-4", style="dim"))


def _render_results(console: Console, phase: ResultsPhase) -> None:
    console.print()
    console.rule(Text("Informe final", style="bold magenta"))
    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Métrica", style="bold")
    overview.add_column("Valor", justify="right")
    overview.add_row("Tema", phase.topic)
    overview.add_row("Nivel", phase.level)
    overview.add_row("Aciertos", f"{phase.score}/{phase.total}")
    overview.add_row("Calificación", f"{phase.percentage}%")
    console.print(overview)
    console.print(
        Text("Comandos: r (reiniciar), c (compartir), quit", style="dim")
    )
