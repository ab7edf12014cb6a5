"""Textual front end: one stage container re-mounted on every phase change."""

from __future__ import annotations

from typing import Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.css.query import NoMatches
from textual.timer import Timer
from textual.widget import Widget
from textual.widgets import (
    Button,
    Footer,
    Header,
    LoadingIndicator,
    Select,
    Static,
)

from ..catalog import LEVELS, TOPICS
from .session import (
    LoadingPhase,
    Phase,
    PlayingPhase,
    QuizController,
    ResultsPhase,
    SetupPhase,
    ShareHandler,
    ShareMethod,
)

_LETTERS = "ABCD"


class SetupView(Widget):
    """Topic and level pickers plus the start button."""

    def __init__(
        self,
        *,
        topic: str,
        level: str,
        error_message: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.topic = topic
        self.level = level
        self.error_message = error_message

    def compose(self) -> ComposeResult:
        yield Static("DACTILOLAB", id="title")
        yield Static(
            "SISTEMA DE ENTRENAMIENTO FORENSE - UNIDAD VUCETICH",
            id="subtitle",
        )
        yield Static("Módulo de Estudio", classes="label")
        yield Select(
            [(label, value) for value, label in TOPICS.items()],
            value=self.topic,
            allow_blank=False,
            id="topic",
        )
        yield Static("Rango del Perito", classes="label")
        with Horizontal(id="levels"):
            for idx, name in enumerate(LEVELS):
                button = Button(Text(name), id=f"level-{idx}")
                if name == self.level:
                    button.add_class("selected")
                yield button
        yield Button(Text("INICIAR PROTOCOLO"), id="start", variant="primary")
        if self.error_message:
            yield Static(self.error_message, id="error", markup=False)


class LoadingView(Widget):
    def __init__(self, phase: LoadingPhase) -> None:
        super().__init__()
        self.phase = phase

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()
        yield Static(self.loading_message(), id="loading-message")

    def loading_message(self) -> str:
        if self.phase.retrying:
            return "REINTENTANDO CONEXIÓN POR SATURACIÓN..."
        return "PROCESANDO BASE DE DATOS CRIMINALÍSTICA..."


class QuestionView(Widget):
    """Renders the current question, its options and, once answered, the
    explanation with a continue button."""

    def __init__(self, phase: PlayingPhase) -> None:
        super().__init__()
        self.phase = phase

    def compose(self) -> ComposeResult:
        phase = self.phase
        question = phase.current
        with Horizontal(id="case"):
            yield Static(f"Caso actual: {phase.topic}", markup=False)
            yield Static(self.progress_text(), id="progress")
        yield Static(f"> {question.prompt}", id="prompt", markup=False)
        for idx, option in enumerate(question.options):
            button = Button(
                Text(f"{_LETTERS[idx]}) {option}"),
                id=f"option-{idx}",
                disabled=phase.answered,
            )
            state = self.option_state(idx)
            if state:
                button.add_class(state)
            yield button
        if phase.explanation_visible:
            yield Static("Observación Técnica", classes="label")
            yield Static(question.explanation, id="explanation", markup=False)
            yield Button(Text("CONTINUAR"), id="continue", variant="primary")

    def progress_text(self) -> str:
        return f"{self.phase.current_index + 1} / {self.phase.total}"

    def option_state(self, index: int) -> Optional[str]:
        """CSS class for option ``index``: correct, wrong, muted or none."""

        if not self.phase.answered:
            return None
        if index == self.phase.current.correct_index:
            return "correct"
        if index == self.phase.selected_option:
            return "wrong"
        return "muted"


class ResultsView(Widget):
    def __init__(self, phase: ResultsPhase, *, copied: bool = False) -> None:
        super().__init__()
        self.phase = phase
        self.copied = copied

    def compose(self) -> ComposeResult:
        yield Static("INFORME FINAL", id="title")
        yield Static(
            "Protocolo de Identificación de Identidad Humana Completo",
            id="subtitle",
        )
        yield Static(f"Aciertos: {self.phase.score}", id="score")
        yield Static(
            f"Calificación: {self.phase.percentage}%", id="percentage"
        )
        with Horizontal(id="actions"):
            yield Button(Text("REINICIAR"), id="restart")
            yield Button(
                Text("COPIADO" if self.copied else "COMPARTIR"),
                id="share",
                variant="primary",
            )


class DactiloLabApp(App):
    """Full-screen quiz over a :class:`QuizController`.

    ``share_handler`` lets an embedding application supply a platform share
    sheet; the ``play`` command leaves it unset and shares via clipboard.
    """

    TITLE = "DactiloLab"
    CSS = """
SetupView, LoadingView, QuestionView, ResultsView {
    layout: vertical;
    height: auto;
    padding: 1 2;
}
#title { text-style: bold; color: $accent; }
#subtitle { color: $text-muted; }
.label { margin-top: 1; text-style: bold; }
#levels, #actions, #case { height: auto; }
#levels Button.selected { background: $accent; color: black; }
#error { color: $error; margin-top: 1; }
#progress { text-align: right; }
QuestionView Button { width: 100%; }
QuestionView Button.correct { background: $success; color: black; }
QuestionView Button.wrong { background: $error; }
QuestionView Button.muted { opacity: 50%; }
#explanation { margin-bottom: 1; }
"""
    BINDINGS = [
        ("i", "start", "Iniciar"),
        ("a", "choose(0)", "A"),
        ("b", "choose(1)", "B"),
        ("c", "choose(2)", "C"),
        ("d", "choose(3)", "D"),
        ("n", "advance", "Continuar"),
        ("r", "restart", "Reiniciar"),
        ("s", "share", "Compartir"),
        ("q", "quit", "Salir"),
    ]

    def __init__(
        self,
        controller: QuizController,
        *,
        topic: str,
        level: str,
        share_handler: Optional[ShareHandler] = None,
    ) -> None:
        super().__init__()
        self.controller = controller
        self.selected_topic = topic
        self.selected_level = level
        self.copied = False
        self._share_handler = share_handler
        self._copied_timer: Optional[Timer] = None
        self._unsubscribe = controller.subscribe(self._on_phase)

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="stage"):
            yield self.view_for(self.controller.phase)
        yield Footer()

    def view_for(self, phase: Phase) -> Widget:
        if isinstance(phase, LoadingPhase):
            return LoadingView(phase)
        if isinstance(phase, PlayingPhase):
            return QuestionView(phase)
        if isinstance(phase, ResultsPhase):
            return ResultsView(phase, copied=self.copied)
        return SetupView(
            topic=self.selected_topic,
            level=self.selected_level,
            error_message=phase.error_message,
        )

    # Pure helpers (testable without running the App)
    def choose_topic(self, topic: str) -> bool:
        if topic not in TOPICS or not isinstance(
            self.controller.phase, SetupPhase
        ):
            return False
        self.selected_topic = topic
        return True

    def choose_level(self, level: str) -> bool:
        if level not in LEVELS or not isinstance(
            self.controller.phase, SetupPhase
        ):
            return False
        self.selected_level = level
        self._update_stage()
        return True

    def _on_phase(self, phase: Phase) -> None:
        if not isinstance(phase, ResultsPhase):
            self._stop_copied_timer()
            self.copied = False
        self._update_stage()

    def _update_stage(self) -> None:
        if not self.screen_stack:
            return
        try:
            stage = self.query_one("#stage", Container)
        except NoMatches:
            return
        stage.remove_children()
        stage.mount(self.view_for(self.controller.phase))

    def action_start(self) -> None:
        if not isinstance(self.controller.phase, SetupPhase):
            return
        self.run_worker(
            self.controller.start(self.selected_topic, self.selected_level),
            name="generate-quiz",
            exclusive=True,
        )

    def action_choose(self, index: int) -> None:
        if isinstance(self.controller.phase, PlayingPhase):
            self.controller.select_option(index)

    def action_advance(self) -> None:
        phase = self.controller.phase
        if isinstance(phase, PlayingPhase) and phase.answered:
            self.controller.advance()

    def action_restart(self) -> None:
        if isinstance(self.controller.phase, ResultsPhase):
            self.controller.restart()

    def action_share(self) -> None:
        if not isinstance(self.controller.phase, ResultsPhase):
            return
        outcome = self.controller.share(
            share_handler=self._share_handler,
            clipboard=self.copy_to_clipboard,
        )
        if outcome.method is ShareMethod.COPIED:
            self.copied = True
            self._update_stage()
            self._stop_copied_timer()
            self._copied_timer = self.set_timer(
                outcome.notice_seconds, self._clear_copied
            )

    def _stop_copied_timer(self) -> None:
        if self._copied_timer is not None:
            self._copied_timer.stop()
            self._copied_timer = None

    def _clear_copied(self) -> None:
        self._copied_timer = None
        self.copied = False
        self._update_stage()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "start":
            self.action_start()
        elif bid.startswith("level-"):
            self.choose_level(LEVELS[int(bid.removeprefix("level-"))])
        elif bid.startswith("option-"):
            self.action_choose(int(bid.removeprefix("option-")))
        elif bid == "continue":
            self.action_advance()
        elif bid == "restart":
            self.action_restart()
        elif bid == "share":
            self.action_share()

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "topic" and isinstance(event.value, str):
            self.choose_topic(event.value)

    def on_unmount(self) -> None:
        self._unsubscribe()
