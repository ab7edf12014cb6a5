"""Quiz session state machine and supporting phase types.

A session moves through four phases, each an immutable dataclass carrying
only the data that phase needs:

``SetupPhase`` -> ``LoadingPhase`` -> ``PlayingPhase`` -> ``ResultsPhase``

:class:`QuizController` owns the single active phase, applies user intents
(start, select, advance, restart, share) and notifies listeners whenever the
phase changes so presentation layers can re-render. Generation runs in a
worker thread; transient failures are retried a bounded number of times with
a fixed delay before surfacing.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar, Optional, Union

from ..settings import RetrySettings, Settings, ShareSettings
from .errors import GenerationError, GenerationErrorKind, QuizStateError
from .generator import GenerationResult, classify_exception, request_quiz
from .models import Question

SHARE_TITLE = "Informe Forense DactiloLab"

QuizRequester = Callable[[str, str], GenerationResult]
PhaseListener = Callable[["Phase"], None]
Sleeper = Callable[[float], Awaitable[None]]
ShareHandler = Callable[[str, str], None]
ClipboardWriter = Callable[[str], None]


class PhaseName(Enum):
    SETUP = "setup"
    LOADING = "loading"
    PLAYING = "playing"
    RESULTS = "results"


@dataclass(frozen=True)
class SetupPhase:
    """Topic/level selection; carries the last failure, if any."""

    error: Optional[GenerationError] = None

    name: ClassVar[PhaseName] = PhaseName.SETUP

    @property
    def error_message(self) -> Optional[str]:
        return self.error.user_message if self.error else None


@dataclass(frozen=True)
class LoadingPhase:
    topic: str
    level: str
    attempt: int = 0

    name: ClassVar[PhaseName] = PhaseName.LOADING

    @property
    def retrying(self) -> bool:
        return self.attempt > 0


@dataclass(frozen=True)
class PlayingPhase:
    """A batch in progress.

    The explanation for the current question is visible exactly when a
    selection has been recorded for it.
    """

    topic: str
    level: str
    questions: tuple[Question, ...]
    current_index: int = 0
    score: int = 0
    selected_option: Optional[int] = None

    name: ClassVar[PhaseName] = PhaseName.PLAYING

    def __post_init__(self) -> None:
        if not self.questions:
            raise ValueError("a playing session needs at least one question")
        if not 0 <= self.current_index < len(self.questions):
            raise ValueError("current_index is outside the question batch")

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> Question:
        return self.questions[self.current_index]

    @property
    def answered(self) -> bool:
        return self.selected_option is not None

    @property
    def explanation_visible(self) -> bool:
        return self.answered

    @property
    def is_last(self) -> bool:
        return self.current_index == self.total - 1

    def select(self, index: int) -> "PlayingPhase":
        """Record ``index`` as the answer; the first selection wins."""

        if self.answered or not 0 <= index < len(self.current.options):
            return self
        gained = 1 if self.current.is_correct(index) else 0
        return replace(self, selected_option=index, score=self.score + gained)

    def advance(self) -> Union["PlayingPhase", "ResultsPhase"]:
        if not self.answered:
            raise QuizStateError(
                "answer the current question before advancing"
            )
        if self.is_last:
            return ResultsPhase(
                topic=self.topic,
                level=self.level,
                questions=self.questions,
                score=self.score,
            )
        return replace(
            self, current_index=self.current_index + 1, selected_option=None
        )


@dataclass(frozen=True)
class ResultsPhase:
    topic: str
    level: str
    questions: tuple[Question, ...]
    score: int

    name: ClassVar[PhaseName] = PhaseName.RESULTS

    def __post_init__(self) -> None:
        if not self.questions:
            raise ValueError("results need the answered question batch")

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def percentage(self) -> int:
        return percentage(self.score, self.total)

    def share_text(self) -> str:
        return share_text(self.topic, self.level, self.score, self.total)


Phase = Union[SetupPhase, LoadingPhase, PlayingPhase, ResultsPhase]


class ShareMethod(Enum):
    SHARED = "shared"
    COPIED = "copied"
    DISPLAYED = "displayed"


@dataclass(frozen=True)
class ShareOutcome:
    """How the results summary left the app.

    ``notice_seconds`` is how long the "copied" acknowledgment stays visible;
    zero when no acknowledgment applies.
    """

    method: ShareMethod
    text: str
    notice_seconds: float = 0.0


def percentage(score: int, total: int) -> int:
    """Return ``score / total`` as a whole percentage, rounding half up."""

    if total <= 0:
        return 0
    return int(math.floor(score * 100 / total + 0.5))


def share_text(topic: str, level: str, score: int, total: int) -> str:
    return (
        "🕵️‍♂️ DactiloLab Informe Forense\n"
        f"Tema: {topic}\n"
        f"Nivel: {level}\n"
        f"Puntuación: {score}/{total} ({percentage(score, total)}%)\n"
        "¡Desafío Vucetich completado!"
    )


class QuizController:
    """Owns the active session phase and applies user intents to it."""

    def __init__(
        self,
        requester: QuizRequester,
        *,
        retry: Optional[RetrySettings] = None,
        share: Optional[ShareSettings] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._requester = requester
        self._retry = retry or RetrySettings()
        self._share = share or ShareSettings()
        self._log = logger or logging.getLogger(__name__)
        self._sleep = sleep
        self._phase: Phase = SetupPhase()
        self._listeners: list[PhaseListener] = []

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        logger: Optional[logging.Logger] = None,
        client: Any = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> "QuizController":
        requester = functools.partial(
            request_quiz, client=client, settings=settings.ai, logger=logger
        )
        return cls(
            requester,
            retry=settings.retry,
            share=settings.share,
            logger=logger,
            sleep=sleep,
        )

    @property
    def phase(self) -> Phase:
        return self._phase

    def subscribe(self, listener: PhaseListener) -> Callable[[], None]:
        """Register ``listener`` for phase changes; returns an unsubscriber."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def start(self, topic: str, level: str) -> Phase:
        """Generate a batch and enter ``PlayingPhase`` or return to setup."""

        if not isinstance(self._phase, SetupPhase):
            raise QuizStateError(
                f"cannot start a quiz while {self._phase.name.value}"
            )

        attempt = 0
        while True:
            self._transition(LoadingPhase(topic, level, attempt))
            result = await self._request(topic, level)
            if result.ok and result.questions:
                self._transition(PlayingPhase(topic, level, result.questions))
                return self._phase

            error = result.error or GenerationError(
                GenerationErrorKind.MALFORMED_PAYLOAD, "empty question batch"
            )
            if error.kind.retryable and attempt < self._retry.max_retries:
                attempt += 1
                self._log.info(
                    "Retrying quiz generation",
                    extra={
                        "attempt": attempt,
                        "delay_seconds": self._retry.delay_seconds,
                        "detail": error.detail,
                    },
                )
                await self._sleep(self._retry.delay_seconds)
                continue

            self._log.warning(
                "Quiz generation surfaced to setup",
                extra={"kind": error.kind.value, "attempts": attempt + 1},
            )
            self._transition(SetupPhase(error=error))
            return self._phase

    def select_option(self, index: int) -> bool:
        """Answer the current question; returns ``False`` when ignored."""

        phase = self._expect(PlayingPhase, "select an option")
        updated = phase.select(index)
        if updated is phase:
            return False
        self._transition(updated)
        return True

    def advance(self) -> Phase:
        phase = self._expect(PlayingPhase, "advance")
        self._transition(phase.advance())
        return self._phase

    def restart(self) -> Phase:
        if not isinstance(self._phase, (SetupPhase, ResultsPhase)):
            raise QuizStateError(
                f"cannot restart while {self._phase.name.value}"
            )
        self._transition(SetupPhase())
        return self._phase

    def share(
        self,
        *,
        share_handler: Optional[ShareHandler] = None,
        clipboard: Optional[ClipboardWriter] = None,
    ) -> ShareOutcome:
        """Hand the results summary to a share target or the clipboard.

        A failing share handler falls back to the clipboard. Without either
        capability the text is returned for the caller to display.
        """

        phase = self._expect(ResultsPhase, "share results")
        text = phase.share_text()
        if share_handler is not None:
            try:
                share_handler(SHARE_TITLE, text)
            except Exception:
                self._log.warning("Share handler failed", exc_info=True)
            else:
                return ShareOutcome(ShareMethod.SHARED, text)
        if clipboard is not None:
            clipboard(text)
            return ShareOutcome(
                ShareMethod.COPIED, text, self._share.copied_seconds
            )
        return ShareOutcome(ShareMethod.DISPLAYED, text)

    async def _request(self, topic: str, level: str) -> GenerationResult:
        try:
            return await asyncio.to_thread(self._requester, topic, level)
        except Exception as exc:
            self._log.exception("Quiz requester raised an unclassified error")
            return GenerationResult.failure(classify_exception(exc))

    def _expect(self, phase_type: type, intent: str) -> Any:
        if not isinstance(self._phase, phase_type):
            raise QuizStateError(
                f"cannot {intent} while {self._phase.name.value}"
            )
        return self._phase

    def _transition(self, phase: Phase) -> None:
        self._phase = phase
        self._log.debug(
            "Session phase changed", extra={"phase": phase.name.value}
        )
        for listener in list(self._listeners):
            listener(phase)
