"""Quiz generation client backed by the OpenAI chat completions API.

The client builds a Spanish instruction for a six-question forensic exam,
declares a strict JSON schema for the reply, strips stray Markdown fences,
and validates the decoded batch into :class:`~dactilolab.quiz.models.Question`
objects. Every failure is classified into a
:class:`~dactilolab.quiz.errors.GenerationErrorKind` before it leaves this
module: :func:`generate_quiz` raises :class:`GenerationError` and
:func:`request_quiz` returns a :class:`GenerationResult` instead.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import openai

from ..core.ai import MissingCredentialError, load_client
from ..settings import AISettings
from .errors import GenerationError, GenerationErrorKind
from .models import OPTION_COUNT, QUIZ_SIZE, Question, question_from_payload

__all__ = [
    "RESPONSE_FORMAT",
    "GenerationResult",
    "build_prompts",
    "classify_exception",
    "generate_quiz",
    "parse_batch",
    "request_quiz",
    "strip_code_fences",
]

_log = logging.getLogger(__name__)

_FENCE_RE = re.compile(
    r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE
)

_QUESTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "question": {"type": "string"},
        "options": {"type": "array", "items": {"type": "string"}},
        "correctIndex": {"type": "integer"},
        "explanation": {"type": "string"},
    },
    "required": ["id", "question", "options", "correctIndex", "explanation"],
    "additionalProperties": False,
}

# Structured outputs need an object at the root, so the array is wrapped.
RESPONSE_FORMAT: dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "forensic_quiz",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "questions": {"type": "array", "items": _QUESTION_SCHEMA},
            },
            "required": ["questions"],
            "additionalProperties": False,
        },
    },
}


@dataclass(frozen=True)
class GenerationResult:
    """Tagged outcome of one generation request."""

    questions: tuple[Question, ...] = ()
    error: Optional[GenerationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, questions: tuple[Question, ...]) -> "GenerationResult":
        return cls(questions=questions)

    @classmethod
    def failure(cls, error: GenerationError) -> "GenerationResult":
        return cls(error=error)


def build_prompts(topic: str, level: str) -> tuple[str, str]:
    system_prompt = (
        "Eres un experto en Criminalística especializado en el Sistema "
        "Dactiloscópico Argentino de Juan Vucetich. Respondes solo con JSON."
    )
    user_prompt = (
        f"Genera un cuestionario de {QUIZ_SIZE} preguntas de nivel {level} "
        f'sobre: "{topic}".\n'
        f"Cada pregunta debe tener exactamente {OPTION_COUNT} opciones "
        "distintas y una sola respuesta correcta, indicada con correctIndex "
        f"(0 a {OPTION_COUNT - 1}).\n"
        "Incluye en cada explicación fundamentos técnicos sobre los tipos "
        "fundamentales (Arco, Presilla, Verticilo) y los puntos "
        "característicos cuando corresponda.\n"
        'Formato: {"questions": [{"id": str, "question": str, '
        '"options": [str, str, str, str], "correctIndex": int, '
        '"explanation": str}]}'
    )
    return system_prompt, user_prompt


def strip_code_fences(content: str) -> str:
    """Remove Markdown code fences the model may wrap around its JSON."""

    text = content.strip()
    match = _FENCE_RE.fullmatch(text)
    if match:
        return match.group(1).strip()
    if not text.startswith("```"):
        return text
    # Opening fence with the closing one cut off.
    text = text[3:]
    if text[:4].lower() == "json":
        text = text[4:]
    return text.strip()


def parse_batch(content: Optional[str]) -> tuple[Question, ...]:
    """Decode and validate a reply into exactly ``QUIZ_SIZE`` questions."""

    payload = strip_code_fences(content or "")
    if not payload:
        raise GenerationError(
            GenerationErrorKind.EMPTY_RESPONSE, "service returned no text"
        )
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise GenerationError(
            GenerationErrorKind.MALFORMED_PAYLOAD, f"invalid JSON: {exc}"
        ) from exc

    if isinstance(data, dict) and "questions" in data:
        data = data["questions"]
    if not isinstance(data, list):
        raise GenerationError(
            GenerationErrorKind.MALFORMED_PAYLOAD,
            "expected a JSON array of questions",
        )
    if len(data) != QUIZ_SIZE:
        raise GenerationError(
            GenerationErrorKind.MALFORMED_PAYLOAD,
            f"expected {QUIZ_SIZE} questions, got {len(data)}",
        )

    questions: list[Question] = []
    for position, item in enumerate(data, start=1):
        try:
            questions.append(question_from_payload(item))
        except ValueError as exc:
            raise GenerationError(
                GenerationErrorKind.MALFORMED_PAYLOAD,
                f"question {position}: {exc}",
            ) from exc

    if len({question.id for question in questions}) != len(questions):
        raise GenerationError(
            GenerationErrorKind.MALFORMED_PAYLOAD, "duplicate question ids"
        )
    return tuple(questions)


def classify_exception(exc: BaseException) -> GenerationError:
    """Map any failure raised while talking to the service to an error kind."""

    if isinstance(exc, GenerationError):
        return exc
    if isinstance(exc, MissingCredentialError):
        return GenerationError(GenerationErrorKind.MISSING_CREDENTIAL, str(exc))
    if isinstance(
        exc, (openai.AuthenticationError, openai.PermissionDeniedError)
    ):
        return GenerationError(GenerationErrorKind.INVALID_CREDENTIAL, str(exc))
    if isinstance(exc, openai.RateLimitError):
        # An exhausted quota also arrives as a 429 but will not clear on retry
        if getattr(exc, "code", None) == "insufficient_quota":
            return GenerationError(
                GenerationErrorKind.UNKNOWN_FAILURE, str(exc)
            )
        return GenerationError(
            GenerationErrorKind.TRANSIENT_SERVICE_ERROR, str(exc)
        )
    if isinstance(
        exc, (openai.InternalServerError, openai.APIConnectionError)
    ):
        return GenerationError(
            GenerationErrorKind.TRANSIENT_SERVICE_ERROR, str(exc)
        )
    detail = str(exc) or type(exc).__name__
    return GenerationError(GenerationErrorKind.UNKNOWN_FAILURE, detail)


def _completion_content(
    client: Any,
    *,
    settings: AISettings,
    system_prompt: str,
    user_prompt: str,
) -> str:
    resp = client.chat.completions.create(
        model=settings.model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        response_format=RESPONSE_FORMAT,
    )
    choices = getattr(resp, "choices", None) or []
    if not choices:
        return ""
    message = choices[0].message
    if getattr(message, "refusal", None):
        raise GenerationError(
            GenerationErrorKind.EMPTY_RESPONSE,
            f"model refused: {message.refusal}",
        )
    return (message.content or "").strip()


def generate_quiz(
    topic: str,
    level: str,
    *,
    client: Any = None,
    settings: Optional[AISettings] = None,
    logger: Optional[logging.Logger] = None,
) -> tuple[Question, ...]:
    """Request a batch for ``topic``/``level`` or raise ``GenerationError``.

    When ``client`` is omitted one is created from ``OPENAI_API_KEY``; a
    missing key is reported before any network traffic happens.
    """

    settings = settings or AISettings()
    log = logger or _log
    log.info(
        "Requesting quiz batch",
        extra={"topic": topic, "level": level, "model": settings.model},
    )
    try:
        if client is None:
            client = load_client(timeout=settings.request_timeout_seconds)
        system_prompt, user_prompt = build_prompts(topic, level)
        content = _completion_content(
            client,
            settings=settings,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
        )
        questions = parse_batch(content)
    except Exception as exc:
        error = classify_exception(exc)
        log.warning(
            "Quiz generation failed",
            extra={"kind": error.kind.value, "detail": error.detail},
        )
        if error is exc:
            raise
        raise error from exc

    log.info("Quiz batch accepted", extra={"count": len(questions)})
    return questions


def request_quiz(
    topic: str,
    level: str,
    *,
    client: Any = None,
    settings: Optional[AISettings] = None,
    logger: Optional[logging.Logger] = None,
) -> GenerationResult:
    """Like :func:`generate_quiz` but returns a tagged result, never raises."""

    try:
        questions = generate_quiz(
            topic, level, client=client, settings=settings, logger=logger
        )
    except GenerationError as exc:
        return GenerationResult.failure(exc)
    return GenerationResult.success(questions)
