"""Failure taxonomy for quiz generation and session intents."""

from __future__ import annotations

from enum import Enum


class GenerationErrorKind(Enum):
    """Classified reasons a quiz batch could not be produced."""

    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    EMPTY_RESPONSE = "empty_response"
    MALFORMED_PAYLOAD = "malformed_payload"
    TRANSIENT_SERVICE_ERROR = "transient_service_error"
    UNKNOWN_FAILURE = "unknown_failure"

    @property
    def retryable(self) -> bool:
        return self is GenerationErrorKind.TRANSIENT_SERVICE_ERROR

    @property
    def user_message(self) -> str:
        return USER_MESSAGES[self]


USER_MESSAGES: dict[GenerationErrorKind, str] = {
    GenerationErrorKind.MISSING_CREDENTIAL: (
        "Falta la credencial OPENAI_API_KEY. Defínela en el entorno o en un "
        "archivo .env."
    ),
    GenerationErrorKind.INVALID_CREDENTIAL: (
        "La credencial OPENAI_API_KEY fue rechazada por el servicio. "
        "Verifica que sea válida."
    ),
    GenerationErrorKind.EMPTY_RESPONSE: (
        "El servidor forense no devolvió datos. Intenta de nuevo."
    ),
    GenerationErrorKind.MALFORMED_PAYLOAD: (
        "El expediente recibido está dañado o incompleto. Intenta de nuevo."
    ),
    GenerationErrorKind.TRANSIENT_SERVICE_ERROR: (
        "El servidor forense está saturado. Por favor, espera 10 segundos e "
        "intenta de nuevo."
    ),
    GenerationErrorKind.UNKNOWN_FAILURE: (
        "Error inesperado en el laboratorio forense. Revisa el registro para "
        "más detalles."
    ),
}


class GenerationError(Exception):
    """A classified generation failure.

    ``detail`` carries the underlying message for diagnostics; it is logged
    but never shown to the user.
    """

    def __init__(self, kind: GenerationErrorKind, detail: str = "") -> None:
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail

    @property
    def user_message(self) -> str:
        return self.kind.user_message

    def __repr__(self) -> str:
        return f"GenerationError({self.kind.name}, {self.detail!r})"


class QuizStateError(RuntimeError):
    """Raised when an intent is dispatched in a phase that does not allow it."""
