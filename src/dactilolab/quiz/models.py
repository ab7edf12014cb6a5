"""Question model and the fixed topic/level catalogues."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..catalog import DEFAULT_LEVEL, DEFAULT_TOPIC, LEVELS, TOPICS

__all__ = [
    "DEFAULT_LEVEL",
    "DEFAULT_TOPIC",
    "LEVELS",
    "OPTION_COUNT",
    "QUIZ_SIZE",
    "TOPICS",
    "Question",
    "question_from_payload",
]

QUIZ_SIZE = 6
OPTION_COUNT = 4


@dataclass(frozen=True)
class Question:
    """One validated multiple-choice item."""

    id: str
    prompt: str
    options: tuple[str, ...]
    correct_index: int
    explanation: str

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]

    def is_correct(self, index: int) -> bool:
        return index == self.correct_index

    def to_payload(self) -> dict[str, Any]:
        """Return the wire representation used by the generation service."""

        return {
            "id": self.id,
            "question": self.prompt,
            "options": list(self.options),
            "correctIndex": self.correct_index,
            "explanation": self.explanation,
        }


def question_from_payload(data: Mapping[str, Any]) -> Question:
    """Build a :class:`Question` from a wire object, validating every field.

    Raises ``ValueError`` with an actionable message when the object breaks
    these rules: non-empty ``id``/``question``/``explanation`` strings,
    exactly four distinct non-empty ``options`` and an integer
    ``correctIndex`` pointing into them.
    """

    if not isinstance(data, Mapping):
        raise ValueError("question must be an object")

    identifier = _require_text(data, "id")
    prompt = _require_text(data, "question")
    explanation = _require_text(data, "explanation")

    options = data.get("options")
    if not isinstance(options, list) or len(options) != OPTION_COUNT:
        raise ValueError(f"options must be a list of {OPTION_COUNT} strings")
    cleaned: list[str] = []
    for option in options:
        if not isinstance(option, str) or not option.strip():
            raise ValueError("option text must be a non-empty string")
        cleaned.append(option.strip())
    if len({option.casefold() for option in cleaned}) != len(cleaned):
        raise ValueError("duplicate options detected")

    index = data.get("correctIndex")
    # bool is an int subclass; reject it explicitly
    if isinstance(index, bool) or not isinstance(index, int):
        raise ValueError("correctIndex must be an integer")
    if not 0 <= index < OPTION_COUNT:
        raise ValueError(
            f"correctIndex must be between 0 and {OPTION_COUNT - 1}"
        )

    return Question(
        id=identifier,
        prompt=prompt,
        options=tuple(cleaned),
        correct_index=index,
        explanation=explanation,
    )


def _require_text(data: Mapping[str, Any], field: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field} must be a non-empty string")
    return value.strip()
