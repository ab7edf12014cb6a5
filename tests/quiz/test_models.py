from __future__ import annotations

import pytest

from dactilolab.quiz.models import Question, question_from_payload
from fixtures import question_payload


def test_question_from_payload_builds_question() -> None:
    question = question_from_payload(question_payload(1, correct_index=2))

    assert isinstance(question, Question)
    assert question.id == "q1"
    assert question.options == (
        "Opción 1-A",
        "Opción 1-B",
        "Opción 1-C",
        "Opción 1-D",
    )
    assert question.correct_index == 2
    assert question.correct_option == "Opción 1-C"
    assert question.is_correct(2)
    assert not question.is_correct(0)


def test_to_payload_uses_wire_keys() -> None:
    data = question_payload(3, correct_index=1)
    assert question_from_payload(data).to_payload() == data


def test_question_from_payload_strips_whitespace() -> None:
    data = question_payload(1)
    data["question"] = "  ¿Qué es un delta?  "
    data["options"] = [" Arco", "Presilla ", " Verticilo ", "Islote"]
    question = question_from_payload(data)
    assert question.prompt == "¿Qué es un delta?"
    assert question.options[0] == "Arco"


@pytest.mark.parametrize(
    "field, value, message",
    [
        ("id", "", "id"),
        ("question", None, "question"),
        ("explanation", "   ", "explanation"),
        ("options", ["a", "b", "c"], "options"),
        ("options", "a,b,c,d", "options"),
        ("options", ["a", "b", "", "d"], "option text"),
        ("options", ["Arco", "arco", "c", "d"], "duplicate"),
        ("correctIndex", 4, "between"),
        ("correctIndex", -1, "between"),
        ("correctIndex", "1", "integer"),
        ("correctIndex", True, "integer"),
    ],
)
def test_question_from_payload_rejects_invalid(field, value, message) -> None:
    data = question_payload(1)
    data[field] = value
    with pytest.raises(ValueError, match=message):
        question_from_payload(data)


def test_question_from_payload_rejects_non_object() -> None:
    with pytest.raises(ValueError, match="object"):
        question_from_payload(["not", "a", "question"])


def test_question_is_immutable() -> None:
    question = question_from_payload(question_payload(1))
    with pytest.raises(AttributeError):
        question.correct_index = 3
