"""Shared testing fixtures for the DactiloLab test suite."""

from .chat import (  # noqa: F401
    FakeChatClient,
    RecordingSleep,
    connection_error,
    status_error,
)
from .questions import (  # noqa: F401
    batch_json,
    batch_payload,
    make_questions,
    question_payload,
)

__all__ = [
    "FakeChatClient",
    "RecordingSleep",
    "batch_json",
    "batch_payload",
    "connection_error",
    "make_questions",
    "question_payload",
    "status_error",
]
