from .errors import GenerationError, GenerationErrorKind, QuizStateError
from .generator import (
    GenerationResult,
    build_prompts,
    classify_exception,
    generate_quiz,
    parse_batch,
    request_quiz,
    strip_code_fences,
)
from .models import (
    LEVELS,
    OPTION_COUNT,
    QUIZ_SIZE,
    TOPICS,
    Question,
    question_from_payload,
)
from .session import (
    LoadingPhase,
    Phase,
    PhaseName,
    PlayingPhase,
    QuizController,
    ResultsPhase,
    SetupPhase,
    ShareMethod,
    ShareOutcome,
    percentage,
    share_text,
)

__all__ = [
    "GenerationError",
    "GenerationErrorKind",
    "QuizStateError",
    "GenerationResult",
    "build_prompts",
    "classify_exception",
    "generate_quiz",
    "parse_batch",
    "request_quiz",
    "strip_code_fences",
    "LEVELS",
    "OPTION_COUNT",
    "QUIZ_SIZE",
    "TOPICS",
    "Question",
    "question_from_payload",
    "LoadingPhase",
    "Phase",
    "PhaseName",
    "PlayingPhase",
    "QuizController",
    "ResultsPhase",
    "SetupPhase",
    "ShareMethod",
    "ShareOutcome",
    "percentage",
    "share_text",
]
