from __future__ import annotations

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import (  # noqa: E402
    FakeChatClient,
    RecordingSleep,
    batch_payload,
    make_questions,
)


@pytest.fixture
def fake_client() -> FakeChatClient:
    """A chat-completions client with no queued replies."""

    return FakeChatClient()


@pytest.fixture
def questions():
    return make_questions()


@pytest.fixture
def payload() -> list[dict[str, object]]:
    return batch_payload()


@pytest.fixture
def no_sleep() -> RecordingSleep:
    """Async sleep replacement that records requested delays."""

    return RecordingSleep()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("DACTILOLAB_HOME", str(tmp_path / "dactilolab-home"))
    for name in ("DACTILOLAB_CONFIG", "DACTILOLAB_MODEL", "DACTILOLAB_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield
