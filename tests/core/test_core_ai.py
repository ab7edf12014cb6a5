from __future__ import annotations

import asyncio

import httpx
import pytest

from dactilolab.core import ai
from dactilolab.core.ai import (
    MissingCredentialError,
    load_client,
    resolve_api_key,
)
from dactilolab.quiz.errors import GenerationErrorKind
from dactilolab.quiz.session import QuizController, SetupPhase
from dactilolab.settings import Settings


class _RecordingOpenAI:
    instances: list["_RecordingOpenAI"] = []

    def __init__(self, **kwargs) -> None:
        self.init_kwargs = kwargs
        _RecordingOpenAI.instances.append(self)


@pytest.fixture
def recording_openai(monkeypatch: pytest.MonkeyPatch):
    _RecordingOpenAI.instances = []
    monkeypatch.setattr(ai, "OpenAI", _RecordingOpenAI)
    monkeypatch.setattr(ai, "load_dotenv", lambda *a, **k: False)
    return _RecordingOpenAI


def test_resolve_api_key_strips_and_blanks_to_none() -> None:
    assert resolve_api_key({"OPENAI_API_KEY": "  sk-test  "}) == "sk-test"
    assert resolve_api_key({"OPENAI_API_KEY": "   "}) is None
    assert resolve_api_key({}) is None


def test_resolve_api_key_loads_dotenv_for_process_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    calls: list[bool] = []

    def fake_load_dotenv(*args, **kwargs) -> bool:
        calls.append(True)
        monkeypatch.setenv("OPENAI_API_KEY", "from-dotenv")
        return True

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(ai, "load_dotenv", fake_load_dotenv)
    assert resolve_api_key() == "from-dotenv"
    assert calls == [True]


def test_load_client_requires_api_key(
    monkeypatch: pytest.MonkeyPatch, recording_openai
) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(MissingCredentialError) as exc:
        load_client()
    assert "OPENAI_API_KEY" in str(exc.value)
    assert recording_openai.instances == []


def test_load_client_passes_key_and_timeout(recording_openai) -> None:
    client = load_client(env={"OPENAI_API_KEY": "sk-live"}, timeout=12.5)
    assert client is recording_openai.instances[-1]
    assert client.init_kwargs == {
        "api_key": "sk-live",
        "max_retries": 0,
        "timeout": 12.5,
    }


def test_load_client_omits_timeout_when_unset(recording_openai) -> None:
    client = load_client(env={"OPENAI_API_KEY": "sk-live"})
    assert client.init_kwargs == {"api_key": "sk-live", "max_retries": 0}


def test_load_client_disables_sdk_retries() -> None:
    client = load_client(env={"OPENAI_API_KEY": "sk-test"})
    assert client.max_retries == 0

    patient = load_client(env={"OPENAI_API_KEY": "sk-test"}, max_retries=3)
    assert patient.max_retries == 3


def test_rate_limited_start_sends_one_request_per_attempt(no_sleep) -> None:
    requests: list[httpx.Request] = []

    def always_throttled(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            429,
            json={
                "error": {
                    "message": "Rate limit reached",
                    "type": "requests",
                    "code": "rate_limit_exceeded",
                }
            },
        )

    transport = httpx.MockTransport(always_throttled)
    client = load_client(env={"OPENAI_API_KEY": "sk-test"}).copy(
        http_client=httpx.Client(transport=transport)
    )
    settings = Settings()
    controller = QuizController.from_settings(
        settings, client=client, sleep=no_sleep
    )

    final = asyncio.run(controller.start("Puntos Característicos", "Perito"))

    assert isinstance(final, SetupPhase)
    assert final.error.kind is GenerationErrorKind.TRANSIENT_SERVICE_ERROR
    assert len(requests) == 1 + settings.retry.max_retries
    assert no_sleep.calls == [settings.retry.delay_seconds] * 2
