"""OpenAI client bootstrap shared by the quiz generator."""

from __future__ import annotations

import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from openai import OpenAI

__all__ = [
    "API_KEY_ENV",
    "MissingCredentialError",
    "load_client",
    "resolve_api_key",
]

API_KEY_ENV = "OPENAI_API_KEY"


class MissingCredentialError(RuntimeError):
    """Raised when no API key is configured for the calling environment."""


def resolve_api_key(env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the configured API key or ``None`` when it is absent/blank.

    When ``env`` is omitted the process environment is used after loading a
    ``.env`` file from the working directory.
    """

    if env is None:
        load_dotenv()
        env = os.environ
    value = env.get(API_KEY_ENV)
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_client(
    *,
    env: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
    max_retries: int = 0,
) -> OpenAI:
    """Initialize an OpenAI client using environment-derived credentials.

    The SDK's own retries are off by default; the quiz controller owns the
    retry schedule for transient failures.
    """

    api_key = resolve_api_key(env)
    if not api_key:
        raise MissingCredentialError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    kwargs: dict[str, object] = {
        "api_key": api_key,
        "max_retries": max_retries,
    }
    if timeout is not None:
        kwargs["timeout"] = timeout
    return OpenAI(**kwargs)
