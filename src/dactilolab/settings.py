"""Typed application settings loaded from ``dactilolab.toml``.

Precedence is CLI overrides, then ``DACTILOLAB_*`` environment variables, then
the TOML file, then the packaged defaults. Unknown keys and invalid values are
reported as :class:`SettingsError`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from .catalog import DEFAULT_LEVEL, DEFAULT_TOPIC, LEVELS, TOPICS
from .core import config as core_config
from .core import workspace as workspace_mod

CONFIG_FILENAME = core_config.TEMPLATE_FILENAME
CONFIG_ENV = "DACTILOLAB_CONFIG"
ENV_PREFIX = "DACTILOLAB_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_DEFAULTS: dict[str, Any] = {
    "ai": {
        "model": "gpt-4o-mini",
        "temperature": 0.7,
        "max_tokens": 2500,
        "request_timeout_seconds": 60,
    },
    "quiz": {
        "topic": DEFAULT_TOPIC,
        "level": DEFAULT_LEVEL,
    },
    "retry": {
        "max_retries": 2,
        "delay_seconds": 2.0,
    },
    "share": {
        "copied_seconds": 2.0,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


class SettingsError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class AISettings:
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 2500
    request_timeout_seconds: float = 60.0


@dataclass(frozen=True)
class QuizDefaults:
    topic: str = DEFAULT_TOPIC
    level: str = DEFAULT_LEVEL


@dataclass(frozen=True)
class RetrySettings:
    """Bounded sequential retry for transient service errors."""

    max_retries: int = 2
    delay_seconds: float = 2.0


@dataclass(frozen=True)
class ShareSettings:
    copied_seconds: float = 2.0


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    verbose: bool = False


@dataclass(frozen=True)
class Settings:
    ai: AISettings = field(default_factory=AISettings)
    quiz: QuizDefaults = field(default_factory=QuizDefaults)
    retry: RetrySettings = field(default_factory=RetrySettings)
    share: ShareSettings = field(default_factory=ShareSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


@dataclass(frozen=True)
class SettingsOverrides:
    """CLI-sourced values applied on top of file/env options."""

    topic: Optional[str] = None
    level: Optional[str] = None
    model: Optional[str] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    settings: Settings
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_settings(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[SettingsOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve settings for a run and prepare the workspace."""

    overrides = overrides or SettingsOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise SettingsError(str(exc)) from exc

    requested = config_path
    if requested is None and env_map.get(CONFIG_ENV, "").strip():
        requested = Path(env_map[CONFIG_ENV].strip()).expanduser()
    if requested is not None and not requested.exists():
        raise SettingsError(f"Config file not found: {requested}")
    if requested is None:
        candidate = layout.path_for("config") / CONFIG_FILENAME
        requested = candidate if candidate.exists() else None

    try:
        tree = core_config.merged_tree(_DEFAULTS, requested)
    except core_config.TomlConfigError as exc:
        raise SettingsError(str(exc)) from exc

    _apply_env(tree, env_map)
    _apply_overrides(tree, overrides)
    return LoadResult(
        settings=build_settings(tree),
        layout=layout,
        config_path=requested,
    )


def build_settings(tree: Mapping[str, Any]) -> Settings:
    """Validate a merged configuration tree into :class:`Settings`."""

    ai = tree["ai"]
    quiz = tree["quiz"]
    retry = tree["retry"]
    share = tree["share"]
    logging_section = tree["logging"]

    topic = _require_string(quiz["topic"], field="quiz.topic")
    if topic not in TOPICS:
        raise SettingsError(
            "quiz.topic must be one of: " + ", ".join(TOPICS) + "."
        )
    level = _require_string(quiz["level"], field="quiz.level")
    if level not in LEVELS:
        raise SettingsError(
            "quiz.level must be one of: " + ", ".join(LEVELS) + "."
        )

    log_level = _require_string(
        logging_section["level"], field="logging.level"
    ).upper()
    if log_level not in _LOG_LEVELS:
        raise SettingsError(
            "logging.level must be one of " + ", ".join(_LOG_LEVELS) + "."
        )

    return Settings(
        ai=AISettings(
            model=_require_string(ai["model"], field="ai.model"),
            temperature=_require_number(
                ai["temperature"], field="ai.temperature", low=0.0, high=2.0
            ),
            max_tokens=_require_int(
                ai["max_tokens"], field="ai.max_tokens", minimum=1
            ),
            request_timeout_seconds=_require_number(
                ai["request_timeout_seconds"],
                field="ai.request_timeout_seconds",
                low=1.0,
            ),
        ),
        quiz=QuizDefaults(topic=topic, level=level),
        retry=RetrySettings(
            max_retries=_require_int(
                retry["max_retries"], field="retry.max_retries", minimum=0
            ),
            delay_seconds=_require_number(
                retry["delay_seconds"], field="retry.delay_seconds", low=0.0
            ),
        ),
        share=ShareSettings(
            copied_seconds=_require_number(
                share["copied_seconds"], field="share.copied_seconds", low=0.0
            ),
        ),
        logging=LoggingSettings(
            level=log_level,
            verbose=_require_bool(
                logging_section["verbose"], field="logging.verbose"
            ),
        ),
    )


def _apply_env(tree: dict[str, Any], env: Mapping[str, str]) -> None:
    model = env.get(f"{ENV_PREFIX}MODEL", "").strip()
    if model:
        tree["ai"]["model"] = model
    level = env.get(f"{ENV_PREFIX}LOG_LEVEL", "").strip()
    if level:
        tree["logging"]["level"] = level


def _apply_overrides(
    tree: dict[str, Any], overrides: SettingsOverrides
) -> None:
    if overrides.topic is not None:
        tree["quiz"]["topic"] = overrides.topic
    if overrides.level is not None:
        tree["quiz"]["level"] = overrides.level
    if overrides.model is not None:
        tree["ai"]["model"] = overrides.model
    if overrides.log_level is not None:
        tree["logging"]["level"] = overrides.log_level
    if overrides.verbose is not None:
        tree["logging"]["verbose"] = overrides.verbose


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SettingsError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _require_int(value: Any, *, field: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SettingsError(f"'{field}' must be an integer.")
    if value < minimum:
        raise SettingsError(f"'{field}' must be >= {minimum}.")
    return value


def _require_number(
    value: Any,
    *,
    field: str,
    low: float,
    high: Optional[float] = None,
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SettingsError(f"'{field}' must be a number.")
    number = float(value)
    if number < low or (high is not None and number > high):
        bounds = f"between {low} and {high}" if high is not None else f">= {low}"
        raise SettingsError(f"'{field}' must be {bounds}.")
    return number


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise SettingsError(f"'{field}' must be a boolean.")
    return value
