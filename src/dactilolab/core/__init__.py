"""Core shared helpers for DactiloLab commands."""

from __future__ import annotations

from .ai import API_KEY_ENV, MissingCredentialError, load_client
from .config import (
    TomlConfigError,
    load_toml,
    merged_tree,
    overlay,
    write_template,
)
from .logging import JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "API_KEY_ENV",
    "MissingCredentialError",
    "load_client",
    "TomlConfigError",
    "load_toml",
    "overlay",
    "merged_tree",
    "write_template",
    "JsonLogFormatter",
    "configure_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
