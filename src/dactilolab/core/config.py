"""TOML configuration helpers and the packaged ``dactilolab.toml`` template."""

from __future__ import annotations

import contextlib
import copy
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, Optional

__all__ = [
    "TEMPLATE_FILENAME",
    "TomlConfigError",
    "load_toml",
    "merged_tree",
    "overlay",
    "read_template",
    "write_template",
]

TEMPLATE_FILENAME = "dactilolab.toml"
_TEMPLATE_PACKAGE = "dactilolab"
_CONFIG_MODE = 0o600


class TomlConfigError(RuntimeError):
    """Configuration file could not be read, parsed or merged."""


def load_toml(path: Path) -> dict[str, Any]:
    """Parse ``path`` as TOML, wrapping IO and syntax failures."""

    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        raise TomlConfigError(f"No configuration file at {path}") from exc
    try:
        return tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise TomlConfigError(f"{path}: invalid TOML ({exc})") from exc


def overlay(
    defaults: Mapping[str, Any],
    override: Mapping[str, Any],
    *,
    prefix: str = "",
) -> dict[str, Any]:
    """Return a copy of ``defaults`` updated by ``override``.

    Only keys already present in ``defaults`` may be overridden, and a table
    can only be replaced by another table; both mistakes raise
    :class:`TomlConfigError` naming the dotted key.
    """

    merged = copy.deepcopy(dict(defaults))
    for key, value in override.items():
        dotted = prefix + key
        if key not in merged:
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        if not isinstance(merged[key], Mapping):
            merged[key] = value
        elif isinstance(value, Mapping):
            merged[key] = overlay(merged[key], value, prefix=f"{dotted}.")
        else:
            raise TomlConfigError(
                f"'{dotted}' must be a table, not {type(value).__name__}."
            )
    return merged


def merged_tree(
    defaults: Mapping[str, Any], path: Optional[Path]
) -> dict[str, Any]:
    if path is None:
        return copy.deepcopy(dict(defaults))
    return overlay(defaults, load_toml(path))


def read_template() -> str:
    resource = resources.files(_TEMPLATE_PACKAGE) / TEMPLATE_FILENAME
    return resource.read_text(encoding="utf-8")


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    """Copy the packaged template to ``path`` with owner-only permissions."""

    if path.exists() and not overwrite:
        raise TomlConfigError(
            f"Refusing to replace existing config {path} (use --force)."
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(read_template(), encoding="utf-8")
    with contextlib.suppress(PermissionError):
        path.chmod(_CONFIG_MODE)
    return path
