"""Per-user workspace holding DactiloLab's config and log directories."""

from __future__ import annotations

import contextlib
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

WORKSPACE_ENV = "DACTILOLAB_HOME"
DEFAULT_WORKSPACE = Path.home() / ".dactilolab"

_SUBDIRS = ("config", "logs")


class WorkspaceError(RuntimeError):
    """The workspace root or one of its directories is unusable."""


@dataclass(frozen=True)
class WorkspaceLayout:
    """Resolved workspace paths and whether each one was just created."""

    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        if key not in self.directories:
            raise KeyError(
                f"Unknown workspace directory '{key}'; expected one of "
                + ", ".join(self.directories)
            )
        return self.directories[key]


def workspace_root(
    env: Mapping[str, str], override: Optional[Path] = None
) -> Optional[Path]:
    """Return the user-chosen root, or ``None`` to use the default."""

    if override is not None:
        return override.expanduser().absolute()
    configured = env.get(WORKSPACE_ENV, "").strip()
    if configured:
        return Path(configured).expanduser().absolute()
    return None


def ensure_workspace(
    *,
    env: Optional[Mapping[str, str]] = None,
    path: Optional[Path] = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Return the workspace layout, creating directories when ``create``.

    An explicit ``path`` wins over ``DACTILOLAB_HOME``, which wins over
    ``~/.dactilolab``. When the default home is not writable the workspace
    moves under the system temp dir; a user-chosen root never does.
    """

    chosen = workspace_root(os.environ if env is None else env, path)
    if chosen is not None:
        return _build_layout(chosen, create=create)
    try:
        return _build_layout(DEFAULT_WORKSPACE, create=create)
    except PermissionError as exc:
        if not create:
            raise WorkspaceError(
                f"Cannot read workspace at {DEFAULT_WORKSPACE}"
            ) from exc
        fallback = Path(tempfile.gettempdir()) / "dactilolab"
        try:
            return _build_layout(fallback, create=create)
        except PermissionError as fallback_exc:
            raise WorkspaceError(
                f"Neither {DEFAULT_WORKSPACE} nor {fallback} is writable"
            ) from fallback_exc


def _build_layout(home: Path, *, create: bool) -> WorkspaceLayout:
    if home.exists() and not home.is_dir():
        raise WorkspaceError(f"Workspace path is not a directory: {home}")

    directories = {name: home / name for name in _SUBDIRS}
    created = {"home": False, **{name: False for name in _SUBDIRS}}
    if create:
        created["home"] = _make_private_dir(home)
        for name, directory in directories.items():
            created[name] = _make_private_dir(directory)
    else:
        for name, directory in directories.items():
            if directory.exists() and not directory.is_dir():
                raise WorkspaceError(
                    f"Workspace entry '{name}' is not a directory: "
                    f"{directory}"
                )
    return WorkspaceLayout(
        home=home,
        directories=MappingProxyType(directories),
        created=MappingProxyType(created),
    )


def _make_private_dir(directory: Path) -> bool:
    """Create ``directory`` (mode 0700) and report whether it was new."""

    if directory.exists():
        if not directory.is_dir():
            raise WorkspaceError(f"Expected a directory at {directory}")
        return False
    directory.mkdir(parents=True, exist_ok=True)
    with contextlib.suppress(PermissionError, NotImplementedError):
        directory.chmod(0o700)
    return True
