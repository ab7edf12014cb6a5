from __future__ import annotations

from pathlib import Path

import pytest

from dactilolab.core import workspace as workspace_mod
from dactilolab.core.workspace import WorkspaceError, ensure_workspace


def test_ensure_workspace_creates_layout(tmp_path: Path) -> None:
    home = tmp_path / "ws"
    layout = ensure_workspace(path=home)

    assert layout.home == home.absolute()
    assert set(layout.directories) == {"config", "logs"}
    for directory in layout.directories.values():
        assert directory.is_dir()
    assert all(layout.created.values())

    again = ensure_workspace(path=home)
    assert not any(again.created.values())


def test_ensure_workspace_reads_env(tmp_path: Path) -> None:
    home = tmp_path / "from-env"
    layout = ensure_workspace(env={"DACTILOLAB_HOME": str(home)})
    assert layout.home == home.absolute()
    assert layout.path_for("logs") == home.absolute() / "logs"


def test_ensure_workspace_without_create_does_not_touch_disk(
    tmp_path: Path,
) -> None:
    home = tmp_path / "dry"
    layout = ensure_workspace(path=home, create=False)
    assert not home.exists()
    assert layout.path_for("config") == home.absolute() / "config"


def test_ensure_workspace_rejects_file_home(tmp_path: Path) -> None:
    target = tmp_path / "file"
    target.write_text("x", encoding="utf-8")
    with pytest.raises(WorkspaceError):
        ensure_workspace(path=target)


def test_path_for_unknown_key(tmp_path: Path) -> None:
    layout = ensure_workspace(path=tmp_path / "ws")
    with pytest.raises(KeyError, match="cache"):
        layout.path_for("cache")


def test_default_workspace_falls_back_to_tempdir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    default = tmp_path / "home" / ".dactilolab"
    monkeypatch.setattr(workspace_mod, "DEFAULT_WORKSPACE", default)
    monkeypatch.setattr(
        workspace_mod.tempfile, "gettempdir", lambda: str(tmp_path / "tmp")
    )
    original = workspace_mod._build_layout

    def guarded(base: Path, *, create: bool):
        if base == default:
            raise PermissionError("denied")
        return original(base, create=create)

    monkeypatch.setattr(workspace_mod, "_build_layout", guarded)
    layout = ensure_workspace(env={})
    assert layout.home == tmp_path / "tmp" / "dactilolab"
