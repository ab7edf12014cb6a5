from __future__ import annotations

from dactilolab import workspace_cli as cli
from dactilolab.core import config as core_config


def test_init_creates_workspace_and_config(tmp_path, capsys, monkeypatch):
    target = tmp_path / "workspace"
    monkeypatch.setenv("DACTILOLAB_HOME", str(target))

    code = cli.main([])

    captured = capsys.readouterr()
    assert code == 0
    assert "Workspace ready" in captured.out
    assert "(written)" in captured.out
    config = target / "config" / "dactilolab.toml"
    assert config.read_text(encoding="utf-8") == core_config.read_template()
    assert (target / "logs").is_dir()


def test_init_supports_custom_path(tmp_path, capsys):
    target = tmp_path / "custom"

    code = cli.main(["--path", str(target)])

    captured = capsys.readouterr()
    assert code == 0
    assert target.is_dir()
    assert str(target) in captured.out


def test_init_keeps_existing_config_unless_forced(tmp_path, capsys):
    target = tmp_path / "ws"
    config = target / "config" / "dactilolab.toml"
    config.parent.mkdir(parents=True)
    config.write_text("# mine\n", encoding="utf-8")

    assert cli.main(["--path", str(target)]) == 0
    assert config.read_text(encoding="utf-8") == "# mine\n"
    assert "(exists)" in capsys.readouterr().out

    assert cli.main(["--path", str(target), "--force"]) == 0
    assert config.read_text(encoding="utf-8") == core_config.read_template()


def test_init_quiet_mode(tmp_path, capsys, monkeypatch):
    monkeypatch.setenv("DACTILOLAB_HOME", str(tmp_path / "quiet"))

    code = cli.main(["--quiet"])

    captured = capsys.readouterr()
    assert code == 0
    assert captured.out == ""


def test_init_reports_workspace_errors(tmp_path, capsys):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    code = cli.main(["--path", str(blocker)])

    assert code == 1
    assert "not a directory" in capsys.readouterr().err
