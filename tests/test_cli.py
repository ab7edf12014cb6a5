import pytest

from dactilolab import cli
from dactilolab.quiz import _main
from dactilolab.quiz.session import QuizController


@pytest.fixture(autouse=True)
def reset_metadata(monkeypatch):
    """Ensure metadata.version is controllable during tests."""

    def fake_version(name: str) -> str:
        assert name == "dactilolab"
        return "0.0-test"

    monkeypatch.setattr(cli.metadata, "version", fake_version)
    yield


def test_version_command(capsys):
    assert cli.main(["version"]) == 0
    assert capsys.readouterr().out.strip() == "0.0-test"
    assert cli.main(["-V"]) == 0
    assert capsys.readouterr().out.strip() == "0.0-test"


def test_version_command_handles_missing_package(monkeypatch, capsys):
    monkeypatch.setattr(
        cli.metadata,
        "version",
        lambda name: (_ for _ in ()).throw(cli.metadata.PackageNotFoundError()),
    )
    code = cli.main(["version"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "unknown"


def test_no_args_launches_play(monkeypatch):
    seen: list[list[str]] = []

    def fake_play(argv):
        seen.append(list(argv))
        return 0

    monkeypatch.setattr(_main, "main_play", fake_play)
    assert cli.main([]) == 0
    assert seen == [[]]


def test_help_flag_shows_usage(capsys):
    code = cli.main(["--help"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Usage: dactilolab" in captured.out
    assert "Available commands:" in captured.out


def test_list_outputs_command_table(capsys):
    code = cli.main(["list"])
    captured = capsys.readouterr()
    assert code == 0
    for name in ("play", "console", "topics", "init"):
        assert name in captured.out
    assert "(TUI)" in captured.out


def test_help_known_command(capsys):
    code = cli.main(["help", "console"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Run `dactilolab console --help`" in captured.out


def test_help_unknown_command(capsys):
    code = cli.main(["help", "nope"])
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command 'nope'" in captured.err


def test_unknown_command(capsys):
    code = cli.main(["dance"])
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command 'dance'" in captured.err
    assert "Available commands:" in captured.err


def test_topics_command_lists_catalog(capsys):
    code = cli.main(["topics"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Sistema Dactiloscópico Argentino" in captured.out
    assert "Clasificación Decadactilar" in captured.out
    for level in ("Principiante", "Universitario", "Perito", "Maestro"):
        assert level in captured.out


def test_subcommand_help_exits_cleanly(capsys):
    code = cli.main(["console", "--help"])
    captured = capsys.readouterr()
    assert code == 0
    assert "dactilolab console" in captured.out
    assert "--topic" in captured.out


def test_invalid_level_returns_usage_error(capsys):
    code = cli.main(["console", "--level", "Novato"])
    assert code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_invalid_config_is_reported(tmp_path, capsys):
    config = tmp_path / "bad.toml"
    config.write_text("[ai]\nmystery = 1\n", encoding="utf-8")
    code = cli.main(["console", "--config", str(config)])
    assert code == 2
    assert "ai.mystery" in capsys.readouterr().err


def test_console_command_wires_settings(tmp_path, monkeypatch):
    captured = {}

    def fake_session(controller, console, input_provider, **kwargs):
        captured["controller"] = controller
        captured.update(kwargs)
        return controller.phase

    monkeypatch.setattr(_main, "run_console_session", fake_session)
    code = cli.main(
        [
            "console",
            "--workspace",
            str(tmp_path / "ws"),
            "--topic",
            "Puntos Característicos",
            "--level",
            "Maestro",
        ]
    )

    assert code == 0
    assert isinstance(captured["controller"], QuizController)
    assert captured["topic"] == "Puntos Característicos"
    assert captured["level"] == "Maestro"
    assert (tmp_path / "ws" / "logs" / "dactilolab.log").exists()


def test_play_command_runs_app(tmp_path, monkeypatch):
    launched = []

    def fake_run(self):
        launched.append((self.selected_topic, self.selected_level))

    monkeypatch.setattr(_main.DactiloLabApp, "run", fake_run)
    code = cli.main(["play", "--workspace", str(tmp_path / "ws")])

    assert code == 0
    assert launched == [("Sistema Dactiloscópico Argentino", "Universitario")]
