"""``dactilolab init``: bootstrap the workspace and default config."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Mapping, Sequence

from .core import config as core_config
from .core import workspace as workspace_mod
from .settings import CONFIG_FILENAME


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dactilolab init",
        description=(
            "Create the DactiloLab workspace (config and logs directories) "
            "and write the default dactilolab.toml."
        ),
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Override the workspace root (defaults to DACTILOLAB_HOME or "
            "~/.dactilolab)."
        ),
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing dactilolab.toml.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output on success.",
    )
    return parser


def _status(created: Mapping[str, bool], key: str) -> str:
    return "created" if created.get(key, False) else "exists"


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(list(argv) if argv is not None else None)

    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
    except workspace_mod.WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    target = layout.path_for("config") / CONFIG_FILENAME
    config_status = "exists"
    if args.force or not target.exists():
        try:
            core_config.write_template(target, overwrite=args.force)
        except core_config.TomlConfigError as exc:
            sys.stderr.write(str(exc) + "\n")
            return 1
        config_status = "written"

    if args.quiet:
        return 0

    created = layout.created
    lines = [f"Workspace ready at {layout.home} ({_status(created, 'home')})"]
    for name, directory in layout.directories.items():
        lines.append(f"  {name}  {directory} ({_status(created, name)})")
    lines.append(f"Config {target} ({config_status})")
    sys.stdout.write("\n".join(lines) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
