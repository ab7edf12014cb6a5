"""JSON-lines logging for DactiloLab commands.

Every command writes to ``<workspace>/logs/<name>.log``, one JSON object per
record, so a session's generation attempts and retries can be inspected with
``jq``. Context passed through ``extra=`` lands under the ``context`` key.
"""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]

_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
}
_FILE_HANDLER = "dactilolab.file"
_CONSOLE_HANDLER = "dactilolab.console"


class JsonLogFormatter(logging.Formatter):
    """Render a record and its ``extra=`` fields as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "time": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS
        }
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)
        return json.dumps(entry, ensure_ascii=False, default=_json_default)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    filename: Optional[str] = None,
) -> tuple[logging.Logger, Path]:
    """Attach a rotating JSON file handler to ``name`` and return both.

    The file handler honours ``level`` (everything when ``verbose``); with
    ``verbose`` a plain-text stderr handler mirrors all records. Repeated
    calls replace the handlers installed here instead of stacking them.
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    target = _writable_log_path(
        log_dir, filename or name.rpartition(".")[2] + ".log"
    ).absolute()
    file_handler = _named_handler(logger, _FILE_HANDLER)
    if file_handler is None or Path(file_handler.baseFilename) != target:
        _drop_handler(logger, file_handler)
        file_handler = RotatingFileHandler(
            target,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.set_name(_FILE_HANDLER)
        file_handler.setFormatter(JsonLogFormatter())
        logger.addHandler(file_handler)
    file_handler.setLevel(logging.DEBUG if verbose else _level_number(level))

    console = _named_handler(logger, _CONSOLE_HANDLER)
    if verbose and console is None:
        console = logging.StreamHandler(sys.stderr)
        console.set_name(_CONSOLE_HANDLER)
        console.setLevel(logging.DEBUG)
        console.setFormatter(
            logging.Formatter("%(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(console)
    elif not verbose:
        _drop_handler(logger, console)

    return logger, target


def _level_number(level: str) -> int:
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def _named_handler(logger: logging.Logger, name: str) -> Any:
    for handler in logger.handlers:
        if handler.get_name() == name:
            return handler
    return None


def _drop_handler(
    logger: logging.Logger, handler: Optional[logging.Handler]
) -> None:
    if handler is not None:
        logger.removeHandler(handler)
        handler.close()


def _writable_log_path(log_dir: Path, filename: str) -> Path:
    try:
        return _touch_log(log_dir, filename)
    except PermissionError:
        return _touch_log(_fallback_log_dir(), filename)


def _touch_log(directory: Path, filename: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.touch(mode=0o600, exist_ok=True)
    return path


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "dactilolab-logs"


def _json_default(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return repr(value)
