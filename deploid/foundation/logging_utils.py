"""Leveled console logging for a single deploid invocation.

Each `Logger` wraps its own `logging.Logger` with explicit handlers: debug/info
lines go to stdout, warn/error lines go to stderr, all formatted as
`[<level>] <message>`. The minimum level defaults to `DEPLOID_LOG_LEVEL`
(read once at import) and is otherwise `info`.
"""

from __future__ import annotations

import logging
import os
import platform
import shlex
import sys
from collections.abc import Iterable, Sequence
from typing import IO, Any

LOG_LEVELS: tuple[str, ...] = ("debug", "info", "warn", "error")
LOG_LEVEL_ENV_VAR = "DEPLOID_LOG_LEVEL"

_LEVEL_NUMBERS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}
_LEVEL_LABELS: dict[int, str] = {number: name for name, number in _LEVEL_NUMBERS.items()}
_DIAGNOSTIC_ENV_VARS: tuple[str, ...] = (
    "JAVA_HOME",
    "ANDROID_HOME",
    "ANDROID_SDK_ROOT",
    LOG_LEVEL_ENV_VAR,
)


def parse_log_level(value: Any, path: str = "log level") -> str:
    if not isinstance(value, str):
        raise ValueError(f"Invalid {path}: {value!r} (expected one of: {', '.join(LOG_LEVELS)})")
    normalized = value.strip().lower()
    if normalized == "warning":
        normalized = "warn"
    if normalized not in _LEVEL_NUMBERS:
        raise ValueError(f"Invalid {path}: {value!r} (expected one of: {', '.join(LOG_LEVELS)})")
    return normalized


def _level_from_env() -> str:
    raw = os.environ.get(LOG_LEVEL_ENV_VAR, "")
    if not raw.strip():
        return "info"
    try:
        return parse_log_level(raw, LOG_LEVEL_ENV_VAR)
    except ValueError:
        return "info"


DEFAULT_LOG_LEVEL = _level_from_env()


def redact(text: str, secrets: Iterable[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, "***")
    return text


class _BelowWarningFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


class _LevelTagFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        label = _LEVEL_LABELS.get(record.levelno, record.levelname.lower())
        return f"[{label}] {record.getMessage()}"


class Logger:
    def __init__(
        self,
        level: str = "info",
        *,
        name: str | None = None,
        stdout: IO[str] | None = None,
        stderr: IO[str] | None = None,
    ) -> None:
        self._level = parse_log_level(level)

        # Standalone: never added to logging.Logger.manager.
        self._logger = logging.Logger(name or "deploid")
        self._logger.setLevel(_LEVEL_NUMBERS[self._level])
        self._logger.propagate = False

        formatter = _LevelTagFormatter()

        out_handler = logging.StreamHandler(stdout if stdout is not None else sys.stdout)
        out_handler.setLevel(logging.DEBUG)
        out_handler.addFilter(_BelowWarningFilter())
        out_handler.setFormatter(formatter)

        err_handler = logging.StreamHandler(stderr if stderr is not None else sys.stderr)
        err_handler.setLevel(logging.WARNING)
        err_handler.setFormatter(formatter)

        self._logger.addHandler(out_handler)
        self._logger.addHandler(err_handler)

    @property
    def level(self) -> str:
        return self._level

    def is_enabled_for(self, level: str) -> bool:
        return self._logger.isEnabledFor(_LEVEL_NUMBERS[parse_log_level(level)])

    def debug(self, message: str, *args: Any) -> None:
        self._logger.debug(message, *args)

    def info(self, message: str, *args: Any) -> None:
        self._logger.info(message, *args)

    def warn(self, message: str, *args: Any) -> None:
        self._logger.warning(message, *args)

    warning = warn

    def error(self, message: str, *args: Any) -> None:
        self._logger.error(message, *args)

    def debug_env(self) -> None:
        if not self.is_enabled_for("debug"):
            return
        self.debug("Environment:")
        self.debug("  python=%s (%s)", platform.python_version(), sys.executable)
        self.debug("  platform=%s", platform.platform())
        self.debug("  cwd=%s", os.getcwd())
        for var in _DIAGNOSTIC_ENV_VARS:
            self.debug("  %s=%s", var, os.environ.get(var) or "<unset>")

    def debug_step(self, message: str) -> None:
        self.debug("==> %s", message)

    def debug_command(
        self,
        argv: Sequence[str],
        *,
        cwd: str | os.PathLike[str] | None = None,
        secrets: Iterable[str] = (),
    ) -> None:
        if not self.is_enabled_for("debug"):
            return
        line = redact(shlex.join(str(arg) for arg in argv), tuple(secrets))
        if cwd is not None:
            self.debug("$ %s (cwd=%s)", line, os.fspath(cwd))
        else:
            self.debug("$ %s", line)

    def debug_file(self, path: str | os.PathLike[str], label: str | None = None) -> None:
        if not self.is_enabled_for("debug"):
            return
        status = "exists" if os.path.exists(path) else "missing"
        if label:
            self.debug("%s: %s (%s)", label, os.fspath(path), status)
        else:
            self.debug("%s (%s)", os.fspath(path), status)


def create_logger(debug: bool = False, **kwargs: Any) -> Logger:
    return Logger("debug" if debug else DEFAULT_LOG_LEVEL, **kwargs)
