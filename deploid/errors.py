from __future__ import annotations

from collections.abc import Sequence


class DeploidError(Exception):
    """Base class for failures reported at the CLI boundary."""


class ConfigNotFoundError(DeploidError, FileNotFoundError):
    pass


class ConfigError(DeploidError, ValueError):
    pass


class PluginNotFoundError(DeploidError, LookupError):
    def __init__(self, step_name: str, reason: str | None = None) -> None:
        self.step_name = step_name
        self.reason = reason
        message = f"Unknown step: {step_name}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class PluginLoadError(DeploidError, ImportError):
    pass


class CommandNotFoundError(DeploidError, FileNotFoundError):
    def __init__(self, executable: str) -> None:
        self.executable = executable
        super().__init__(f"Command not found: {executable}")


class CommandError(DeploidError, RuntimeError):
    def __init__(
        self,
        argv: Sequence[str],
        returncode: int,
        *,
        stdout: str = "",
        stderr: str = "",
        display: str | None = None,
    ) -> None:
        self.argv = tuple(argv)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        label = display or " ".join(self.argv)
        message = f"Command failed (exit={returncode}): {label}"
        details = (stderr or stdout or "").strip()
        if details:
            message = f"{message}\n{details[-2000:]}"
        super().__init__(message)


class MissingInputError(DeploidError, FileNotFoundError):
    pass


class PublishError(DeploidError, RuntimeError):
    pass
