"""Async helpers for running external tools (npm, npx, gradle, adb, firebase)."""

from __future__ import annotations

import asyncio
import os
import shlex
from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from deploid.errors import CommandError, CommandNotFoundError
from deploid.foundation.logging_utils import redact


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""


def _decode(payload: bytes | None) -> str:
    if not payload:
        return ""
    return payload.decode("utf-8", errors="replace")


def _prepare(
    argv: Sequence[Any], cwd: str | os.PathLike[str] | None
) -> tuple[list[str], str | None]:
    args = [os.fspath(arg) if isinstance(arg, Path) else str(arg) for arg in argv]
    if not args:
        raise ValueError("argv must not be empty")
    cwd_text = os.fspath(cwd) if cwd is not None else None
    if cwd_text is not None and not os.path.isdir(cwd_text):
        raise FileNotFoundError(f"Working directory does not exist: {cwd_text}")
    return args, cwd_text


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()


async def run_command(
    argv: Sequence[Any],
    *,
    cwd: str | os.PathLike[str] | None = None,
    env: Mapping[str, str] | None = None,
    logger: Any | None = None,
    capture: bool = False,
    secrets: Iterable[str] = (),
) -> CommandResult:
    """Run `argv` to completion and return its result.

    stdio is inherited unless `capture` is set. `env` entries are layered over
    the current environment. Values in `secrets` are replaced with `***` in the
    debug echo and in error messages.
    """

    args, cwd_text = _prepare(argv, cwd)
    secret_values = tuple(secret for secret in secrets if secret)
    if logger is not None:
        logger.debug_command(args, cwd=cwd_text, secrets=secret_values)

    merged_env = {**os.environ, **env} if env is not None else None
    stream = asyncio.subprocess.PIPE if capture else None

    try:
        proc = await asyncio.create_subprocess_exec(
            *args, cwd=cwd_text, env=merged_env, stdout=stream, stderr=stream
        )
    except FileNotFoundError as exc:
        raise CommandNotFoundError(args[0]) from exc

    try:
        out_bytes, err_bytes = await proc.communicate()
    except asyncio.CancelledError:
        await _kill(proc)
        raise

    stdout = redact(_decode(out_bytes), secret_values)
    stderr = redact(_decode(err_bytes), secret_values)
    returncode = proc.returncode if proc.returncode is not None else -1
    if returncode != 0:
        raise CommandError(
            args,
            returncode,
            stdout=stdout,
            stderr=stderr,
            display=redact(shlex.join(args), secret_values),
        )
    return CommandResult(argv=tuple(args), returncode=returncode, stdout=stdout, stderr=stderr)


async def command_available(argv: Sequence[Any], *, cwd: str | os.PathLike[str] | None = None) -> bool:
    """Return True when `argv` runs and exits 0."""

    try:
        await run_command(argv, cwd=cwd, capture=True)
    except (CommandNotFoundError, CommandError, OSError):
        return False
    return True


async def stream_lines(
    argv: Sequence[Any],
    *,
    cwd: str | os.PathLike[str] | None = None,
    logger: Any | None = None,
) -> AsyncIterator[str]:
    """Yield decoded stdout lines of a long-running command; stderr is inherited."""

    args, cwd_text = _prepare(argv, cwd)
    if logger is not None:
        logger.debug_command(args, cwd=cwd_text)

    try:
        proc = await asyncio.create_subprocess_exec(
            *args, cwd=cwd_text, stdout=asyncio.subprocess.PIPE
        )
    except FileNotFoundError as exc:
        raise CommandNotFoundError(args[0]) from exc

    try:
        assert proc.stdout is not None
        async for raw in proc.stdout:
            yield _decode(raw).rstrip("\r\n")
        returncode = await proc.wait()
    finally:
        await _kill(proc)

    if returncode != 0:
        raise CommandError(args, returncode)
