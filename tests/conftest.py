from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest

from deploid.errors import CommandError, CommandNotFoundError
from deploid.foundation import commands
from deploid.foundation.logging_utils import Logger
from deploid.framework.config import DeploidConfig
from deploid.framework.context import ExecutionContext, create_context

BASE_CONFIG: dict[str, Any] = {
    "appName": "Demo App",
    "appId": "com.example.demo",
    "web": {"framework": "vite", "webDir": "dist"},
    "android": {"packaging": "capacitor", "targetSdk": 35, "minSdk": 24},
}


def merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def build_config(overrides: dict[str, Any] | None = None) -> DeploidConfig:
    config, _warnings = DeploidConfig.from_dict(merge(BASE_CONFIG, overrides or {}))
    return config


class FakeCommands:
    """Records argv lists instead of spawning processes."""

    def __init__(self) -> None:
        self.calls: list[tuple[tuple[str, ...], dict[str, Any]]] = []
        self.outputs: dict[tuple[str, ...], str] = {}
        self.failures: set[tuple[str, ...]] = set()
        self.missing: set[str] = set()
        self.available = True
        self.availability_checks: list[tuple[str, ...]] = []

    def _matches(self, args: tuple[str, ...], prefixes) -> bool:
        return any(args[: len(prefix)] == prefix for prefix in prefixes)

    async def run_command(self, argv, **kwargs) -> commands.CommandResult:
        args = tuple(str(arg) for arg in argv)
        self.calls.append((args, kwargs))
        if args[0] in self.missing:
            raise CommandNotFoundError(args[0])
        if self._matches(args, self.failures):
            raise CommandError(args, 1, stderr="boom")
        stdout = ""
        for prefix, output in self.outputs.items():
            if args[: len(prefix)] == prefix:
                stdout = output
        return commands.CommandResult(argv=args, returncode=0, stdout=stdout)

    async def command_available(self, argv, **kwargs) -> bool:
        self.availability_checks.append(tuple(str(arg) for arg in argv))
        return self.available

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        return [args for args, _kwargs in self.calls]


@pytest.fixture
def fake_commands(monkeypatch) -> FakeCommands:
    fake = FakeCommands()
    monkeypatch.setattr(commands, "run_command", fake.run_command)
    monkeypatch.setattr(commands, "command_available", fake.command_available)
    return fake


@pytest.fixture
def make_ctx(tmp_path: Path):
    def _make(
        overrides: dict[str, Any] | None = None,
        *,
        options: dict[str, Any] | None = None,
        level: str = "debug",
        prompt=None,
    ) -> ExecutionContext:
        return create_context(
            tmp_path,
            build_config(overrides),
            options=options,
            logger=Logger(level),
            prompt=prompt,
        )

    return _make
