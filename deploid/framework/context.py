from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pipelinekit.engine.pipeline import CancelToken

from deploid.errors import MissingInputError
from deploid.foundation.logging_utils import Logger, create_logger
from deploid.framework.config import DeploidConfig, MissingInputPolicy

_POLICIES: tuple[str, ...] = ("abort", "warn_and_skip")


@dataclass
class ExecutionContext:
    cwd: Path
    config: DeploidConfig
    logger: Logger
    debug: bool = False
    options: Mapping[str, Any] = field(default_factory=dict)
    cancel_token: CancelToken = field(default_factory=CancelToken)
    prompt: Callable[[str], str] = input

    def resolve(self, *parts: str | os.PathLike[str]) -> Path:
        return self.cwd.joinpath(*parts)

    def option(self, name: str, default: Any = None) -> Any:
        return self.options.get(name, default)

    def missing_input(
        self,
        path: str | os.PathLike[str],
        message: str,
        *,
        default: MissingInputPolicy = "warn_and_skip",
    ) -> None:
        """Report an absent input file under the effective missing-input policy.

        `config.on_missing_input` overrides the call site's `default`. Returns when
        the policy is `warn_and_skip`; raises `MissingInputError` for `abort`.
        """

        policy = self.config.on_missing_input or default
        if policy not in _POLICIES:
            raise ValueError(f"Unknown missing-input policy: {policy!r}")
        detail = f"{message}: {os.fspath(path)}"
        if policy == "abort":
            raise MissingInputError(detail)
        self.logger.warn(detail)


def create_context(
    cwd: str | os.PathLike[str],
    config: DeploidConfig,
    *,
    debug: bool = False,
    options: Mapping[str, Any] | None = None,
    logger: Logger | None = None,
    prompt: Callable[[str], str] | None = None,
) -> ExecutionContext:
    return ExecutionContext(
        cwd=Path(cwd).resolve(),
        config=config,
        logger=logger or create_logger(debug),
        debug=debug,
        options=dict(options or {}),
        prompt=prompt or input,
    )
