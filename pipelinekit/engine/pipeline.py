"""Sequential execution engine for named async steps.

This module is intentionally app-agnostic and must not import `deploid.*`.
"""

from __future__ import annotations

import inspect
import traceback
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol, TypeAlias


class PipelineCancelled(Exception):
    """Raised when a pipeline is stopped through its cancel token."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(f"Pipeline cancelled: {reason}" if reason else "Pipeline cancelled")


class CancelToken:
    def __init__(self) -> None:
        self._reason: str | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise PipelineCancelled(self._reason)


class StepLogger(Protocol):
    def debug(self, message: str, *args: Any) -> None:
        ...

    def error(self, message: str, *args: Any) -> None:
        ...


class StepContext(Protocol):
    logger: StepLogger
    debug: bool
    cancel_token: CancelToken


Step: TypeAlias = Callable[[Any], Awaitable[None] | None]


def step_label(step: Any) -> str:
    step_id = getattr(step, "id", None)
    if isinstance(step_id, str) and step_id.strip():
        return step_id.strip()
    name = getattr(step, "__qualname__", None) or getattr(step, "__name__", None)
    if isinstance(name, str) and name:
        return name
    return type(step).__name__


class StepRecorder(Protocol):
    def on_pipeline_start(self, ctx: StepContext, total: int) -> None:
        ...

    def on_step_start(self, ctx: StepContext, index: int, total: int, label: str) -> None:
        ...

    def on_step_end(self, ctx: StepContext, index: int, total: int, label: str) -> None:
        ...

    def on_step_error(
        self, ctx: StepContext, index: int, total: int, label: str, exc: BaseException
    ) -> None:
        ...

    def on_pipeline_end(self, ctx: StepContext, total: int) -> None:
        ...


class DefaultStepRecorder:
    def on_pipeline_start(self, ctx: StepContext, total: int) -> None:
        debug_env = getattr(ctx.logger, "debug_env", None)
        if callable(debug_env):
            debug_env()
        ctx.logger.debug("Starting pipeline with %d steps", total)

    def on_step_start(self, ctx: StepContext, index: int, total: int, label: str) -> None:
        debug_step = getattr(ctx.logger, "debug_step", None)
        message = f"Executing step {index}/{total} ({label})"
        if callable(debug_step):
            debug_step(message)
        else:
            ctx.logger.debug(message)

    def on_step_end(self, ctx: StepContext, index: int, total: int, label: str) -> None:
        ctx.logger.debug("Step %d (%s) completed successfully", index, label)

    def on_step_error(
        self, ctx: StepContext, index: int, total: int, label: str, exc: BaseException
    ) -> None:
        ctx.logger.debug("Step %d (%s) failed: %s", index, label, exc)
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()
        ctx.logger.debug("   Stack trace: %s", stack)

    def on_pipeline_end(self, ctx: StepContext, total: int) -> None:
        ctx.logger.debug("Pipeline completed successfully")


class NullStepRecorder:
    def on_pipeline_start(self, ctx: StepContext, total: int) -> None:
        return

    def on_step_start(self, ctx: StepContext, index: int, total: int, label: str) -> None:
        return

    def on_step_end(self, ctx: StepContext, index: int, total: int, label: str) -> None:
        return

    def on_step_error(
        self, ctx: StepContext, index: int, total: int, label: str, exc: BaseException
    ) -> None:
        return

    def on_pipeline_end(self, ctx: StepContext, total: int) -> None:
        return


def _validate_recorder(recorder: Any) -> None:
    required = (
        "on_pipeline_start",
        "on_step_start",
        "on_step_end",
        "on_step_error",
        "on_pipeline_end",
    )
    for name in required:
        method = getattr(recorder, name, None)
        if method is None or not callable(method):
            raise TypeError(f"Step recorder missing required method: {name}")


async def run_pipeline(
    ctx: StepContext,
    steps: Sequence[Step],
    *,
    recorder: StepRecorder | None = None,
) -> None:
    """Run `steps` one after another against `ctx`.

    The first failing step aborts the pipeline: its exception is re-raised
    unchanged and later steps never start.
    """

    if recorder is None:
        recorder = DefaultStepRecorder() if getattr(ctx, "debug", False) else NullStepRecorder()
    _validate_recorder(recorder)

    ordered = list(steps)
    for step in ordered:
        if not callable(step):
            raise TypeError(f"Pipeline step must be callable (type={type(step).__name__})")

    total = len(ordered)
    token = getattr(ctx, "cancel_token", None)
    recorder.on_pipeline_start(ctx, total)

    for index, step in enumerate(ordered, start=1):
        label = step_label(step)
        if token is not None:
            token.raise_if_cancelled()

        recorder.on_step_start(ctx, index, total, label)
        try:
            result = step(ctx)
            if inspect.isawaitable(result):
                await result
        except BaseException as exc:
            recorder.on_step_error(ctx, index, total, label, exc)
            raise
        recorder.on_step_end(ctx, index, total, label)

    recorder.on_pipeline_end(ctx, total)
