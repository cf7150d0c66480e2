from __future__ import annotations

from collections.abc import Sequence

from deploid.foundation import commands
from deploid.framework.context import ExecutionContext

CAPACITOR_CLI: tuple[str, ...] = ("npx", "@capacitor/cli")


def cap(*args: str) -> list[str]:
    return [*CAPACITOR_CLI, *args]


async def ensure_capacitor_cli(ctx: ExecutionContext) -> None:
    if await commands.command_available(cap("--version"), cwd=ctx.cwd):
        ctx.logger.debug("Capacitor CLI found")
        return
    ctx.logger.warn("Capacitor CLI not found, installing...")
    await commands.run_command(
        ["npm", "install", "-g", "@capacitor/cli"], cwd=ctx.cwd, logger=ctx.logger
    )


async def run_cap(ctx: ExecutionContext, args: Sequence[str]) -> None:
    await commands.run_command(cap(*args), cwd=ctx.cwd, logger=ctx.logger)
