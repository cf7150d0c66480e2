"""Device operations over adb: deploy, list, logs, uninstall."""

from __future__ import annotations

from pipelinekit.step_types import StepRef

from deploid.android import project
from deploid.foundation import commands
from deploid.framework.context import ExecutionContext

ADB = "adb"

ADB_INSTALL_HINTS: tuple[str, ...] = (
    "Install the Android platform tools:",
    "  Ubuntu/Debian: sudo apt install android-tools-adb",
    "  macOS: brew install android-platform-tools",
    "  Or install the Android SDK and add platform-tools to PATH",
)
CONNECTION_HINTS: tuple[str, ...] = (
    "Connect your phone via USB and make sure that:",
    "  1. Developer options are enabled",
    "  2. USB debugging is enabled",
    "  3. You accepted the debugging prompt on the phone",
)


def parse_adb_devices(output: str) -> list[str]:
    """Serials of attached devices in the `device` state, from `adb devices` output."""

    serials: list[str] = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        parts = line.split()
        if len(parts) >= 2 and parts[1] == "device":
            serials.append(parts[0])
    return serials


def _log_lines(log, lines: tuple[str, ...]) -> None:
    for line in lines:
        log(line)


async def ensure_adb(ctx: ExecutionContext) -> None:
    if await commands.command_available([ADB, "version"], cwd=ctx.cwd):
        return
    _log_lines(ctx.logger.info, ADB_INSTALL_HINTS)
    raise commands.CommandNotFoundError(ADB)


async def connected_devices(ctx: ExecutionContext) -> list[str]:
    result = await commands.run_command(
        [ADB, "devices"], cwd=ctx.cwd, logger=ctx.logger, capture=True
    )
    return parse_adb_devices(result.stdout)


async def deploy_android_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("deploy-android: installing on connected devices")
    await ensure_adb(ctx)

    apk = ctx.resolve(project.ANDROID_DIR, project.DEBUG_APK)
    if not apk.is_file():
        ctx.missing_input(apk, "APK not found. Run 'deploid build' first", default="abort")
        return

    devices = await connected_devices(ctx)
    if not devices:
        ctx.logger.warn("No Android devices connected")
        _log_lines(ctx.logger.info, CONNECTION_HINTS)
        return

    force = bool(ctx.option("force", False))
    app_id = ctx.config.app_id
    for serial in devices:
        ctx.logger.info("Installing on %s...", serial)
        argv = [ADB, "-s", serial, "install", "-r"]
        if force:
            argv.append("-d")
        argv.append(str(apk))
        await commands.run_command(argv, cwd=ctx.cwd, logger=ctx.logger)
        ctx.logger.info("Installed %s on %s", app_id, serial)

        if ctx.option("launch", False):
            try:
                await commands.run_command(
                    [ADB, "-s", serial, "shell", "am", "start", "-n", f"{app_id}/.MainActivity"],
                    cwd=ctx.cwd,
                    logger=ctx.logger,
                )
            except (commands.CommandError, commands.CommandNotFoundError) as exc:
                ctx.logger.warn("Could not launch app on %s: %s", serial, exc)
            else:
                ctx.logger.info("Launched %s on %s", app_id, serial)


async def list_devices_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("list-devices: connected Android devices")
    await ensure_adb(ctx)
    await commands.run_command([ADB, "devices", "-l"], cwd=ctx.cwd, logger=ctx.logger)


async def view_logs_step(ctx: ExecutionContext) -> None:
    app_name = ctx.config.app_name
    needle = app_name.lower()
    ctx.logger.info("view-logs: streaming logcat lines for %s (Ctrl+C to stop)", app_name)
    await ensure_adb(ctx)

    await commands.run_command([ADB, "logcat", "-c"], cwd=ctx.cwd, logger=ctx.logger)
    async for line in commands.stream_lines([ADB, "logcat"], cwd=ctx.cwd, logger=ctx.logger):
        if needle in line.lower():
            print(line, flush=True)


async def uninstall_android_step(ctx: ExecutionContext) -> None:
    app_id = ctx.config.app_id
    ctx.logger.info("uninstall-android: removing %s", app_id)
    await ensure_adb(ctx)
    await commands.run_command([ADB, "uninstall", app_id], cwd=ctx.cwd, logger=ctx.logger)
    ctx.logger.info("Uninstalled %s", app_id)


STEPS = (
    StepRef(
        id="deploy-android",
        factory=lambda: deploy_android_step,
        doc="Install the debug APK on every connected device (options: force, launch).",
        source="deploid.steps.device.deploy_android_step",
        tags=("android", "device"),
    ),
    StepRef(
        id="list-devices",
        factory=lambda: list_devices_step,
        doc="Show `adb devices -l`.",
        source="deploid.steps.device.list_devices_step",
        tags=("android", "device"),
    ),
    StepRef(
        id="view-logs",
        factory=lambda: view_logs_step,
        doc="Clear logcat, then print lines mentioning the app name.",
        source="deploid.steps.device.view_logs_step",
        tags=("android", "device"),
    ),
    StepRef(
        id="uninstall-android",
        factory=lambda: uninstall_android_step,
        doc="Run `adb uninstall <appId>`.",
        source="deploid.steps.device.uninstall_android_step",
        tags=("android", "device"),
    ),
)
