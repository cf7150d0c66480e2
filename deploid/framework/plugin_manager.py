"""Install and remove optional step packages in the project's `.deploid/plugins`."""

from __future__ import annotations

import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

from deploid.errors import ConfigError, PluginNotFoundError
from deploid.foundation import commands
from deploid.framework.context import ExecutionContext
from deploid.framework.plugin_loader import LOCAL_PLUGINS_DIR, plugin_package_name


@dataclass(frozen=True)
class PluginSpec:
    package: str
    description: str
    required: bool = False


AVAILABLE_PLUGINS: dict[str, PluginSpec] = {
    "assets": PluginSpec(
        "deploid-plugin-assets", "Generate app icons and assets from your logo", required=True
    ),
    "packaging-capacitor": PluginSpec(
        "deploid-plugin-packaging-capacitor", "Package your app with Capacitor"
    ),
    "build-android": PluginSpec("deploid-plugin-build-android", "Build Android APK/AAB files"),
    "deploy-android": PluginSpec(
        "deploid-plugin-deploy-android", "Deploy to Android devices via ADB"
    ),
    "prepare-ios": PluginSpec("deploid-plugin-prepare-ios", "Prepare iOS project for Mac handoff"),
    "debug-network": PluginSpec(
        "deploid-plugin-debug-network", "Add network debugging tools to your app"
    ),
    "storage": PluginSpec(
        "deploid-plugin-storage", "Cross-platform storage utilities for web and native"
    ),
}


def plugins_dir(cwd: str | Path) -> Path:
    return Path(cwd) / LOCAL_PLUGINS_DIR


def get_plugin_spec(key: str) -> PluginSpec:
    spec = AVAILABLE_PLUGINS.get(key)
    if spec is None:
        raise PluginNotFoundError(key, f"available plugins: {', '.join(AVAILABLE_PLUGINS)}")
    return spec


def _installed_paths(cwd: str | Path, key: str) -> list[Path]:
    root = plugins_dir(cwd)
    if not root.is_dir():
        return []
    package_name = plugin_package_name(key)
    paths = [root / package_name] if (root / package_name).is_dir() else []
    paths.extend(sorted(root.glob(f"{package_name}-*.dist-info")))
    return paths


def is_plugin_installed(cwd: str | Path, key: str) -> bool:
    return bool(_installed_paths(cwd, key))


def list_plugins(ctx: ExecutionContext) -> list[tuple[str, PluginSpec, bool]]:
    rows: list[tuple[str, PluginSpec, bool]] = []
    ctx.logger.info("Available deploid plugins:")
    for key, spec in AVAILABLE_PLUGINS.items():
        installed = is_plugin_installed(ctx.cwd, key)
        status = "installed" if installed else "not installed"
        required = " (required)" if spec.required else ""
        ctx.logger.info("  %s: %s%s [%s]", key, spec.description, required, status)
        ctx.logger.info("      package: %s", spec.package)
        rows.append((key, spec, installed))
    return rows


async def install_plugin(ctx: ExecutionContext, key: str) -> bool:
    spec = get_plugin_spec(key)
    if is_plugin_installed(ctx.cwd, key):
        ctx.logger.info("Plugin %s is already installed", spec.package)
        return False

    target = plugins_dir(ctx.cwd)
    target.mkdir(parents=True, exist_ok=True)
    ctx.logger.info("Installing %s...", spec.description)
    await commands.run_command(
        [sys.executable, "-m", "pip", "install", "--target", str(target), spec.package],
        cwd=ctx.cwd,
        logger=ctx.logger,
    )
    ctx.logger.info("Installed %s", spec.package)
    return True


def remove_plugin(ctx: ExecutionContext, key: str) -> bool:
    spec = get_plugin_spec(key)
    if spec.required:
        raise ConfigError(f"Cannot remove required plugin: {key}")

    paths = _installed_paths(ctx.cwd, key)
    if not paths:
        ctx.logger.info("Plugin %s is not installed", spec.package)
        return False

    ctx.logger.info("Removing %s...", spec.description)
    for path in paths:
        shutil.rmtree(path)
        ctx.logger.debug("Removed %s", path)
    ctx.logger.info("Removed %s", spec.package)
    return True


def _choose(ctx: ExecutionContext, keys: list[str], question: str) -> str | None:
    answer = ctx.prompt(question).strip()
    if answer in ("", "0"):
        ctx.logger.info("Cancelled")
        return None
    if not answer.isdigit() or not 1 <= int(answer) <= len(keys):
        ctx.logger.warn("Invalid choice: %s", answer)
        return None
    return keys[int(answer) - 1]


async def interactive_plugin_manager(ctx: ExecutionContext) -> None:
    ctx.logger.info("deploid plugin manager")
    optional = [key for key, spec in AVAILABLE_PLUGINS.items() if not spec.required]

    while True:
        ctx.logger.info("1. List available plugins")
        ctx.logger.info("2. Install a plugin")
        ctx.logger.info("3. Remove a plugin")
        ctx.logger.info("4. Exit")
        choice = ctx.prompt("Enter your choice (1-4): ").strip()

        if choice == "1":
            list_plugins(ctx)
        elif choice == "2":
            for index, key in enumerate(optional, start=1):
                status = "installed" if is_plugin_installed(ctx.cwd, key) else "available"
                ctx.logger.info("%d. [%s] %s", index, status, AVAILABLE_PLUGINS[key].description)
            key = _choose(ctx, optional, "Enter plugin number to install (or 0 to cancel): ")
            if key is not None:
                await install_plugin(ctx, key)
        elif choice == "3":
            installed = [key for key in optional if is_plugin_installed(ctx.cwd, key)]
            if not installed:
                ctx.logger.info("No removable plugins installed")
                continue
            for index, key in enumerate(installed, start=1):
                ctx.logger.info("%d. %s", index, AVAILABLE_PLUGINS[key].description)
            key = _choose(ctx, installed, "Enter plugin number to remove (or 0 to cancel): ")
            if key is not None:
                remove_plugin(ctx, key)
        elif choice == "4":
            return
        else:
            ctx.logger.warn("Invalid choice: %s", choice)
