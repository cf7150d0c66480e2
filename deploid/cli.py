from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from pipelinekit.engine.pipeline import PipelineCancelled, run_pipeline
from pipelinekit.step_types import NamedStep

from deploid import __version__
from deploid.errors import DeploidError
from deploid.foundation.logging_utils import Logger, create_logger
from deploid.framework.config import DeploidConfig, load_config
from deploid.framework.context import ExecutionContext, create_context
from deploid.framework.plugin_loader import load_plugin, load_plugins_from_config

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

# Subcommands that run a fixed list of steps.
STEP_COMMANDS: dict[str, Callable[[DeploidConfig], list[str]]] = {
    "assets": lambda config: ["assets"],
    "package": lambda config: [f"packaging-{config.android.packaging}"],
    "build": lambda config: ["build-android"],
    "debug": lambda config: ["debug-network"],
    "deploy": lambda config: ["deploy-android"],
    "devices": lambda config: ["list-devices"],
    "logs": lambda config: ["view-logs"],
    "uninstall": lambda config: ["uninstall-android"],
    "ios": lambda config: ["prepare-ios"],
    "ios:assets": lambda config: ["ios-assets"],
    "ios:handbook": lambda config: ["ios-handbook"],
    "firebase": lambda config: ["firebase"],
    "publish": lambda config: ["publish"],
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deploid", description="Build -> package -> sign -> publish web apps to Android"
    )
    parser.add_argument("--version", action="version", version=f"deploid {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--debug", action="store_true", help="Verbose diagnostics")

    init = sub.add_parser("init", help="Set up config and base folders")
    init.add_argument(
        "-f", "--framework", default="vite", help="Web framework (vite|next|cra|static)"
    )
    init.add_argument(
        "-p", "--packaging", default="capacitor", help="Android packaging engine (capacitor|tauri|twa)"
    )

    sub.add_parser("list-steps", help="List bundled steps")
    sub.add_parser("run", parents=[common], help="Run the steps derived from the config")
    sub.add_parser("assets", parents=[common], help="Generate icons")
    sub.add_parser("package", parents=[common], help="Wrap the app for Android")
    sub.add_parser("build", parents=[common], help="Build APK/AAB")
    sub.add_parser("debug", parents=[common], help="Add network debugging tools to the project")

    deploy = sub.add_parser("deploy", parents=[common], help="Install the APK on connected devices")
    deploy.add_argument("-f", "--force", action="store_true", help="Allow version downgrade")
    deploy.add_argument("-l", "--launch", action="store_true", help="Launch the app after install")

    sub.add_parser("devices", parents=[common], help="List connected Android devices")
    sub.add_parser("logs", parents=[common], help="View app logs from a connected device")
    sub.add_parser("uninstall", parents=[common], help="Uninstall the app from connected devices")
    sub.add_parser("ios", parents=[common], help="Prepare the iOS project for Mac handoff")
    sub.add_parser("ios:assets", parents=[common], help="Generate the iOS app icon set")
    sub.add_parser("ios:handbook", parents=[common], help="Write iOS handoff documentation")

    firebase = sub.add_parser("firebase", parents=[common], help="Set up Firebase push notifications")
    firebase.add_argument("--project-id", dest="project_id", default=None, help="Firebase project ID")
    firebase.add_argument(
        "--auto-create", dest="auto_create", action="store_true", help="Create a Firebase project"
    )

    plugins = sub.add_parser("plugins", parents=[common], help="Manage optional step packages")
    group = plugins.add_mutually_exclusive_group()
    group.add_argument("--list", action="store_true", help="List available plugins")
    group.add_argument("--install", metavar="KEY", default=None, help="Install a plugin")
    group.add_argument("--remove", metavar="KEY", default=None, help="Remove a plugin")

    sub.add_parser("publish", parents=[common], help="Publish to GitHub releases or Google Play")
    return parser


def command_options(args: argparse.Namespace) -> dict[str, Any]:
    options: dict[str, Any] = {}
    for name in ("force", "launch", "project_id", "auto_create"):
        value = getattr(args, name, None)
        if value not in (None, False):
            options[name] = value
    return options


def list_steps() -> int:
    from deploid.steps import get_step_registry  # noqa: PLC0415

    for row in get_step_registry().describe():
        tags = ", ".join(row["tags"])
        print(f"{row['step_id']:<20} {row['doc'] or ''}" + (f" [{tags}]" if tags else ""))
    return EXIT_OK


def resolve_steps(args: argparse.Namespace, ctx: ExecutionContext) -> list[NamedStep]:
    if args.command == "run":
        return load_plugins_from_config(ctx.config, cwd=ctx.cwd, logger=ctx.logger)
    names = STEP_COMMANDS[args.command](ctx.config)
    return [load_plugin(name, ctx.config, cwd=ctx.cwd, logger=ctx.logger) for name in names]


async def manage_plugins(args: argparse.Namespace, ctx: ExecutionContext) -> None:
    from deploid.framework import plugin_manager  # noqa: PLC0415

    if args.install:
        await plugin_manager.install_plugin(ctx, args.install)
    elif args.remove:
        plugin_manager.remove_plugin(ctx, args.remove)
    elif args.list:
        plugin_manager.list_plugins(ctx)
    else:
        await plugin_manager.interactive_plugin_manager(ctx)


async def run_command(args: argparse.Namespace, logger: Logger, cwd: Path) -> None:
    config = load_config(cwd, logger=logger)
    ctx = create_context(
        cwd, config, debug=bool(getattr(args, "debug", False)), options=command_options(args), logger=logger
    )
    if args.command == "plugins":
        await manage_plugins(args, ctx)
        return
    steps = resolve_steps(args, ctx)
    await run_pipeline(ctx, steps)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    if args.command == "list-steps":
        return list_steps()

    logger = create_logger(bool(getattr(args, "debug", False)))
    cwd = Path.cwd()
    try:
        if args.command == "init":
            from deploid.init_project import init_project  # noqa: PLC0415

            init_project(cwd, framework=args.framework, packaging=args.packaging, logger=logger)
            return EXIT_OK
        asyncio.run(run_command(args, logger, cwd))
    except (KeyboardInterrupt, PipelineCancelled, asyncio.CancelledError):
        logger.error("Interrupted")
        return EXIT_INTERRUPTED
    except DeploidError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE
    except Exception as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
