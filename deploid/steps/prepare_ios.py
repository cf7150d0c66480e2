"""iOS project skeleton: Capacitor platform, plist and build settings, icons, docs.

Everything here runs on any host; compiling and signing happen later in Xcode
on macOS, which is what `docs/IOS_HANDBOOK.md` walks through.
"""

from __future__ import annotations

import copy
import json
import plistlib
from pathlib import Path
from typing import Any

from pipelinekit.step_types import StepRef

from deploid.foundation import commands
from deploid.foundation.files import read_text_file, write_text_file
from deploid.framework.config import DeploidConfig
from deploid.framework.context import ExecutionContext
from deploid.steps.assets import render_icon
from deploid.steps.capacitor_cli import ensure_capacitor_cli, run_cap
from deploid.templates import ios as ios_templates

IOS_DIR = Path("ios")
IOS_APP_DIR = IOS_DIR / "App" / "App"
INFO_PLIST_PATH = IOS_APP_DIR / "Info.plist"
ENTITLEMENTS_PATH = IOS_APP_DIR / "App.entitlements"
PODFILE_PATH = IOS_DIR / "Podfile"
XCCONFIG_DIR = IOS_DIR / "Config"
APP_ICON_SET_DIR = IOS_APP_DIR / "Assets.xcassets" / "AppIcon.appiconset"
HANDBOOK_PATH = Path("docs") / "IOS_HANDBOOK.md"
CAPACITOR_CONFIG_TS = "capacitor.config.ts"

DEFAULT_VERSION_CODE = 1
DEFAULT_VERSION_NAME = "1.0.0"

NEXT_STEPS: tuple[str, ...] = (
    "Next steps:",
    "  1. Transfer the project to a Mac",
    "  2. Run: cd ios && pod install",
    "  3. Open App.xcworkspace in Xcode",
    "  4. Set signing team and build",
)


def version_info(config: DeploidConfig) -> tuple[int, str]:
    version = config.android.version
    if version is None:
        return DEFAULT_VERSION_CODE, DEFAULT_VERSION_NAME
    return version.code, version.name


def url_scheme(app_id: str) -> str:
    return app_id.rsplit(".", 1)[-1]


def update_info_plist(plist: dict[str, Any], config: DeploidConfig) -> dict[str, Any]:
    """Apply identity and version keys; privacy strings, URL types and ATS only when absent."""

    plist["CFBundleIdentifier"] = config.app_id
    plist["CFBundleDisplayName"] = config.app_name
    if config.android.version is not None:
        plist["CFBundleShortVersionString"] = config.android.version.name
        plist["CFBundleVersion"] = str(config.android.version.code)

    plist.setdefault("CFBundleURLTypes", [{"CFBundleURLSchemes": [url_scheme(config.app_id)]}])
    plist.setdefault("NSCameraUsageDescription", ios_templates.CAMERA_USAGE)
    plist.setdefault("NSPhotoLibraryUsageDescription", ios_templates.PHOTO_LIBRARY_USAGE)
    plist.setdefault("NSMicrophoneUsageDescription", ios_templates.MICROPHONE_USAGE)
    plist.setdefault("NSAppTransportSecurity", copy.deepcopy(ios_templates.APP_TRANSPORT_SECURITY))
    return plist


def insert_ios_block(text: str) -> str:
    """Add the `ios:` settings block before the closing brace of a capacitor.config.ts object."""

    if "ios:" in text:
        return text
    closing = text.rfind("}")
    if closing == -1:
        return text
    line_start = text.rfind("\n", 0, closing) + 1
    head = text[:line_start].rstrip()
    if head and head[-1] not in ",{":
        head += ","
    return f"{head}\n{ios_templates.CAPACITOR_IOS_BLOCK}{text[line_start:]}"


async def add_ios_platform(ctx: ExecutionContext) -> None:
    if ctx.resolve(IOS_DIR).exists():
        ctx.logger.debug("iOS platform already exists")
        return

    ctx.logger.info("Installing iOS platform...")
    try:
        await commands.run_command(
            ["npm", "install", "@capacitor/ios"], cwd=ctx.cwd, logger=ctx.logger
        )
    except (commands.CommandError, commands.CommandNotFoundError) as exc:
        ctx.logger.warn("Failed to install @capacitor/ios package, continuing: %s", exc)

    try:
        await run_cap(ctx, ["add", "ios"])
    except Exception:
        ctx.logger.info("Could not add the iOS platform. You may need to install @capacitor/ios first:")
        ctx.logger.info("  npm install @capacitor/ios")
        ctx.logger.info("  npx cap add ios")
        raise
    ctx.logger.info("iOS platform added")


def configure_info_plist(ctx: ExecutionContext) -> bool:
    path = ctx.resolve(INFO_PLIST_PATH)
    if not path.is_file():
        ctx.logger.debug("Info.plist not found, skipping")
        return False
    with path.open("rb") as f:
        plist = plistlib.load(f)
    update_info_plist(plist, ctx.config)
    with path.open("wb") as f:
        plistlib.dump(plist, f)
    ctx.logger.debug("Updated Info.plist")
    return True


def configure_ios_project(ctx: ExecutionContext) -> None:
    if not ctx.resolve(IOS_DIR).is_dir():
        ctx.logger.debug("iOS project not found, skipping configuration")
        return

    ctx.logger.info("Configuring iOS project...")
    config = ctx.config
    configure_info_plist(ctx)

    write_text_file(ctx.resolve(ENTITLEMENTS_PATH), ios_templates.entitlements(app_id=config.app_id))
    ctx.logger.debug("Created App.entitlements")
    write_text_file(ctx.resolve(PODFILE_PATH), ios_templates.PODFILE)
    ctx.logger.debug("Updated Podfile")

    code, name = version_info(config)
    for configuration in ("Debug", "Release"):
        write_text_file(
            ctx.resolve(XCCONFIG_DIR, f"{configuration}.xcconfig"),
            ios_templates.xcconfig(
                configuration=configuration,
                app_id=config.app_id,
                version_code=code,
                version_name=name,
            ),
        )
    ctx.logger.debug("Created xcconfig files")

    capacitor_config = ctx.resolve(CAPACITOR_CONFIG_TS)
    if capacitor_config.is_file():
        before = read_text_file(capacitor_config)
        after = insert_ios_block(before)
        if after != before:
            write_text_file(capacitor_config, after)
            ctx.logger.debug("Updated Capacitor config with iOS settings")


def _icon_pixels(size: str, scale: str) -> int:
    edge = float(size.split("x", 1)[0])
    factor = int(scale.rstrip("x"))
    return round(edge * factor)


async def ios_assets_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("ios-assets: generating iOS app icon set")

    icon_dir = ctx.resolve(APP_ICON_SET_DIR)
    contents = ios_templates.app_icon_contents()
    write_text_file(icon_dir / "Contents.json", json.dumps(contents, indent=2) + "\n")
    ctx.logger.debug("Created AppIcon.appiconset structure")

    assets = ctx.config.assets
    source = ctx.resolve(assets.source) if assets is not None and assets.source else None
    if source is None or not source.is_file():
        ctx.logger.info("Add icon files to %s, or configure assets.source to render them", APP_ICON_SET_DIR)
        return

    for image in contents["images"]:
        pixels = _icon_pixels(image["size"], image["scale"])
        render_icon(source, icon_dir / image["filename"], pixels)
        ctx.logger.debug("Generated %s (%dx%d)", image["filename"], pixels, pixels)
    ctx.logger.info("iOS icons generated (%d files)", len(contents["images"]))


async def ios_handbook_step(ctx: ExecutionContext) -> None:
    code, name = version_info(ctx.config)
    path = write_text_file(
        ctx.resolve(HANDBOOK_PATH),
        ios_templates.handbook(app_id=ctx.config.app_id, version_name=name, build_number=code),
    )
    ctx.logger.info("Created iOS handoff documentation: %s", path)


async def prepare_ios_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("prepare-ios: setting up iOS project for %s", ctx.config.app_name)
    await ensure_capacitor_cli(ctx)
    await add_ios_platform(ctx)
    configure_ios_project(ctx)
    await ios_assets_step(ctx)
    await ios_handbook_step(ctx)

    ctx.logger.info("iOS project preparation complete")
    for line in NEXT_STEPS:
        ctx.logger.info(line)


STEPS = (
    StepRef(
        id="prepare-ios",
        factory=lambda: prepare_ios_step,
        doc="Add and configure the Capacitor iOS platform, then icons and handbook.",
        source="deploid.steps.prepare_ios.prepare_ios_step",
        tags=("ios",),
    ),
    StepRef(
        id="ios-assets",
        factory=lambda: ios_assets_step,
        doc="Write AppIcon.appiconset/Contents.json and render icons from assets.source.",
        source="deploid.steps.prepare_ios.ios_assets_step",
        tags=("ios",),
    ),
    StepRef(
        id="ios-handbook",
        factory=lambda: ios_handbook_step,
        doc="Write docs/IOS_HANDBOOK.md.",
        source="deploid.steps.prepare_ios.ios_handbook_step",
        tags=("ios", "docs"),
    ),
)
