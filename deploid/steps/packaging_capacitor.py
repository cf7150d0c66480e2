"""Wrap the built web app in a Capacitor Android project and configure it."""

from __future__ import annotations

import shlex
import shutil
from pathlib import Path

from pipelinekit.step_types import StepRef

from deploid.android import gradle, manifest, project
from deploid.errors import ConfigError
from deploid.foundation import commands
from deploid.foundation.files import read_json_mapping, read_text_file, write_json_file, write_text_file
from deploid.framework.config import DeploidConfig
from deploid.framework.context import ExecutionContext
from deploid.steps.assets import ANDROID_ICON_SIZES, DEFAULT_OUTPUT_DIR
from deploid.steps.capacitor_cli import ensure_capacitor_cli, run_cap
from deploid.templates import android as android_templates

KIND_ID = "packaging-capacitor"
CAPACITOR_CONFIG_JSON = "capacitor.config.json"
PUSH_NOTIFICATIONS_PACKAGE = "@capacitor/push-notifications"
LAUNCHER_ICON_NAMES: tuple[str, ...] = ("ic_launcher.png", "ic_launcher_foreground.png")


async def initialize_capacitor(ctx: ExecutionContext) -> None:
    if ctx.resolve(CAPACITOR_CONFIG_JSON).exists():
        ctx.logger.debug("Capacitor already initialized")
        return
    ctx.logger.info("Initializing Capacitor...")
    config = ctx.config
    await run_cap(ctx, ["init", config.app_name, config.app_id, "--web-dir", config.web.web_dir])


async def build_web_app(ctx: ExecutionContext) -> None:
    command = ctx.config.web.build_command
    argv = shlex.split(command)
    if not argv:
        raise ConfigError("web.buildCommand is empty")
    ctx.logger.info("Building web app: %s", command)
    await commands.run_command(argv, cwd=ctx.cwd, logger=ctx.logger)


async def sync_web_assets(ctx: ExecutionContext) -> None:
    ctx.logger.info("Syncing web assets...")
    await build_web_app(ctx)
    await run_cap(ctx, ["sync"])


async def add_android_platform(ctx: ExecutionContext) -> None:
    if ctx.resolve(project.ANDROID_DIR).exists():
        ctx.logger.debug("Android platform already exists")
        return
    ctx.logger.info("Adding Android platform...")
    await run_cap(ctx, ["add", "android"])


def update_capacitor_config(ctx: ExecutionContext) -> bool:
    path = ctx.resolve(CAPACITOR_CONFIG_JSON)
    if not path.is_file():
        return False
    try:
        payload = read_json_mapping(path)
    except (OSError, ValueError) as exc:
        ctx.logger.warn("Failed to update %s: %s", CAPACITOR_CONFIG_JSON, exc)
        return False

    updated = False
    for key, value in (("appName", ctx.config.app_name), ("appId", ctx.config.app_id)):
        if payload.get(key) != value:
            payload[key] = value
            updated = True
            ctx.logger.debug("Updating Capacitor %s: %s", key, value)
    if updated:
        write_json_file(path, payload)
    return updated


def _patch_text_file(ctx: ExecutionContext, path: Path, patch) -> bool:
    if not path.is_file():
        return False
    before = read_text_file(path)
    after = patch(before)
    if after == before:
        return False
    write_text_file(path, after)
    ctx.logger.debug("Updated %s", path.relative_to(ctx.cwd).as_posix())
    return True


def patch_app_build_gradle(text: str, config: DeploidConfig, *, has_google_services_json: bool) -> str:
    android = config.android
    text = gradle.set_application_id(text, config.app_id)
    text = gradle.set_sdk_versions(text, target_sdk=android.target_sdk, min_sdk=android.min_sdk)
    if android.version is not None:
        text = gradle.set_version(text, code=android.version.code, name=android.version.name)
    text = gradle.ensure_java_version(text)
    if android.build is not None:
        text = gradle.apply_release_options(text, android.build)
        if android.build.enable_multidex:
            text = gradle.enable_multidex(text)
    if not has_google_services_json:
        text = gradle.remove_google_services(text)
    return text


def update_manifest_and_resources(ctx: ExecutionContext) -> None:
    config = ctx.config
    result = manifest.update_manifest(
        ctx.resolve(project.MANIFEST_PATH),
        app_name=config.app_name,
        app_id=config.app_id,
        android=config.android,
    )
    for change in result.changes:
        ctx.logger.debug("AndroidManifest.xml: %s", change)
    if result.previous_package is not None:
        ctx.logger.info(
            "Updated package name in AndroidManifest.xml: %s -> %s",
            result.previous_package,
            config.app_id,
        )
        ctx.logger.warn(
            "Package name changed: this creates a new app identity. "
            "Existing installs will be treated as a different app."
        )

    if manifest.update_strings_app_name(ctx.resolve(project.STRINGS_PATH), config.app_name):
        ctx.logger.debug("Set app_name in strings.xml: %s", config.app_name)


def update_gradle_files(ctx: ExecutionContext) -> None:
    config = ctx.config
    write_text_file(
        ctx.resolve(project.GRADLE_PROPERTIES), gradle.render_gradle_properties(project.java_home())
    )
    ctx.logger.debug("Wrote gradle.properties (Java home %s)", project.java_home())

    app_gradle = ctx.resolve(project.APP_BUILD_GRADLE)
    if app_gradle.is_file():
        previous_id = gradle.read_application_id(read_text_file(app_gradle))
        has_services = ctx.resolve(project.GOOGLE_SERVICES_JSON).is_file()
        _patch_text_file(
            ctx,
            app_gradle,
            lambda text: patch_app_build_gradle(text, config, has_google_services_json=has_services),
        )
        if previous_id is not None and previous_id != config.app_id:
            ctx.logger.info(
                "Updated applicationId in build.gradle: %s -> %s", previous_id, config.app_id
            )

    android = config.android
    _patch_text_file(
        ctx,
        ctx.resolve(project.VARIABLES_GRADLE),
        lambda text: gradle.set_sdk_versions(text, target_sdk=android.target_sdk, min_sdk=android.min_sdk),
    )
    for module_gradle in project.MODULE_BUILD_GRADLES:
        _patch_text_file(ctx, ctx.resolve(module_gradle), gradle.ensure_java_version)
    _patch_text_file(ctx, ctx.resolve(project.ROOT_BUILD_GRADLE), gradle.set_android_gradle_plugin)
    _patch_text_file(
        ctx, ctx.resolve(project.GRADLE_WRAPPER_PROPERTIES), gradle.set_wrapper_distribution
    )


def update_android_config(ctx: ExecutionContext) -> None:
    if not ctx.resolve(project.MANIFEST_PATH).is_file():
        ctx.logger.debug("AndroidManifest.xml not found, skipping Android configuration")
        return

    ctx.logger.info("Updating Android configuration...")
    update_capacitor_config(ctx)
    update_manifest_and_resources(ctx)
    write_text_file(
        ctx.resolve(project.NETWORK_SECURITY_CONFIG_PATH), android_templates.NETWORK_SECURITY_CONFIG
    )
    ctx.logger.debug("Wrote network security configuration")
    update_gradle_files(ctx)


def copy_android_icons(ctx: ExecutionContext) -> int:
    assets = ctx.config.assets
    icons_dir = ctx.resolve((assets.output if assets else None) or DEFAULT_OUTPUT_DIR, "android")
    res_dir = ctx.resolve(project.RES_DIR)

    if not icons_dir.is_dir():
        if assets is None or not assets.source:
            ctx.logger.debug("No assets configured, skipping icon copy")
        else:
            ctx.missing_input(icons_dir, "Generated Android icons not found, skipping icon copy")
        return 0
    if not res_dir.is_dir():
        ctx.logger.debug("Android res directory not found, skipping icon copy")
        return 0

    ctx.logger.info("Copying generated icons to Android project...")
    copied = 0
    for density_dir, _size in ANDROID_ICON_SIZES:
        source = icons_dir / density_dir / "ic_launcher.png"
        if not source.is_file():
            ctx.missing_input(source, "Generated icon missing")
            continue
        target_dir = res_dir / density_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        for name in LAUNCHER_ICON_NAMES:
            shutil.copyfile(source, target_dir / name)
            ctx.logger.debug("Copied icon: %s/%s", density_dir, name)
            copied += 1
    return copied


def deployment_scripts(config: DeploidConfig) -> dict[str, str]:
    apk = (project.ANDROID_DIR / project.DEBUG_APK).as_posix()
    return {
        "deploy:phone": f"adb install -r {apk}",
        "deploy:phone-force": f"adb install -r -d {apk}",
        "deploy:uninstall": f"adb uninstall {config.app_id}",
        "deploy:list": "adb devices",
        "deploy:logcat": f"adb logcat | grep -i {shlex.quote(config.app_name)}",
        "deploy:clean": f"adb shell pm clear {config.app_id}",
    }


def add_deployment_scripts(ctx: ExecutionContext) -> list[str]:
    path = ctx.resolve("package.json")
    if not path.is_file():
        return []
    try:
        package_json = read_json_mapping(path)
    except (OSError, ValueError) as exc:
        ctx.logger.warn("Could not add deployment scripts: %s", exc)
        return []

    scripts = package_json.get("scripts")
    if not isinstance(scripts, dict):
        scripts = {}
    added: list[str] = []
    for name, command in deployment_scripts(ctx.config).items():
        if not scripts.get(name):
            scripts[name] = command
            added.append(name)
    if added:
        package_json["scripts"] = scripts
        write_json_file(path, package_json)
        ctx.logger.debug("Added deployment scripts to package.json: %s", ", ".join(added))
    return added


async def add_push_notifications_plugin(ctx: ExecutionContext) -> None:
    ctx.logger.info("Adding push notifications plugin...")
    try:
        await commands.run_command(
            ["npm", "install", PUSH_NOTIFICATIONS_PACKAGE], cwd=ctx.cwd, logger=ctx.logger
        )
    except (commands.CommandError, commands.CommandNotFoundError) as exc:
        ctx.logger.warn("Failed to add push notifications plugin: %s", exc)
        ctx.logger.info("You can add it later with: npm install %s", PUSH_NOTIFICATIONS_PACKAGE)
        return
    ctx.logger.debug("Installed %s; Capacitor registers it on the next sync", PUSH_NOTIFICATIONS_PACKAGE)


async def packaging_capacitor_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("packaging-capacitor: wrapping %s for Android", ctx.config.app_name)
    await ensure_capacitor_cli(ctx)
    await initialize_capacitor(ctx)
    await sync_web_assets(ctx)
    await add_android_platform(ctx)
    update_android_config(ctx)
    copy_android_icons(ctx)
    add_deployment_scripts(ctx)
    await add_push_notifications_plugin(ctx)
    ctx.logger.info("Capacitor packaging complete")


STEPS = (
    StepRef(
        id=KIND_ID,
        factory=lambda: packaging_capacitor_step,
        doc="Initialise/sync Capacitor, add the Android platform and configure the native project.",
        source="deploid.steps.packaging_capacitor.packaging_capacitor_step",
        tags=("android", "packaging"),
    ),
)

