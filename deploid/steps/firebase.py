"""Firebase setup for native Android push notifications."""

from __future__ import annotations

import re
import shutil

from pipelinekit.step_types import StepRef

from deploid.android import gradle, project
from deploid.errors import ConfigError
from deploid.foundation import commands
from deploid.foundation.files import read_text_file, write_text_file
from deploid.framework.context import ExecutionContext

KIND_ID = "firebase"
FIREBASE = "firebase"
SDK_CONFIG_FILE = "google-services.json"


def sanitize_project_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "-", name)


def package_name(ctx: ExecutionContext) -> str:
    """applicationId from android/app/build.gradle, falling back to the configured appId."""

    app_gradle = ctx.resolve(project.APP_BUILD_GRADLE)
    if app_gradle.is_file():
        app_id = gradle.read_application_id(read_text_file(app_gradle))
        if app_id:
            return app_id
    return ctx.config.app_id


async def ensure_firebase_cli(ctx: ExecutionContext) -> None:
    if await commands.command_available([FIREBASE, "--version"], cwd=ctx.cwd):
        ctx.logger.debug("Firebase CLI found")
        return
    ctx.logger.info("Installing Firebase CLI...")
    await commands.run_command(
        ["npm", "install", "-g", "firebase-tools"], cwd=ctx.cwd, logger=ctx.logger
    )


async def select_project(ctx: ExecutionContext) -> str:
    project_id = ctx.option("project_id")
    if project_id:
        return str(project_id)

    if ctx.option("auto_create", False):
        name = sanitize_project_name(ctx.cwd.name)
        ctx.logger.info("Creating new Firebase project %s...", name)
        await commands.run_command(
            [FIREBASE, "projects:create", name], cwd=ctx.cwd, logger=ctx.logger
        )
        return name

    ctx.logger.info("Available Firebase projects:")
    result = await commands.run_command(
        [FIREBASE, "projects:list"], cwd=ctx.cwd, logger=ctx.logger, capture=True
    )
    print(result.stdout, flush=True)
    project_id = ctx.prompt("Enter project ID: ").strip()
    if not project_id:
        raise ConfigError("No Firebase project ID given")
    return project_id


def place_sdk_config(ctx: ExecutionContext) -> bool:
    downloaded = ctx.resolve(SDK_CONFIG_FILE)
    target = ctx.resolve(project.GOOGLE_SERVICES_JSON)
    if not downloaded.is_file():
        ctx.logger.warn(
            "%s not found. Download it from the Firebase Console and place it in %s",
            SDK_CONFIG_FILE,
            project.GOOGLE_SERVICES_JSON,
        )
        return False
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(downloaded), str(target))
    ctx.logger.info("%s placed in %s", SDK_CONFIG_FILE, target.parent)
    return True


def configure_app_gradle(ctx: ExecutionContext) -> bool:
    app_gradle = ctx.resolve(project.APP_BUILD_GRADLE)
    if not app_gradle.is_file():
        ctx.logger.warn("%s not found, skipping build.gradle updates", project.APP_BUILD_GRADLE)
        return False

    text = read_text_file(app_gradle)
    if gradle.has_google_services(text):
        ctx.logger.info("Google Services plugin already configured")
        return False
    write_text_file(app_gradle, gradle.add_google_services(text))
    ctx.logger.info("Added Google Services plugin and Firebase dependencies to %s", project.APP_BUILD_GRADLE)
    return True


async def firebase_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("firebase: configuring Firebase for native push notifications")
    try:
        await ensure_firebase_cli(ctx)
        ctx.logger.info("Please login to Firebase...")
        await commands.run_command([FIREBASE, "login"], cwd=ctx.cwd, logger=ctx.logger)

        project_id = await select_project(ctx)
        await commands.run_command([FIREBASE, "use", project_id], cwd=ctx.cwd, logger=ctx.logger)

        package = package_name(ctx)
        ctx.logger.info("Adding Android app %s to Firebase...", package)
        await commands.run_command(
            [FIREBASE, "apps:create", "android", package], cwd=ctx.cwd, logger=ctx.logger
        )
        await commands.run_command(
            [FIREBASE, "apps:sdkconfig", "android", "--out", SDK_CONFIG_FILE],
            cwd=ctx.cwd,
            logger=ctx.logger,
        )
        place_sdk_config(ctx)
        configure_app_gradle(ctx)
    except Exception:
        ctx.logger.info("Manual setup:")
        ctx.logger.info("  1. Go to https://console.firebase.google.com/")
        ctx.logger.info("  2. Create a new project")
        ctx.logger.info("  3. Add an Android app with package name: %s", package_name(ctx))
        ctx.logger.info("  4. Download %s to %s", SDK_CONFIG_FILE, project.APP_DIR)
        raise

    ctx.logger.info("Firebase setup complete")
    ctx.logger.info("Next steps: deploid build, then deploid deploy, then test push notifications")


STEPS = (
    StepRef(
        id=KIND_ID,
        factory=lambda: firebase_step,
        doc="Create/select a Firebase project, register the Android app, install google-services.json.",
        source="deploid.steps.firebase.firebase_step",
        tags=("android", "push"),
    ),
)
