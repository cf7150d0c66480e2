"""Gradle builds for the generated Android project."""

from __future__ import annotations

import os

from pipelinekit.step_types import StepRef

from deploid.android import project
from deploid.errors import ConfigError
from deploid.foundation import commands
from deploid.framework.config import SigningConfig
from deploid.framework.context import ExecutionContext

KIND_ID = "build-android"

RELEASE_TASKS: dict[str, tuple[str, ...]] = {
    "aab": ("bundleRelease",),
    "apk": ("assembleRelease",),
    "both": ("assembleRelease", "bundleRelease"),
}


def _password_from_env(env_var: str | None, key: str) -> str:
    if not env_var:
        raise ConfigError(f"Missing required config key: {key}")
    value = os.environ.get(env_var)
    if not value:
        raise ConfigError(f"Environment variable {env_var} is not set ({key})")
    return value


def signing_arguments(signing: SigningConfig, *, keystore: str) -> tuple[list[str], list[str]]:
    """Return the injected signing properties and the secret values they carry."""

    if not signing.alias:
        raise ConfigError("Missing required config key: android.signing.alias")
    store_password = _password_from_env(
        signing.store_password_env, "android.signing.storePasswordEnv"
    )
    key_password = _password_from_env(signing.key_password_env, "android.signing.keyPasswordEnv")
    args = [
        f"-Pandroid.injected.signing.store.file={keystore}",
        f"-Pandroid.injected.signing.store.password={store_password}",
        f"-Pandroid.injected.signing.key.alias={signing.alias}",
        f"-Pandroid.injected.signing.key.password={key_password}",
    ]
    return args, [store_password, key_password]


async def gradle(ctx: ExecutionContext, *args: str, secrets: list[str] | None = None) -> None:
    await commands.run_command(
        ["./gradlew", *args],
        cwd=ctx.resolve(project.ANDROID_DIR),
        env=project.gradle_env(),
        logger=ctx.logger,
        secrets=secrets or (),
    )


async def build_debug(ctx: ExecutionContext) -> None:
    ctx.logger.info("Building debug APK...")
    await gradle(ctx, "assembleDebug")

    apk = ctx.resolve(project.ANDROID_DIR, project.DEBUG_APK)
    if apk.is_file():
        ctx.logger.info("Debug APK: %s", apk)
    else:
        ctx.logger.warn("Build finished but debug APK not found at %s", apk)


async def build_release(ctx: ExecutionContext) -> None:
    android = ctx.config.android
    signing = android.signing
    if signing is None or not signing.keystore_path:
        ctx.logger.debug("No android.signing.keystorePath configured, skipping release build")
        return

    keystore = ctx.resolve(signing.keystore_path)
    if not keystore.is_file():
        ctx.missing_input(keystore, "Keystore not found, skipping release build", default="abort")
        return

    build_type = (android.build.build_type if android.build else None) or "aab"
    signing_args, secrets = signing_arguments(signing, keystore=str(keystore))
    for task in RELEASE_TASKS[build_type]:
        ctx.logger.info("Building signed release (%s)...", task)
        await gradle(ctx, task, *signing_args, secrets=secrets)

    for output in (project.RELEASE_APK, project.RELEASE_AAB):
        path = ctx.resolve(project.ANDROID_DIR, output)
        if path.is_file():
            ctx.logger.info("Release artifact: %s", path)


async def build_android_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("build-android: building Android app")

    android_dir = ctx.resolve(project.ANDROID_DIR)
    if not android_dir.is_dir():
        ctx.missing_input(
            android_dir,
            "Android project not found. Run 'deploid package' first",
            default="abort",
        )
        return

    ctx.logger.debug("JAVA_HOME=%s ANDROID_HOME=%s", project.java_home(), project.android_home())
    await build_debug(ctx)
    await build_release(ctx)
    ctx.logger.info("Android build complete")


STEPS = (
    StepRef(
        id=KIND_ID,
        factory=lambda: build_android_step,
        doc="Run Gradle: debug APK always, signed release when a keystore is configured.",
        source="deploid.steps.build_android.build_android_step",
        tags=("android", "build"),
    ),
)
