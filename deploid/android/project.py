"""Locations inside a Capacitor-generated Android project and its toolchain."""

from __future__ import annotations

import os
from pathlib import Path

ANDROID_DIR = Path("android")
APP_DIR = ANDROID_DIR / "app"
RES_DIR = APP_DIR / "src" / "main" / "res"
MANIFEST_PATH = APP_DIR / "src" / "main" / "AndroidManifest.xml"
STRINGS_PATH = RES_DIR / "values" / "strings.xml"
NETWORK_SECURITY_CONFIG_PATH = RES_DIR / "xml" / "network_security_config.xml"
APP_BUILD_GRADLE = APP_DIR / "build.gradle"
ROOT_BUILD_GRADLE = ANDROID_DIR / "build.gradle"
VARIABLES_GRADLE = ANDROID_DIR / "variables.gradle"
GRADLE_PROPERTIES = ANDROID_DIR / "gradle.properties"
GRADLE_WRAPPER_PROPERTIES = ANDROID_DIR / "gradle" / "wrapper" / "gradle-wrapper.properties"
MODULE_BUILD_GRADLES: tuple[Path, ...] = (
    ANDROID_DIR / "capacitor-cordova-android-plugins" / "build.gradle",
    APP_DIR / "capacitor.build.gradle",
)
GOOGLE_SERVICES_JSON = APP_DIR / "google-services.json"

# Relative to ANDROID_DIR, as Gradle reports them.
DEBUG_APK = Path("app/build/outputs/apk/debug/app-debug.apk")
RELEASE_APK = Path("app/build/outputs/apk/release/app-release.apk")
RELEASE_AAB = Path("app/build/outputs/bundle/release/app-release.aab")

JAVA_HOME_ENV_VAR = "DEPLOID_JAVA_HOME"
DEFAULT_JAVA_HOME = "/usr/lib/jvm/java-21-openjdk"


def java_home() -> str:
    return os.environ.get(JAVA_HOME_ENV_VAR) or DEFAULT_JAVA_HOME


def android_home() -> str:
    return (
        os.environ.get("ANDROID_HOME")
        or os.environ.get("ANDROID_SDK_ROOT")
        or str(Path.home() / "Android" / "Sdk")
    )


def gradle_env() -> dict[str, str]:
    return {"JAVA_HOME": java_home(), "ANDROID_HOME": android_home()}
