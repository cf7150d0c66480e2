import asyncio
import dataclasses
import json
import xml.etree.ElementTree as ET

import pytest
from PIL import Image

from deploid.android import project
from deploid.errors import CommandError, ConfigError
from deploid.steps import packaging_capacitor as capacitor
from deploid.steps.assets import ANDROID_ICON_SIZES
from deploid.steps.capacitor_cli import cap

MANIFEST = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android" package="com.old.app">
    <application android:label="@string/app_name">
        <activity android:name=".MainActivity" />
    </application>
</manifest>
"""

APP_GRADLE = """apply plugin: 'com.android.application'
apply plugin: 'com.google.gms.google-services'

android {
    compileSdkVersion rootProject.ext.compileSdkVersion
    defaultConfig {
        applicationId "com.old.app"
        minSdkVersion 22
        targetSdkVersion 33
        versionCode 1
        versionName "1.0"
    }
}

dependencies {
    implementation 'com.google.firebase:firebase-messaging:23.4.1'
}
"""


def _scaffold_android(root):
    manifest = root / project.MANIFEST_PATH
    manifest.parent.mkdir(parents=True)
    manifest.write_text(MANIFEST, encoding="utf-8")
    (root / project.APP_BUILD_GRADLE).write_text(APP_GRADLE, encoding="utf-8")
    (root / project.VARIABLES_GRADLE).write_text(
        "ext {\n    minSdkVersion = 22\n    compileSdkVersion = 34\n    targetSdkVersion = 34\n}\n",
        encoding="utf-8",
    )
    (root / capacitor.CAPACITOR_CONFIG_JSON).write_text(
        json.dumps({"appName": "Old", "appId": "com.old.app", "webDir": "dist"}), encoding="utf-8"
    )


def test_step_runs_capacitor_commands_in_order(make_ctx, fake_commands, tmp_path):
    ctx = make_ctx()

    asyncio.run(capacitor.packaging_capacitor_step(ctx))

    assert fake_commands.argvs == [
        tuple(cap("init", "Demo App", "com.example.demo", "--web-dir", "dist")),
        ("npm", "run", "build"),
        tuple(cap("sync")),
        tuple(cap("add", "android")),
        ("npm", "install", capacitor.PUSH_NOTIFICATIONS_PACKAGE),
    ]
    assert fake_commands.availability_checks == [tuple(cap("--version"))]


def test_missing_cli_is_installed_globally(make_ctx, fake_commands):
    fake_commands.available = False

    asyncio.run(capacitor.packaging_capacitor_step(make_ctx()))

    assert fake_commands.argvs[0] == ("npm", "install", "-g", "@capacitor/cli")


def test_existing_project_skips_init_and_platform(make_ctx, fake_commands, tmp_path):
    _scaffold_android(tmp_path)

    asyncio.run(capacitor.packaging_capacitor_step(make_ctx()))

    assert tuple(cap("init", "Demo App", "com.example.demo", "--web-dir", "dist")) not in fake_commands.argvs
    assert tuple(cap("add", "android")) not in fake_commands.argvs


def test_android_project_is_configured(make_ctx, fake_commands, tmp_path):
    _scaffold_android(tmp_path)
    ctx = make_ctx({"android": {"version": {"code": 7, "name": "1.2.0"}}})

    asyncio.run(capacitor.packaging_capacitor_step(ctx))

    root = ET.parse(tmp_path / project.MANIFEST_PATH).getroot()
    assert root.get("package") == "com.example.demo"

    app_gradle = (tmp_path / project.APP_BUILD_GRADLE).read_text(encoding="utf-8")
    assert 'applicationId "com.example.demo"' in app_gradle
    assert "targetSdkVersion 35" in app_gradle
    assert "minSdkVersion 24" in app_gradle
    assert "versionCode 7" in app_gradle
    assert "JavaVersion.VERSION_21" in app_gradle
    # No google-services.json next to the module.
    assert "google-services" not in app_gradle
    assert "firebase-messaging" not in app_gradle

    variables = (tmp_path / project.VARIABLES_GRADLE).read_text(encoding="utf-8")
    assert "targetSdkVersion = 35" in variables

    cap_config = json.loads((tmp_path / capacitor.CAPACITOR_CONFIG_JSON).read_text(encoding="utf-8"))
    assert cap_config == {"appName": "Demo App", "appId": "com.example.demo", "webDir": "dist"}

    strings = ET.parse(tmp_path / project.STRINGS_PATH).getroot()
    assert strings.find("string").text == "Demo App"
    assert (tmp_path / project.NETWORK_SECURITY_CONFIG_PATH).is_file()
    assert "org.gradle.java.home=" in (tmp_path / project.GRADLE_PROPERTIES).read_text(encoding="utf-8")


def test_google_services_kept_when_json_present(make_ctx, fake_commands, tmp_path):
    _scaffold_android(tmp_path)
    (tmp_path / project.GOOGLE_SERVICES_JSON).write_text("{}", encoding="utf-8")

    asyncio.run(capacitor.packaging_capacitor_step(make_ctx()))

    assert "com.google.gms.google-services" in (tmp_path / project.APP_BUILD_GRADLE).read_text(
        encoding="utf-8"
    )


def test_package_change_warns(make_ctx, fake_commands, tmp_path, capsys):
    _scaffold_android(tmp_path)

    asyncio.run(capacitor.packaging_capacitor_step(make_ctx()))

    captured = capsys.readouterr()
    assert "com.old.app -> com.example.demo" in captured.out
    assert "new app identity" in captured.err


def test_generated_icons_are_copied(make_ctx, tmp_path):
    for density_dir, size in ANDROID_ICON_SIZES:
        path = tmp_path / "assets-gen" / "android" / density_dir / "ic_launcher.png"
        path.parent.mkdir(parents=True)
        Image.new("RGBA", (size, size)).save(path, format="PNG")
    (tmp_path / project.RES_DIR).mkdir(parents=True)
    ctx = make_ctx({"assets": {"source": "assets/logo.png"}})

    copied = capacitor.copy_android_icons(ctx)

    assert copied == len(ANDROID_ICON_SIZES) * len(capacitor.LAUNCHER_ICON_NAMES)
    for density_dir, _size in ANDROID_ICON_SIZES:
        for name in capacitor.LAUNCHER_ICON_NAMES:
            assert (tmp_path / project.RES_DIR / density_dir / name).is_file()


def test_missing_generated_icons_warn(make_ctx, capsys):
    ctx = make_ctx({"assets": {"source": "assets/logo.png"}})

    assert capacitor.copy_android_icons(ctx) == 0
    assert "Generated Android icons not found" in capsys.readouterr().err


def test_deployment_scripts_do_not_overwrite(make_ctx, tmp_path):
    package_json = tmp_path / "package.json"
    package_json.write_text(
        json.dumps({"name": "demo", "scripts": {"build": "vite build", "deploy:list": "custom"}}),
        encoding="utf-8",
    )

    added = capacitor.add_deployment_scripts(make_ctx())

    scripts = json.loads(package_json.read_text(encoding="utf-8"))["scripts"]
    assert "deploy:list" not in added
    assert scripts["deploy:list"] == "custom"
    assert scripts["build"] == "vite build"
    assert scripts["deploy:uninstall"] == "adb uninstall com.example.demo"
    assert scripts["deploy:phone"] == "adb install -r android/app/build/outputs/apk/debug/app-debug.apk"
    assert capacitor.add_deployment_scripts(make_ctx()) == []


def test_push_plugin_failure_is_a_warning(make_ctx, fake_commands, capsys):
    fake_commands.failures.add(("npm", "install", capacitor.PUSH_NOTIFICATIONS_PACKAGE))

    asyncio.run(capacitor.packaging_capacitor_step(make_ctx()))

    assert "Failed to add push notifications plugin" in capsys.readouterr().err


def test_build_failure_propagates_without_logging(make_ctx, fake_commands, capsys):
    fake_commands.failures.add(("npm", "run", "build"))

    with pytest.raises(CommandError):
        asyncio.run(capacitor.packaging_capacitor_step(make_ctx()))

    assert "[error]" not in capsys.readouterr().err
    assert tuple(cap("sync")) not in fake_commands.argvs


def test_empty_build_command_is_rejected(make_ctx, fake_commands):
    ctx = make_ctx()
    ctx.config = dataclasses.replace(ctx.config, web=dataclasses.replace(ctx.config.web, build_command=""))

    with pytest.raises(ConfigError, match="buildCommand"):
        asyncio.run(capacitor.build_web_app(ctx))
