import asyncio

import pytest

from deploid.android import project
from deploid.errors import CommandError, ConfigError
from deploid.foundation import commands
from deploid.steps import firebase

APP_GRADLE = """apply plugin: 'com.android.application'

android {
    defaultConfig {
        applicationId "com.gradle.demo"
    }
}

dependencies {
    implementation project(':capacitor-android')
}
"""


@pytest.fixture
def app_gradle(tmp_path):
    path = tmp_path / project.APP_BUILD_GRADLE
    path.parent.mkdir(parents=True)
    path.write_text(APP_GRADLE, encoding="utf-8")
    return path


@pytest.fixture
def sdkconfig_download(fake_commands, monkeypatch, tmp_path):
    """`firebase apps:sdkconfig` drops google-services.json into the project root."""

    record = fake_commands.run_command

    async def run(argv, **kwargs):
        result = await record(argv, **kwargs)
        if tuple(argv[:2]) == (firebase.FIREBASE, "apps:sdkconfig"):
            (tmp_path / firebase.SDK_CONFIG_FILE).write_text('{"project_info": {}}', encoding="utf-8")
        return result

    monkeypatch.setattr(commands, "run_command", run)
    return fake_commands


def test_sanitize_project_name():
    assert firebase.sanitize_project_name("my_app v2") == "my-app-v2"


def test_package_name_prefers_gradle(make_ctx, app_gradle):
    assert firebase.package_name(make_ctx()) == "com.gradle.demo"


def test_package_name_falls_back_to_config(make_ctx):
    assert firebase.package_name(make_ctx()) == "com.example.demo"


def test_full_setup_with_project_id(make_ctx, sdkconfig_download, app_gradle, tmp_path):
    ctx = make_ctx(options={"project_id": "demo-123"})

    asyncio.run(firebase.firebase_step(ctx))

    assert sdkconfig_download.argvs == [
        ("firebase", "login"),
        ("firebase", "use", "demo-123"),
        ("firebase", "apps:create", "android", "com.gradle.demo"),
        ("firebase", "apps:sdkconfig", "android", "--out", "google-services.json"),
    ]
    assert (tmp_path / project.GOOGLE_SERVICES_JSON).is_file()
    assert not (tmp_path / firebase.SDK_CONFIG_FILE).exists()
    text = app_gradle.read_text(encoding="utf-8")
    assert "apply plugin: 'com.google.gms.google-services'" in text
    assert "firebase-messaging" in text


def test_cli_is_installed_when_missing(make_ctx, fake_commands):
    fake_commands.available = False

    asyncio.run(firebase.firebase_step(make_ctx(options={"project_id": "demo-123"})))

    assert fake_commands.argvs[0] == ("npm", "install", "-g", "firebase-tools")


def test_auto_create_uses_sanitized_directory_name(make_ctx, fake_commands, tmp_path):
    asyncio.run(firebase.firebase_step(make_ctx(options={"auto_create": True})))

    name = firebase.sanitize_project_name(tmp_path.resolve().name)
    assert ("firebase", "projects:create", name) in fake_commands.argvs
    assert ("firebase", "use", name) in fake_commands.argvs


def test_interactive_selection(make_ctx, fake_commands, capsys):
    fake_commands.outputs[("firebase", "projects:list")] = "demo-123  Demo\n"
    prompts = []

    def answer(question):
        prompts.append(question)
        return " demo-123 \n"

    asyncio.run(firebase.firebase_step(make_ctx(prompt=answer)))

    assert prompts == ["Enter project ID: "]
    assert "demo-123  Demo" in capsys.readouterr().out
    assert ("firebase", "use", "demo-123") in fake_commands.argvs


def test_empty_project_id_fails_with_manual_steps(make_ctx, fake_commands, capsys):
    with pytest.raises(ConfigError, match="No Firebase project ID"):
        asyncio.run(firebase.firebase_step(make_ctx(prompt=lambda _q: "")))

    captured = capsys.readouterr()
    assert "[error]" not in captured.err
    assert "package name: com.example.demo" in captured.out


def test_missing_sdk_config_warns(make_ctx, fake_commands, app_gradle, capsys):
    asyncio.run(firebase.firebase_step(make_ctx(options={"project_id": "demo-123"})))

    assert "google-services.json not found" in capsys.readouterr().err


def test_already_configured_gradle_is_untouched(make_ctx, fake_commands, app_gradle, capsys):
    app_gradle.write_text(APP_GRADLE + "apply plugin: 'com.google.gms.google-services'\n", encoding="utf-8")
    before = app_gradle.read_text(encoding="utf-8")

    assert firebase.configure_app_gradle(make_ctx()) is False
    assert app_gradle.read_text(encoding="utf-8") == before


def test_command_failure_is_raised(make_ctx, fake_commands):
    fake_commands.failures.add(("firebase", "login"))

    with pytest.raises(CommandError):
        asyncio.run(firebase.firebase_step(make_ctx(options={"project_id": "demo-123"})))
