import asyncio

import pytest

from deploid.android import project
from deploid.errors import CommandError, ConfigError, MissingInputError
from deploid.framework.config import SigningConfig
from deploid.steps import build_android

SIGNING = {
    "keystorePath": "release.keystore",
    "alias": "upload",
    "storePasswordEnv": "DEMO_STORE_PASSWORD",
    "keyPasswordEnv": "DEMO_KEY_PASSWORD",
}


@pytest.fixture
def android_dir(tmp_path):
    path = tmp_path / project.ANDROID_DIR
    path.mkdir()
    return path


@pytest.fixture
def passwords(monkeypatch):
    monkeypatch.setenv("DEMO_STORE_PASSWORD", "store-secret")
    monkeypatch.setenv("DEMO_KEY_PASSWORD", "key-secret")


def test_signing_arguments_read_passwords_from_env(passwords):
    signing = SigningConfig(
        keystore_path="release.keystore",
        alias="upload",
        store_password_env="DEMO_STORE_PASSWORD",
        key_password_env="DEMO_KEY_PASSWORD",
    )

    args, secrets = build_android.signing_arguments(signing, keystore="/abs/release.keystore")

    assert args == [
        "-Pandroid.injected.signing.store.file=/abs/release.keystore",
        "-Pandroid.injected.signing.store.password=store-secret",
        "-Pandroid.injected.signing.key.alias=upload",
        "-Pandroid.injected.signing.key.password=key-secret",
    ]
    assert secrets == ["store-secret", "key-secret"]


def test_signing_arguments_require_env_values(monkeypatch):
    monkeypatch.delenv("DEMO_STORE_PASSWORD", raising=False)
    signing = SigningConfig(
        keystore_path="k", alias="upload", store_password_env="DEMO_STORE_PASSWORD", key_password_env="X"
    )

    with pytest.raises(ConfigError, match="DEMO_STORE_PASSWORD is not set"):
        build_android.signing_arguments(signing, keystore="k")


def test_signing_arguments_require_alias():
    with pytest.raises(ConfigError, match="android.signing.alias"):
        build_android.signing_arguments(SigningConfig(keystore_path="k"), keystore="k")


def test_missing_android_project_aborts(make_ctx, fake_commands):
    with pytest.raises(MissingInputError, match="Run 'deploid package' first"):
        asyncio.run(build_android.build_android_step(make_ctx()))

    assert fake_commands.calls == []


def test_debug_build_only_without_keystore(make_ctx, fake_commands, android_dir, capsys):
    asyncio.run(build_android.build_android_step(make_ctx()))

    assert fake_commands.argvs == [("./gradlew", "assembleDebug")]
    _args, kwargs = fake_commands.calls[0]
    assert kwargs["cwd"] == android_dir.resolve()
    assert set(kwargs["env"]) == {"JAVA_HOME", "ANDROID_HOME"}
    assert "debug APK not found" in capsys.readouterr().err


def test_release_build_uses_configured_build_type(make_ctx, fake_commands, android_dir, tmp_path, passwords):
    (tmp_path / "release.keystore").write_bytes(b"keystore")
    ctx = make_ctx({"android": {"signing": SIGNING, "build": {"buildType": "both"}}})

    asyncio.run(build_android.build_android_step(ctx))

    tasks = [argv[1] for argv in fake_commands.argvs]
    assert tasks == ["assembleDebug", "assembleRelease", "bundleRelease"]
    release_args, release_kwargs = fake_commands.calls[1]
    assert f"-Pandroid.injected.signing.store.file={tmp_path.resolve() / 'release.keystore'}" in release_args
    assert list(release_kwargs["secrets"]) == ["store-secret", "key-secret"]


def test_release_defaults_to_bundle(make_ctx, fake_commands, android_dir, tmp_path, passwords):
    (tmp_path / "release.keystore").write_bytes(b"keystore")

    asyncio.run(build_android.build_android_step(make_ctx({"android": {"signing": SIGNING}})))

    assert [argv[1] for argv in fake_commands.argvs] == ["assembleDebug", "bundleRelease"]


def test_missing_keystore_aborts_after_debug_build(make_ctx, fake_commands, android_dir):
    ctx = make_ctx({"android": {"signing": SIGNING}})

    with pytest.raises(MissingInputError, match="Keystore not found"):
        asyncio.run(build_android.build_android_step(ctx))

    assert fake_commands.argvs == [("./gradlew", "assembleDebug")]


def test_missing_keystore_can_be_skipped(make_ctx, fake_commands, android_dir, capsys):
    ctx = make_ctx({"android": {"signing": SIGNING}, "onMissingInput": "warnAndSkip"})

    asyncio.run(build_android.build_android_step(ctx))

    assert "Keystore not found" in capsys.readouterr().err
    assert len(fake_commands.calls) == 1


def test_gradle_failure_propagates_without_logging(make_ctx, fake_commands, android_dir, capsys):
    fake_commands.failures.add(("./gradlew", "assembleDebug"))

    with pytest.raises(CommandError):
        asyncio.run(build_android.build_android_step(make_ctx()))

    assert "[error]" not in capsys.readouterr().err
