import asyncio

from deploid.android import project
from deploid.steps import debug_network, packaging_stubs


def test_debug_network_writes_component_and_guide(make_ctx, tmp_path, monkeypatch):
    monkeypatch.setenv(project.JAVA_HOME_ENV_VAR, "/opt/jdk-21")
    monkeypatch.setenv("ANDROID_HOME", "/opt/android-sdk")

    asyncio.run(debug_network.debug_network_step(make_ctx()))

    assert (tmp_path / debug_network.NETWORK_DEBUG_COMPONENT_PATH).is_file()
    guide = (tmp_path / debug_network.TROUBLESHOOTING_GUIDE_PATH).read_text(encoding="utf-8")
    assert "/opt/jdk-21" in guide
    assert "/opt/android-sdk" in guide


def test_packaging_placeholders_only_log(make_ctx, tmp_path, fake_commands, capsys):
    ctx = make_ctx()

    asyncio.run(packaging_stubs.packaging_tauri_step(ctx))
    asyncio.run(packaging_stubs.packaging_twa_step(ctx))

    out = capsys.readouterr().out
    assert "Tauri packaging not yet implemented" in out
    assert "TWA packaging not yet implemented" in out
    assert fake_commands.calls == []
    assert list(tmp_path.iterdir()) == []
