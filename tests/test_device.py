import asyncio

import pytest

from deploid.android import project
from deploid.errors import CommandNotFoundError, MissingInputError
from deploid.foundation import commands
from deploid.steps import device

ADB_DEVICES = """List of devices attached
* daemon started successfully
emulator-5554\tdevice
R58M123ABC\tunauthorized
0123456789\tdevice

"""


@pytest.fixture
def debug_apk(tmp_path):
    apk = tmp_path / project.ANDROID_DIR / project.DEBUG_APK
    apk.parent.mkdir(parents=True)
    apk.write_bytes(b"apk")
    return apk


def test_parse_adb_devices_keeps_ready_devices():
    assert device.parse_adb_devices(ADB_DEVICES) == ["emulator-5554", "0123456789"]
    assert device.parse_adb_devices("List of devices attached\n\n") == []


def test_missing_adb_raises_with_hints(make_ctx, fake_commands, capsys):
    fake_commands.available = False

    with pytest.raises(CommandNotFoundError):
        asyncio.run(device.deploy_android_step(make_ctx()))

    captured = capsys.readouterr()
    assert "[error]" not in captured.err
    assert "android-platform-tools" in captured.out


def test_missing_apk_aborts(make_ctx, fake_commands):
    with pytest.raises(MissingInputError, match="APK not found"):
        asyncio.run(device.deploy_android_step(make_ctx()))


def test_no_devices_warns(make_ctx, fake_commands, debug_apk, capsys):
    fake_commands.outputs[("adb", "devices")] = "List of devices attached\n"

    asyncio.run(device.deploy_android_step(make_ctx()))

    captured = capsys.readouterr()
    assert "No Android devices connected" in captured.err
    assert "USB debugging" in captured.out
    assert fake_commands.argvs == [("adb", "devices")]


def test_installs_on_every_device(make_ctx, fake_commands, debug_apk):
    fake_commands.outputs[("adb", "devices")] = ADB_DEVICES

    asyncio.run(device.deploy_android_step(make_ctx()))

    assert fake_commands.argvs[1:] == [
        ("adb", "-s", "emulator-5554", "install", "-r", str(debug_apk)),
        ("adb", "-s", "0123456789", "install", "-r", str(debug_apk)),
    ]
    assert fake_commands.calls[0][1]["capture"] is True


def test_force_and_launch(make_ctx, fake_commands, debug_apk):
    fake_commands.outputs[("adb", "devices")] = "emulator-5554\tdevice\n"

    asyncio.run(device.deploy_android_step(make_ctx(options={"force": True, "launch": True})))

    assert fake_commands.argvs[1:] == [
        ("adb", "-s", "emulator-5554", "install", "-r", "-d", str(debug_apk)),
        ("adb", "-s", "emulator-5554", "shell", "am", "start", "-n", "com.example.demo/.MainActivity"),
    ]


def test_launch_failure_is_a_warning(make_ctx, fake_commands, debug_apk, capsys):
    fake_commands.outputs[("adb", "devices")] = "emulator-5554\tdevice\n"
    fake_commands.failures.add(("adb", "-s", "emulator-5554", "shell"))

    asyncio.run(device.deploy_android_step(make_ctx(options={"launch": True})))

    assert "Could not launch app on emulator-5554" in capsys.readouterr().err


def test_list_devices_and_uninstall(make_ctx, fake_commands):
    ctx = make_ctx()

    asyncio.run(device.list_devices_step(ctx))
    asyncio.run(device.uninstall_android_step(ctx))

    assert fake_commands.argvs == [
        ("adb", "devices", "-l"),
        ("adb", "uninstall", "com.example.demo"),
    ]


def test_view_logs_filters_on_app_name(make_ctx, fake_commands, monkeypatch, capsys):
    streamed = []

    async def fake_stream_lines(argv, **kwargs):
        streamed.append(tuple(argv))
        for line in (
            "I/ActivityManager: Start proc com.example.demo",
            "D/DEMO APP: console ready",
            "W/System: unrelated",
        ):
            yield line

    monkeypatch.setattr(commands, "stream_lines", fake_stream_lines)

    asyncio.run(device.view_logs_step(make_ctx()))

    assert fake_commands.argvs == [("adb", "logcat", "-c")]
    assert streamed == [("adb", "logcat")]
    out = capsys.readouterr().out
    assert "D/DEMO APP: console ready" in out
    assert "unrelated" not in out
