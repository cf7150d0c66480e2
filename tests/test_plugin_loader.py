import asyncio
import sys
import textwrap
from types import SimpleNamespace

import pytest

from deploid.errors import PluginNotFoundError
from deploid.framework.plugin_loader import (
    LOCAL_PLUGINS_DIR,
    load_plugin,
    load_plugins_from_config,
    plugin_package_name,
    steps_for_config,
)
from pipelinekit.engine.pipeline import run_pipeline
from pipelinekit.step_registry import StepRegistry
from pipelinekit.step_types import StepRef

from conftest import build_config


async def _bundled(ctx):
    ctx.calls.append("bundled")


REGISTRY = StepRegistry.from_refs(
    [
        StepRef(id="assets", factory=lambda: _bundled),
        StepRef(id="packaging-capacitor", factory=lambda: _bundled),
    ]
)


@pytest.fixture(autouse=True)
def _forget_local_packages():
    before = set(sys.modules)
    yield
    for name in set(sys.modules) - before:
        if name.startswith("deploid_plugin_"):
            sys.modules.pop(name, None)


def _write_local_step(root, step_name, source):
    package = root / LOCAL_PLUGINS_DIR / plugin_package_name(step_name)
    package.mkdir(parents=True)
    (package / "__init__.py").write_text(textwrap.dedent(source), encoding="utf-8")
    return package


def _run(step):
    ctx = SimpleNamespace(calls=[])
    asyncio.run(step(ctx))
    return ctx.calls


def test_package_name_replaces_hyphens():
    assert plugin_package_name("packaging-capacitor") == "deploid_plugin_packaging_capacitor"


def test_bundled_step_is_used_when_no_local_package(tmp_path):
    step = load_plugin("assets", cwd=tmp_path, registry=REGISTRY)

    assert step.id == "assets"
    assert step.origin == "bundled"
    assert _run(step) == ["bundled"]


def test_local_default_export_overrides_bundled(tmp_path):
    _write_local_step(
        tmp_path,
        "assets",
        """\
        async def default(ctx):
            ctx.calls.append("local")
        """,
    )

    step = load_plugin("assets", cwd=tmp_path, registry=REGISTRY)

    assert step.origin == "local"
    assert _run(step) == ["local"]


def test_local_named_factory_export_is_invoked(tmp_path):
    _write_local_step(
        tmp_path,
        "packaging-capacitor",
        """\
        def packaging_capacitor():
            async def step(ctx):
                ctx.calls.append("factory")
            return step
        """,
    )

    step = load_plugin("packaging-capacitor", cwd=tmp_path, registry=REGISTRY)

    assert _run(step) == ["factory"]


def test_local_package_can_use_relative_imports(tmp_path):
    package = _write_local_step(
        tmp_path,
        "assets",
        """\
        from .impl import run as default
        """,
    )
    (package / "impl.py").write_text(
        "async def run(ctx):\n    ctx.calls.append('relative')\n", encoding="utf-8"
    )

    assert _run(load_plugin("assets", cwd=tmp_path, registry=REGISTRY)) == ["relative"]


def test_local_step_ref_export_is_built(tmp_path):
    _write_local_step(
        tmp_path,
        "custom-step",
        """\
        from pipelinekit.step_types import StepRef

        async def _run(ctx):
            ctx.calls.append("ref")

        default = StepRef(id="custom-step", factory=lambda: _run)
        """,
    )

    step = load_plugin("custom-step", cwd=tmp_path, registry=REGISTRY)

    assert step.origin == "local"
    assert _run(step) == ["ref"]


def test_broken_local_package_falls_back_to_bundled(tmp_path):
    _write_local_step(tmp_path, "assets", "raise ImportError('missing dependency')\n")

    step = load_plugin("assets", cwd=tmp_path, registry=REGISTRY)

    assert step.origin == "bundled"


def test_unknown_step_raises_with_reason_and_suggestion(tmp_path):
    with pytest.raises(PluginNotFoundError, match=r"Unknown step: aset .*did you mean: assets"):
        load_plugin("aset", cwd=tmp_path, registry=REGISTRY)


def test_broken_local_package_reason_is_kept_when_nothing_matches(tmp_path):
    _write_local_step(tmp_path, "custom-step", "value = 1\n")

    with pytest.raises(PluginNotFoundError, match="exports neither 'default' nor 'custom_step'"):
        load_plugin("custom-step", cwd=tmp_path, registry=REGISTRY)


def test_steps_for_config():
    assert steps_for_config(build_config()) == ["packaging-capacitor"]
    assert steps_for_config(build_config({"assets": {"source": "logo.png"}})) == [
        "assets",
        "packaging-capacitor",
    ]
    assert steps_for_config(build_config({"plugins": ["storage", "assets"]})) == [
        "packaging-capacitor",
        "storage",
        "assets",
    ]


def test_load_plugins_from_config_uses_the_bundled_registry(tmp_path):
    config = build_config({"assets": {"source": "logo.png"}})

    steps = load_plugins_from_config(config, cwd=tmp_path)

    assert [step.id for step in steps] == ["assets", "packaging-capacitor"]
    assert all(step.origin == "bundled" for step in steps)


def test_unbundled_engine_without_local_package_fails(tmp_path):
    config = build_config({"android": {"packaging": "flutter"}})

    with pytest.raises(PluginNotFoundError, match="packaging-flutter"):
        load_plugins_from_config(config, cwd=tmp_path)


def test_tauri_packaging_runs_as_a_no_op_pipeline(make_ctx, fake_commands, tmp_path, capsys):
    ctx = make_ctx({"android": {"packaging": "tauri"}})

    steps = load_plugins_from_config(ctx.config, cwd=tmp_path)
    asyncio.run(run_pipeline(ctx, steps))

    assert [step.id for step in steps] == ["packaging-tauri"]
    assert "Tauri packaging not yet implemented" in capsys.readouterr().out
    assert fake_commands.calls == []
    assert fake_commands.availability_checks == []
    assert list(tmp_path.iterdir()) == []
