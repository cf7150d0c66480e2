"""Resolve step names to invocable steps.

Lookup is two-tiered: a step package installed into the project's
`.deploid/plugins` directory wins over the step bundled with deploid. A local
package for step `packaging-capacitor` lives at
`.deploid/plugins/deploid_plugin_packaging_capacitor/__init__.py` and exports
either `default` or `packaging_capacitor`; the export may be a `StepRef`, a
zero-argument factory returning the step, or the step callable itself.
"""

from __future__ import annotations

import importlib.util
import inspect
import os
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from pipelinekit.step_registry import StepRegistry
from pipelinekit.step_types import NamedStep, StepOrigin, StepRef

from deploid.errors import PluginLoadError, PluginNotFoundError
from deploid.framework.config import DeploidConfig

LOCAL_PLUGINS_DIR = Path(".deploid") / "plugins"
PLUGIN_PACKAGE_PREFIX = "deploid_plugin_"
ENTRY_POINT_FILE = "__init__.py"

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.VAR_POSITIONAL,
)


def export_name(step_name: str) -> str:
    return step_name.strip().replace("-", "_")


def plugin_package_name(step_name: str) -> str:
    return PLUGIN_PACKAGE_PREFIX + export_name(step_name)


def local_plugin_entry(cwd: str | os.PathLike[str], step_name: str) -> Path | None:
    entry = Path(cwd) / LOCAL_PLUGINS_DIR / plugin_package_name(step_name) / ENTRY_POINT_FILE
    return entry if entry.is_file() else None


def _import_local_package(entry: Path) -> ModuleType:
    module_name = entry.parent.name
    spec = importlib.util.spec_from_file_location(
        module_name, entry, submodule_search_locations=[str(entry.parent)]
    )
    if spec is None or spec.loader is None:
        raise PluginLoadError(f"Cannot import step package: {entry.parent}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise PluginLoadError(f"Failed to import {entry.parent.name}: {exc}") from exc
    return module


def _is_factory(obj: Any) -> bool:
    if inspect.iscoroutinefunction(obj):
        return False
    try:
        signature = inspect.signature(obj)
    except (TypeError, ValueError):
        return False
    return not any(param.kind in _POSITIONAL_KINDS for param in signature.parameters.values())


def step_from_export(step_name: str, export: Any, *, origin: StepOrigin) -> NamedStep:
    if isinstance(export, NamedStep):
        return export
    if isinstance(export, StepRef):
        return export.build(origin=origin)
    if not callable(export):
        raise PluginLoadError(
            f"Step export for {step_name} is not callable (type={type(export).__name__})"
        )

    fn = export() if _is_factory(export) else export
    if not callable(fn):
        raise PluginLoadError(
            f"Step factory for {step_name} returned non-callable (type={type(fn).__name__})"
        )
    return NamedStep(id=step_name, fn=fn, origin=origin, doc=inspect.getdoc(export))


def _module_export(module: ModuleType, step_name: str) -> Any:
    for attr in ("default", export_name(step_name)):
        value = getattr(module, attr, None)
        if value is not None:
            return value
    raise PluginLoadError(
        f"Step package {module.__name__} exports neither 'default' nor '{export_name(step_name)}'"
    )


def _default_registry() -> StepRegistry:
    from deploid.steps import get_step_registry  # noqa: PLC0415

    return get_step_registry()


def load_plugin(
    name: str,
    config: DeploidConfig | None = None,
    *,
    cwd: str | os.PathLike[str] | None = None,
    logger: Any | None = None,
    registry: StepRegistry | None = None,
) -> NamedStep:
    """Resolve `name` to a step, preferring a project-local step package."""

    step_name = (name or "").strip()
    if not step_name:
        raise PluginNotFoundError(repr(name), "empty step name")

    if cwd is not None:
        root = Path(cwd)
    elif config is not None and config.source_path is not None:
        root = config.source_path.parent
    else:
        root = Path(os.getcwd())

    reasons: list[str] = []
    entry = local_plugin_entry(root, step_name)
    if entry is not None:
        try:
            module = _import_local_package(entry)
            step = step_from_export(step_name, _module_export(module, step_name), origin="local")
        except (PluginLoadError, TypeError, ValueError) as exc:
            if logger is not None:
                logger.debug("Local step package for %s unusable, trying bundled: %s", step_name, exc)
            reasons.append(f"local package {entry.parent.name}: {exc}")
        else:
            if logger is not None:
                logger.debug("Resolved step %s from %s", step_name, entry.parent)
            return step

    registry = registry or _default_registry()
    ref = registry.get(step_name)
    if ref is not None:
        if logger is not None:
            logger.debug("Resolved step %s from bundled steps", step_name)
        return ref.build(origin="bundled")

    reasons.append("no bundled step with that name")
    suggestions = registry.suggest(step_name)
    if suggestions:
        reasons.append("did you mean: " + ", ".join(suggestions))
    raise PluginNotFoundError(step_name, "; ".join(reasons))


def steps_for_config(config: DeploidConfig) -> list[str]:
    names: list[str] = []
    if config.assets is not None and config.assets.source:
        names.append("assets")
    names.append(f"packaging-{config.android.packaging}")
    # `plugins` lists extra steps run after packaging.
    names.extend(name for name in config.plugins if name not in names)
    return names


def load_plugins_from_config(
    config: DeploidConfig,
    *,
    cwd: str | os.PathLike[str] | None = None,
    logger: Any | None = None,
    registry: StepRegistry | None = None,
) -> list[NamedStep]:
    return [
        load_plugin(name, config, cwd=cwd, logger=logger, registry=registry)
        for name in steps_for_config(config)
    ]
