from __future__ import annotations

import importlib.util
import inspect
import json
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from types import ModuleType
from typing import Any

import yaml

from deploid.errors import ConfigError

CONFIG_CANDIDATES: tuple[str, ...] = (
    "deploid.config.py",
    "deploid.config.yaml",
    "deploid.config.yml",
    "deploid.config.json",
)

_PY_CONFIG_MODULE = "_deploid_user_config"


def find_config_files(cwd: str | os.PathLike[str] | None = None) -> list[Path]:
    """Return every existing candidate in probe order."""

    root = Path(cwd or os.getcwd())
    return [root / name for name in CONFIG_CANDIDATES if (root / name).is_file()]


def find_config_file(cwd: str | os.PathLike[str] | None = None) -> Path | None:
    found = find_config_files(cwd)
    return found[0] if found else None


def _load_yaml_mapping(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc


def _load_json_mapping(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc


def _module_export(module: ModuleType) -> Any:
    for attr in ("default", "config"):
        if hasattr(module, attr):
            return getattr(module, attr)

    exported: dict[str, Any] = {}
    for key, value in vars(module).items():
        if key.startswith("_"):
            continue
        if inspect.ismodule(value) or callable(value):
            continue
        exported[key] = value
    return exported


def _load_python_mapping(path: Path) -> Any:
    spec = importlib.util.spec_from_file_location(_PY_CONFIG_MODULE, path)
    if spec is None or spec.loader is None:
        raise ConfigError(f"Cannot import config module: {path}")

    module = importlib.util.module_from_spec(spec)
    previous = sys.modules.get(_PY_CONFIG_MODULE)
    sys.modules[_PY_CONFIG_MODULE] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise ConfigError(f"Failed to execute config module {path}: {exc}") from exc
    finally:
        if previous is None:
            sys.modules.pop(_PY_CONFIG_MODULE, None)
        else:
            sys.modules[_PY_CONFIG_MODULE] = previous
    return _module_export(module)


def load_config_mapping(path: str | os.PathLike[str]) -> dict[str, Any]:
    """Load a config file into a plain mapping, dispatching on its extension."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    try:
        if suffix == ".py":
            payload = _load_python_mapping(config_path)
        elif suffix in (".yaml", ".yml"):
            payload = _load_yaml_mapping(config_path)
        elif suffix == ".json":
            payload = _load_json_mapping(config_path)
        else:
            raise ConfigError(f"Unsupported config file type: {config_path}")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {config_path}: {exc}") from exc

    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ConfigError(
            f"Config file must contain a mapping: {config_path} (got {type(payload).__name__})"
        )
    return dict(payload)
