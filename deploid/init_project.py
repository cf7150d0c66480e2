from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml

from deploid.errors import ConfigError
from deploid.foundation.config_io import find_config_file
from deploid.foundation.files import write_text_file
from deploid.foundation.logging_utils import Logger
from deploid.framework.config import PACKAGING_ENGINES, WEB_FRAMEWORKS

CONFIG_FILE_NAME = "deploid.config.yaml"
ASSETS_DIR = "assets"

WEB_DIRS: dict[str, str] = {
    "vite": "dist",
    "next": "out",
    "cra": "build",
    "static": "public",
}


def sanitize_app_id_segment(name: str) -> str:
    segment = re.sub(r"[^a-z0-9]", "", name.lower())
    if not segment:
        return "app"
    if segment[0].isdigit():
        segment = f"app{segment}"
    return segment


def default_config(app_name: str, *, framework: str, packaging: str) -> dict[str, Any]:
    return {
        "appName": app_name,
        "appId": f"com.example.{sanitize_app_id_segment(app_name)}",
        "web": {
            "framework": framework,
            "buildCommand": "npm run build",
            "webDir": WEB_DIRS[framework],
        },
        "android": {
            "packaging": packaging,
            "targetSdk": 35,
            "minSdk": 24,
            "version": {"code": 1, "name": "1.0.0"},
        },
        "assets": {"source": f"{ASSETS_DIR}/logo.svg", "output": "assets-gen"},
    }


def init_project(
    cwd: str | os.PathLike[str],
    *,
    framework: str = "vite",
    packaging: str = "capacitor",
    logger: Logger,
) -> Path | None:
    """Write a starter `deploid.config.yaml` and an `assets/` folder.

    Returns the written config path, or None when a config already exists.
    """

    if framework not in WEB_FRAMEWORKS:
        raise ConfigError(
            f"Invalid framework: {framework!r} (expected one of: {', '.join(WEB_FRAMEWORKS)})"
        )
    if packaging not in PACKAGING_ENGINES:
        raise ConfigError(
            f"Invalid packaging engine: {packaging!r} (expected one of: {', '.join(PACKAGING_ENGINES)})"
        )

    root = Path(cwd).resolve()
    existing = find_config_file(root)
    if existing is not None:
        logger.warn("Config already exists: %s (not overwriting)", existing.name)
        return None

    payload = default_config(root.name, framework=framework, packaging=packaging)
    path = write_text_file(
        root / CONFIG_FILE_NAME, yaml.safe_dump(payload, sort_keys=False, default_flow_style=False)
    )
    (root / ASSETS_DIR).mkdir(exist_ok=True)

    logger.info("Created %s", path.name)
    logger.info("Put your logo at %s, then run: deploid assets", payload["assets"]["source"])
    return path
