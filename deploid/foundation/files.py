"""Small file helpers shared by the steps."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any


def write_text_file(path: str | os.PathLike[str], text: str) -> Path:
    """Write text to a UTF-8 file, creating parent directories."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as file:
        file.write(text)
    return target


def read_text_file(path: str | os.PathLike[str]) -> str:
    with open(path, "r", encoding="utf-8") as file:
        return file.read()


def read_json_mapping(path: str | os.PathLike[str]) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except FileNotFoundError:
        raise
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(payload, Mapping):
        raise ValueError(f"File must contain a JSON object: {path}")
    return dict(payload)


def write_json_file(path: str | os.PathLike[str], payload: Mapping[str, Any]) -> Path:
    return write_text_file(path, json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
