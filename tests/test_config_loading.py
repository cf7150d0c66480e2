import json
import textwrap
from pathlib import Path

import pytest

from deploid.errors import ConfigError, ConfigNotFoundError
from deploid.foundation.config_io import CONFIG_CANDIDATES, find_config_file, load_config_mapping
from deploid.framework.config import load_config

YAML_CONFIG = textwrap.dedent(
    """\
    appName: Yaml App
    appId: com.example.yaml
    web:
      framework: vite
    android:
      packaging: capacitor
    """
)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_candidates_are_checked_in_order(tmp_path):
    assert CONFIG_CANDIDATES[0] == "deploid.config.py"

    _write(tmp_path / "deploid.config.json", json.dumps({"appName": "Json"}))
    _write(tmp_path / "deploid.config.yaml", YAML_CONFIG)

    assert find_config_file(tmp_path) == tmp_path / "deploid.config.yaml"


def test_missing_config_raises_not_found(tmp_path):
    with pytest.raises(ConfigNotFoundError, match="No deploid config found"):
        load_config(tmp_path)


def test_yaml_config_loads_into_dataclasses(tmp_path):
    _write(tmp_path / "deploid.config.yaml", YAML_CONFIG)

    config = load_config(tmp_path)

    assert config.app_name == "Yaml App"
    assert config.app_id == "com.example.yaml"
    assert config.web.framework == "vite"
    assert config.web.build_command == "npm run build"
    assert config.web.web_dir == "dist"
    assert config.android.packaging == "capacitor"
    assert config.source_path == tmp_path / "deploid.config.yaml"


def test_json_config_loads(tmp_path):
    payload = {
        "appName": "Json App",
        "appId": "com.example.json",
        "web": {"framework": "next", "webDir": "out"},
        "android": {"packaging": "twa", "targetSdk": 34},
    }
    _write(tmp_path / "deploid.config.json", json.dumps(payload))

    config = load_config(tmp_path)

    assert config.web.web_dir == "out"
    assert config.android.packaging == "twa"
    assert config.android.target_sdk == 34


def test_python_config_config_export(tmp_path):
    _write(
        tmp_path / "deploid.config.py",
        textwrap.dedent(
            """\
            import os

            config = {
                "appName": "Py App",
                "appId": "com.example.py",
                "web": {"framework": "static"},
                "android": {"packaging": "capacitor"},
            }
            """
        ),
    )

    config = load_config(tmp_path)

    assert config.app_name == "Py App"
    assert config.web.framework == "static"


def test_python_config_default_export_wins_over_config(tmp_path):
    _write(
        tmp_path / "deploid.config.py",
        textwrap.dedent(
            """\
            default = {
                "appName": "Default App",
                "appId": "com.example.default",
                "web": {"framework": "vite"},
                "android": {"packaging": "capacitor"},
            }
            config = {"appName": "Ignored"}
            """
        ),
    )

    config = load_config(tmp_path)

    assert config.app_name == "Default App"
    assert config.app_id == "com.example.default"


def test_python_config_module_globals_export(tmp_path):
    path = _write(
        tmp_path / "deploid.config.py",
        textwrap.dedent(
            """\
            import os

            appName = "Globals"
            appId = "com.example.globals"
            web = {"framework": "cra"}
            android = {"packaging": "capacitor"}
            _private = 1

            def helper():
                return 1
            """
        ),
    )

    mapping = load_config_mapping(path)

    assert set(mapping) == {"appName", "appId", "web", "android"}


def test_python_config_errors_become_config_errors(tmp_path):
    path = _write(tmp_path / "deploid.config.py", "raise RuntimeError('nope')\n")

    with pytest.raises(ConfigError, match="nope"):
        load_config_mapping(path)


def test_invalid_yaml_raises_config_error(tmp_path):
    path = _write(tmp_path / "deploid.config.yaml", "appName: [unclosed\n")

    with pytest.raises(ConfigError):
        load_config_mapping(path)


def test_non_mapping_payload_is_rejected(tmp_path):
    path = _write(tmp_path / "deploid.config.json", "[1, 2, 3]")

    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_config_mapping(path)


def test_empty_yaml_is_an_empty_mapping(tmp_path):
    path = _write(tmp_path / "deploid.config.yaml", "")

    assert load_config_mapping(path) == {}


def test_validation_errors_name_the_file(tmp_path):
    _write(tmp_path / "deploid.config.yaml", "appName: X\nappId: com.example.x\n")

    with pytest.raises(ConfigError, match=r"Missing required config section: web \(in deploid.config.yaml\)"):
        load_config(tmp_path)


def test_unknown_keys_are_logged_as_warnings(tmp_path):
    _write(tmp_path / "deploid.config.yaml", YAML_CONFIG + "extra: 1\n")
    warnings: list[str] = []

    class RecordingLogger:
        def warn(self, message, *args):
            warnings.append(message % args if args else message)

        def debug_file(self, path, label=None):
            return None

    load_config(tmp_path, logger=RecordingLogger())

    assert warnings == ["Unknown config key: extra"]
