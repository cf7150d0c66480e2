import asyncio
import json

from deploid.steps import storage
from deploid.templates import storage as storage_templates


def test_storage_step_writes_utilities_and_dependency(make_ctx, tmp_path):
    (tmp_path / "package.json").write_text(
        json.dumps({"name": "demo", "dependencies": {"react": "^18.0.0"}}), encoding="utf-8"
    )

    asyncio.run(storage.storage_step(make_ctx()))

    for name in ("storage.ts", "secureStorage.ts", "storageMigration.ts"):
        assert (tmp_path / "src" / "lib" / name).is_file()
    assert (tmp_path / "STORAGE_GUIDE.md").is_file()
    dependencies = json.loads((tmp_path / "package.json").read_text(encoding="utf-8"))["dependencies"]
    assert dependencies == {
        "react": "^18.0.0",
        storage_templates.PREFERENCES_PACKAGE: storage_templates.PREFERENCES_VERSION,
    }


def test_existing_preferences_version_is_kept(make_ctx, tmp_path):
    package_json = tmp_path / "package.json"
    package_json.write_text(
        json.dumps({"dependencies": {storage_templates.PREFERENCES_PACKAGE: "5.0.7"}}), encoding="utf-8"
    )

    assert storage.add_preferences_dependency(make_ctx()) is False
    assert json.loads(package_json.read_text(encoding="utf-8"))["dependencies"] == {
        storage_templates.PREFERENCES_PACKAGE: "5.0.7"
    }


def test_missing_package_json_warns(make_ctx, tmp_path, capsys):
    asyncio.run(storage.storage_step(make_ctx()))

    assert "package.json not found" in capsys.readouterr().err
    assert (tmp_path / "src" / "lib" / "storage.ts").is_file()
    assert not (tmp_path / "package.json").exists()
