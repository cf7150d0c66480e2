import ast
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
PACKAGE_DIR = REPO_ROOT / "deploid"
ENGINE_DIR = REPO_ROOT / "pipelinekit"

# Imports every pipelinekit module in a fresh interpreter and prints any deploid module it pulled in.
ENGINE_IMPORT_SCRIPT = """\
import importlib, pkgutil, sys
import pipelinekit
for info in pkgutil.walk_packages(pipelinekit.__path__, "pipelinekit."):
    importlib.import_module(info.name)
print(sorted(name for name in sys.modules if name == "deploid" or name.startswith("deploid.")))
"""


def _imported_modules(tree: ast.AST, *, top_level_only: bool = False):
    nodes = tree.body if top_level_only else ast.walk(tree)
    for node in nodes:
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name
        elif isinstance(node, ast.ImportFrom) and node.module is not None:
            yield node.module


def _offenders(
    directory: Path, forbidden_prefixes: tuple[str, ...], *, top_level_only: bool = False
) -> list[str]:
    offenders: list[str] = []
    for path in sorted(directory.rglob("*.py")):
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        for module in _imported_modules(tree, top_level_only=top_level_only):
            if module.startswith(forbidden_prefixes):
                offenders.append(f"{path.relative_to(REPO_ROOT)}: {module}")
    return offenders


def test_foundation_does_not_import_higher_layers():
    forbidden = ("deploid.framework", "deploid.android", "deploid.steps", "deploid.cli")
    assert _offenders(PACKAGE_DIR / "foundation", forbidden) == []


def test_android_and_templates_do_not_import_steps():
    forbidden = ("deploid.steps", "deploid.cli")
    assert _offenders(PACKAGE_DIR / "android", forbidden) == []
    assert _offenders(PACKAGE_DIR / "templates", forbidden) == []


def test_framework_only_reaches_steps_lazily():
    framework = PACKAGE_DIR / "framework"
    assert _offenders(framework, ("deploid.steps", "deploid.cli"), top_level_only=True) == []
    assert _offenders(framework, ("deploid.cli",)) == []


def test_steps_do_not_import_cli():
    assert _offenders(PACKAGE_DIR / "steps", ("deploid.cli",)) == []


def test_engine_source_never_imports_deploid():
    assert _offenders(ENGINE_DIR, ("deploid",)) == []


def test_importing_the_engine_leaves_deploid_unloaded():
    proc = subprocess.run(
        [sys.executable, "-c", ENGINE_IMPORT_SCRIPT],
        capture_output=True,
        text=True,
        cwd=str(REPO_ROOT),
    )

    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.strip() == "[]"
