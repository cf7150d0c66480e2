from __future__ import annotations

from pathlib import Path

from pipelinekit.step_types import StepRef

from deploid.foundation.files import read_json_mapping, write_json_file, write_text_file
from deploid.framework.context import ExecutionContext
from deploid.templates import storage as storage_templates

KIND_ID = "storage"
STORAGE_LIB_DIR = Path("src") / "lib"
STORAGE_GUIDE_PATH = Path("STORAGE_GUIDE.md")


def add_preferences_dependency(ctx: ExecutionContext) -> bool:
    """Declare @capacitor/preferences in package.json; an existing entry is left alone."""

    path = ctx.resolve("package.json")
    if not path.is_file():
        ctx.logger.warn("package.json not found, add %s manually", storage_templates.PREFERENCES_PACKAGE)
        return False

    package_json = read_json_mapping(path)
    dependencies = package_json.get("dependencies")
    if not isinstance(dependencies, dict):
        dependencies = {}
    if storage_templates.PREFERENCES_PACKAGE in dependencies:
        ctx.logger.debug("%s already in package.json", storage_templates.PREFERENCES_PACKAGE)
        return False
    dependencies[storage_templates.PREFERENCES_PACKAGE] = storage_templates.PREFERENCES_VERSION
    package_json["dependencies"] = dependencies
    write_json_file(path, package_json)
    ctx.logger.info("Added storage dependencies to package.json")
    return True


async def storage_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("storage: setting up cross-platform storage utilities")

    lib_dir = ctx.resolve(STORAGE_LIB_DIR)
    for name, text in storage_templates.STORAGE_FILES.items():
        write_text_file(lib_dir / name, text)
        ctx.logger.debug("Copied storage utility: %s", name)

    add_preferences_dependency(ctx)
    write_text_file(ctx.resolve(STORAGE_GUIDE_PATH), storage_templates.STORAGE_GUIDE)
    ctx.logger.info("Storage utilities written to %s; see %s", STORAGE_LIB_DIR, STORAGE_GUIDE_PATH)
    ctx.logger.info("Run 'npm install' to fetch %s", storage_templates.PREFERENCES_PACKAGE)


STEPS = (
    StepRef(
        id=KIND_ID,
        factory=lambda: storage_step,
        doc="Write storage.ts, secureStorage.ts and storageMigration.ts into src/lib.",
        source="deploid.steps.storage.storage_step",
        tags=("web",),
    ),
)
