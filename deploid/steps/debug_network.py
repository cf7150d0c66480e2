from __future__ import annotations

from pathlib import Path

from pipelinekit.step_types import StepRef

from deploid.android import project
from deploid.foundation.files import write_text_file
from deploid.framework.context import ExecutionContext
from deploid.templates import android as android_templates

KIND_ID = "debug-network"
NETWORK_DEBUG_COMPONENT_PATH = Path("src") / "components" / "NetworkDebug.tsx"
TROUBLESHOOTING_GUIDE_PATH = Path("ANDROID_TROUBLESHOOTING.md")


async def debug_network_step(ctx: ExecutionContext) -> None:
    """Write an in-app network diagnostics component and a troubleshooting guide."""

    ctx.logger.info("debug-network: adding network debugging tools")

    component = write_text_file(
        ctx.resolve(NETWORK_DEBUG_COMPONENT_PATH), android_templates.NETWORK_DEBUG_COMPONENT
    )
    ctx.logger.debug("Wrote %s", component)

    guide = write_text_file(
        ctx.resolve(TROUBLESHOOTING_GUIDE_PATH),
        android_templates.troubleshooting_guide(
            java_home=project.java_home(), android_home=project.android_home()
        ),
    )
    ctx.logger.debug("Wrote %s", guide)

    ctx.logger.info("Network debugging tools added")
    ctx.logger.info("Import NetworkDebug from './components/NetworkDebug' to test connectivity on device")
    ctx.logger.info("See %s for common Android issues", TROUBLESHOOTING_GUIDE_PATH)


STEPS = (
    StepRef(
        id=KIND_ID,
        factory=lambda: debug_network_step,
        doc="Write NetworkDebug.tsx and ANDROID_TROUBLESHOOTING.md.",
        source="deploid.steps.debug_network.debug_network_step",
        tags=("android", "debug"),
    ),
)
