"""Packaging engines that are recognised but not built yet."""

from __future__ import annotations

from pipelinekit.step_types import StepRef

from deploid.framework.context import ExecutionContext


async def packaging_tauri_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("packaging-tauri: Tauri packaging not yet implemented")
    ctx.logger.info("Use android.packaging: capacitor for now")


async def packaging_twa_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("packaging-twa: TWA packaging not yet implemented")
    ctx.logger.info("Use android.packaging: capacitor for now")


STEPS = (
    StepRef(
        id="packaging-tauri",
        factory=lambda: packaging_tauri_step,
        doc="Placeholder for Tauri packaging.",
        source="deploid.steps.packaging_stubs.packaging_tauri_step",
        tags=("android", "packaging"),
    ),
    StepRef(
        id="packaging-twa",
        factory=lambda: packaging_twa_step,
        doc="Placeholder for Trusted Web Activity packaging.",
        source="deploid.steps.packaging_stubs.packaging_twa_step",
        tags=("android", "packaging"),
    ),
)
