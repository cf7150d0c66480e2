from __future__ import annotations

from functools import lru_cache

from pipelinekit.step_registry import StepRegistry
from pipelinekit.step_types import StepRef


@lru_cache(maxsize=1)
def get_step_registry() -> StepRegistry:
    # Step modules define `STEPS` tuples collected here; this is the single
    # import point for the plugin loader and `deploid list-steps`.
    from deploid.steps import (  # noqa: PLC0415
        assets,
        build_android,
        debug_network,
        device,
        firebase,
        packaging_capacitor,
        packaging_stubs,
        prepare_ios,
        publish,
        storage,
    )

    refs: list[StepRef] = []
    for module in (
        assets,
        packaging_capacitor,
        packaging_stubs,
        build_android,
        debug_network,
        device,
        prepare_ios,
        firebase,
        storage,
        publish,
    ):
        exported = getattr(module, "STEPS", None)
        if isinstance(exported, (list, tuple)):
            refs.extend(exported)

    return StepRegistry.from_refs(refs)
