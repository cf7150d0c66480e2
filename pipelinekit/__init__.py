"""Reusable step-pipeline kernel (runner primitives + step registry).

This package is intentionally independent of `deploid.*`. Project-specific
conventions (step naming, plugin lookup locations, configuration shape) must
live in the consuming application.
"""

from pipelinekit.engine.pipeline import (
    CancelToken,
    DefaultStepRecorder,
    NullStepRecorder,
    PipelineCancelled,
    Step,
    StepContext,
    StepRecorder,
    run_pipeline,
    step_label,
)
from pipelinekit.step_registry import StepRegistry
from pipelinekit.step_types import NamedStep, StepFactory, StepOrigin, StepRef

__all__ = [
    "CancelToken",
    "DefaultStepRecorder",
    "NamedStep",
    "NullStepRecorder",
    "PipelineCancelled",
    "Step",
    "StepContext",
    "StepFactory",
    "StepOrigin",
    "StepRecorder",
    "StepRef",
    "StepRegistry",
    "run_pipeline",
    "step_label",
]
