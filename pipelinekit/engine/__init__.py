"""Engine primitives for running ordered step pipelines."""

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

__all__ = [
    "CancelToken",
    "DefaultStepRecorder",
    "NullStepRecorder",
    "PipelineCancelled",
    "Step",
    "StepContext",
    "StepRecorder",
    "run_pipeline",
    "step_label",
]
