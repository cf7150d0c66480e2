"""Bundled pipeline steps; each module exports a `STEPS` tuple of `StepRef`s."""

from deploid.steps.registry import get_step_registry

__all__ = ["get_step_registry"]
