"""Project-specific framework utilities.

This package holds the structural pieces shared by every command: config
parsing, the execution context handed to steps, step resolution (bundled and
project-local), and the local step-package manager. Step implementations live
in `deploid.steps`.

For reusable, project-agnostic pipeline primitives, use `pipelinekit`.
"""
