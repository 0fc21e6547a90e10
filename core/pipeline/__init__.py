"""Action pipeline: events, registries and the execution engine."""

from core.pipeline.engine import ExecutionEngine, PipelineRun, RunMode, RunState
from core.pipeline.event import Event
from core.pipeline.registry import (
    ActionConfig,
    ActionRegistry,
    CommandTable,
    Handler,
    HookPhase,
    HookRegistry,
    OptionSpec,
    ParameterSpec,
)

__all__ = [
    "ExecutionEngine",
    "PipelineRun",
    "RunMode",
    "RunState",
    "Event",
    "ActionConfig",
    "ActionRegistry",
    "CommandTable",
    "Handler",
    "HookPhase",
    "HookRegistry",
    "OptionSpec",
    "ParameterSpec",
]
