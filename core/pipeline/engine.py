"""Execution engine: folds an action queue over one Event.

One engine instance owns at most one active (top-level) pipeline:

* ``RunMode.TOP_LEVEL`` runs take the single-flight guard. The engine moves
  ``IDLE -> RUNNING`` when the run starts and back to ``IDLE`` on every exit
  path. A second top-level run issued while one is active waits for the
  guard, so the engine never goes ``RUNNING -> RUNNING``.
* ``RunMode.NESTED`` runs are actions invoked from inside the active
  pipeline (a hook or action calling ``framework.actions.<name>``, directly
  or from tasks it spawns). They ride alongside the active pipeline: the
  guard is left untouched and their queue is folded over the event they were
  given.

Which mode applies is decided by a ``ContextVar`` set for the duration of a
top-level run, so tasks spawned inside the pipeline inherit it while
unrelated callers do not.
"""

import asyncio
import inspect
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence

from loguru import logger

from core.errors import StratusError, UnexpectedFaultError
from core.pipeline.event import Event
from core.pipeline.registry import ActionConfig, EventLike, Handler


class RunState(Enum):
    """Engine lifecycle states."""

    IDLE = "idle"
    RUNNING = "running"


class RunMode(Enum):
    """How a call to ``ExecutionEngine.run`` is executed."""

    TOP_LEVEL = "top_level"
    NESTED = "nested"


class CliState(Protocol):
    """What the engine reads from a resolved CLI invocation."""

    options: Dict[str, Any]
    params: Dict[str, Any]


@dataclass
class PipelineRun:
    """Handle for the active top-level pipeline."""

    handler: str
    started_at: datetime = field(default_factory=datetime.now)
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    event: Optional[Event] = None


_owner: ContextVar[Optional["ExecutionEngine"]] = ContextVar("stratus_pipeline_owner", default=None)


class ExecutionEngine:
    """Builds and runs pipelines for one framework instance."""

    def __init__(self, name: str = "stratus"):
        self.name = name
        self._pipeline: Optional[PipelineRun] = None
        self._guard = asyncio.Lock()

    @property
    def state(self) -> RunState:
        return RunState.IDLE if self._pipeline is None else RunState.RUNNING

    @property
    def active(self) -> Optional[PipelineRun]:
        """The active top-level pipeline, or None when idle."""
        return self._pipeline

    def current_mode(self) -> RunMode:
        """Mode a ``run`` issued from the current task would use."""
        if self._pipeline is not None and _owner.get() is self:
            return RunMode.NESTED
        return RunMode.TOP_LEVEL

    async def run(
        self,
        queue: Sequence[Handler],
        evt: EventLike,
        config: ActionConfig,
        cli: Optional[CliState] = None,
    ) -> Event:
        """Run ``queue`` (pre hooks, action, post hooks) and return the final Event.

        Args:
            queue: Ordered handlers; each receives the Event the previous one settled
            evt: Event, raw mapping, or None
            config: Configuration of the action being run
            cli: Resolved CLI invocation; when given, a top-level run replaces
                ``evt`` with the CLI options and parameters

        Raises:
            StratusError: Typed failures propagate verbatim
            UnexpectedFaultError: Any other exception raised by a step
        """
        if self.current_mode() is RunMode.NESTED:
            logger.debug(f"Running {config.handler} nested in pipeline {self._pipeline.handler}")
            return await self._fold(list(queue), Event.coerce(evt), config)

        async with self._guard:
            self._pipeline = PipelineRun(handler=config.handler)
            token = _owner.set(self)
            try:
                event = self._normalize(evt, cli)
                self._pipeline.event = event
                logger.debug(f"Pipeline {self._pipeline.run_id} started for {config.handler}")
                return await self._fold(list(queue), event, config)
            finally:
                _owner.reset(token)
                self._reset()

    def _normalize(self, evt: EventLike, cli: Optional[CliState]) -> Event:
        if cli is not None:
            return Event(options={**cli.options, **cli.params})
        return Event.coerce(evt)

    async def _fold(self, queue: List[Handler], event: Event, config: ActionConfig) -> Event:
        event.ensure()
        for step in queue:
            try:
                result = step(event)
                if inspect.isawaitable(result):
                    result = await result
            except StratusError:
                raise
            except Exception as exc:
                raise UnexpectedFaultError.wrap(exc, config.handler) from exc

            if result is not None:
                event = result if isinstance(result, Event) else Event.coerce(result, wrap=False)
                event.ensure()
        return event

    def _reset(self) -> None:
        if self._pipeline is not None:
            logger.debug(f"Pipeline {self._pipeline.run_id} settled")
        self._pipeline = None
