"""The Event threaded through one pipeline run."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union


@dataclass
class Event:
    """Mutable request/response state for one pipeline run.

    ``options`` carries the caller's (or the CLI's) input, ``data`` accumulates
    results that later steps may read.
    """

    options: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Get an option value."""
        return self.options.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a result value."""
        self.data[key] = value

    def update(self, **results: Any) -> None:
        """Merge results into ``data``."""
        self.data.update(results)

    def ensure(self) -> "Event":
        """Guarantee ``options`` and ``data`` are non-null mappings."""
        if self.options is None:
            self.options = {}
        if self.data is None:
            self.data = {}
        return self

    @classmethod
    def coerce(cls, evt: Union["Event", Mapping[str, Any], None], wrap: bool = True) -> "Event":
        """Turn a programmatic argument into an Event.

        A mapping with an ``options`` key is taken as ``{options, data}``.
        A non-empty mapping without one is treated as raw options when
        ``wrap`` is true. The mappings are copied so the event never aliases
        caller-owned state.
        """
        if isinstance(evt, Event):
            return evt.ensure()
        if evt is None:
            return cls()
        raw = dict(evt)
        if "options" not in raw and raw and wrap:
            return cls(options=raw)
        options: Optional[Dict[str, Any]] = raw.get("options")
        data: Optional[Dict[str, Any]] = raw.get("data")
        return cls(options=dict(options or {}), data=dict(data or {}))
