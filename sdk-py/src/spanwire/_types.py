"""Core types: trace context, log events and the wire-ready span record."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any

SAMPLED_FLAG = 0x01
DEBUG_FLAG = 0x02

_MAX_ID = (1 << 64) - 1

TagValue = str | int | float | bool


def generate_id() -> int:
    """Return a random non-zero 64-bit id."""
    return random.getrandbits(64) or 1


@dataclass(frozen=True)
class TraceContext:
    """Immutable identity of a span within a trace."""

    trace_id: int
    span_id: int
    parent_id: int = 0
    flags: int = 0

    def __post_init__(self) -> None:
        for name in ("trace_id", "span_id", "parent_id"):
            value = getattr(self, name)
            if not 0 <= value <= _MAX_ID:
                raise ValueError(f"{name} must fit in 64 bits, got {value}")

    @property
    def sampled(self) -> bool:
        return bool(self.flags & SAMPLED_FLAG)

    @property
    def debug(self) -> bool:
        return bool(self.flags & DEBUG_FLAG)

    @classmethod
    def create_root(
        cls, *, sampled: bool, debug: bool = False, trace_id: int | None = None
    ) -> TraceContext:
        """Start a new trace; the root span id equals the trace id."""
        flags = 0
        if sampled:
            flags |= SAMPLED_FLAG
        if debug:
            flags |= SAMPLED_FLAG | DEBUG_FLAG
        if trace_id is None:
            trace_id = generate_id()
        return cls(trace_id=trace_id, span_id=trace_id, parent_id=0, flags=flags)

    def create_child(self) -> TraceContext:
        """Context for a child span: same trace and flags, new span id."""
        return TraceContext(
            trace_id=self.trace_id,
            span_id=generate_id(),
            parent_id=self.span_id,
            flags=self.flags,
        )


@dataclass(frozen=True)
class LogEvent:
    """A timestamped structured log attached to a span."""

    timestamp: float
    fields: dict[str, TagValue] = field(default_factory=dict)

    __hash__ = None  # type: ignore[assignment]


@dataclass(frozen=True)
class WireSpan:
    """Transport-ready record of a finished, sampled span.

    Timestamps are integer microseconds. ``trace_id_high`` is reserved for
    128-bit trace ids and is always 0 here; ``references`` is reserved for
    causal links and is always empty.

    Frozen but unhashable, since ``tags`` is a dict.
    """

    trace_id_low: int
    trace_id_high: int
    span_id: int
    parent_span_id: int
    operation_name: str
    flags: int
    start_time: int
    duration: int
    tags: dict[str, TagValue] = field(default_factory=dict)
    logs: tuple[LogEvent, ...] = ()
    references: tuple[Any, ...] = ()

    __hash__ = None  # type: ignore[assignment]

    def to_wire(self) -> dict[str, Any]:
        """Return the collector wire shape with its exact field names."""
        return {
            "traceIdLow": self.trace_id_low,
            "traceIdHigh": self.trace_id_high,
            "spanId": self.span_id,
            "parentSpanId": self.parent_span_id,
            "operationName": self.operation_name,
            "references": list(self.references),
            "flags": self.flags,
            "startTime": self.start_time,
            "duration": self.duration,
            "tags": dict(self.tags),
            "logs": list(self.logs),
        }
