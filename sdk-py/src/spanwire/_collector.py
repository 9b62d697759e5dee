"""Turns finished spans into WireSpans and buffers them for the reporter."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol

from spanwire._buffer import SpanBuffer
from spanwire._types import LogEvent, TagValue, TraceContext, WireSpan


class FinishedSpan(Protocol):
    """What the collector reads from a span at finish time."""

    @property
    def context(self) -> TraceContext: ...

    @property
    def operation_name(self) -> str: ...

    @property
    def start_time(self) -> float: ...

    @property
    def tags(self) -> Mapping[str, TagValue]: ...

    @property
    def logs(self) -> Sequence[LogEvent]: ...


def _to_micros(seconds: float) -> int:
    return round(seconds * 1_000_000)


class Collector:
    """Finalises spans and owns the buffer the reporter drains.

    Only spans whose context is sampled or debug are kept; the rest are
    dropped without touching the buffer.
    """

    def __init__(self, buffer: SpanBuffer | None = None) -> None:
        self._buffer = buffer if buffer is not None else SpanBuffer()

    def record(self, span: FinishedSpan, end_time: float) -> None:
        context = span.context
        start_ts = _to_micros(span.start_time)
        duration = _to_micros(end_time) - start_ts
        if not context.sampled and not context.debug:
            return

        self._buffer.append(
            WireSpan(
                trace_id_low=context.trace_id,
                trace_id_high=0,
                span_id=context.span_id,
                parent_span_id=context.parent_id,
                operation_name=span.operation_name,
                flags=context.flags,
                start_time=start_ts,
                duration=duration,
                tags=dict(span.tags),
                logs=tuple(span.logs),
                references=(),
            )
        )

    def flush(self) -> list[WireSpan]:
        """Hand every buffered span to the caller and empty the buffer."""
        return self._buffer.drain()

    def __len__(self) -> int:
        return len(self._buffer)
