"""Span: the unit of work handed to the collector when finished."""

from __future__ import annotations

import time
from contextvars import Token
from types import TracebackType
from typing import TYPE_CHECKING

from spanwire._context import activate, active_span, deactivate
from spanwire._types import LogEvent, TagValue, TraceContext, generate_id

if TYPE_CHECKING:
    from spanwire._collector import Collector
    from spanwire._samplers import Sampler


class Span:
    """A mutable span that is recorded by the collector when it finishes.

    Root spans ask the sampler for a decision; child spans inherit the
    parent's trace id and flags. Used as a context manager::

        with Span("db-query", collector=collector, sampler=sampler) as s:
            s.set_tag("db.type", "sql")
    """

    def __init__(
        self,
        operation_name: str,
        *,
        collector: Collector | None,
        sampler: Sampler | None = None,
        parent: Span | None = None,
        tags: dict[str, TagValue] | None = None,
        start_time: float | None = None,
        debug: bool = False,
    ) -> None:
        self.operation_name = operation_name
        self._collector = collector
        self.tags: dict[str, TagValue] = dict(tags or {})
        self.logs: list[LogEvent] = []
        self.start_time = time.time() if start_time is None else start_time
        self.end_time: float | None = None
        self._token: Token[Span | None] | None = None

        if parent is None:
            parent = active_span()
        if parent is not None:
            self.context: TraceContext = parent.context.create_child()
        else:
            trace_id = generate_id()
            sampled = sampler is not None and sampler.sample(trace_id, operation_name)
            self.context = TraceContext.create_root(
                sampled=sampled, debug=debug, trace_id=trace_id
            )
            if sampled and sampler is not None:
                self.tags.update(sampler.tags)

    def __enter__(self) -> Span:
        self._token = activate(self)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.set_tag("error", True)
            self.log(
                event="error",
                **{"error.kind": exc_type.__name__, "message": str(exc_val)},
            )

        if self._token is not None:
            deactivate(self._token)
            self._token = None

        self.finish()

    def set_tag(self, key: str, value: TagValue) -> None:
        """Attach a key-value tag to this span."""
        self.tags[key] = value

    def log(self, *, timestamp: float | None = None, **fields: TagValue) -> None:
        """Append a structured log event."""
        ts = time.time() if timestamp is None else timestamp
        self.logs.append(LogEvent(timestamp=ts, fields=dict(fields)))

    def finish(self, end_time: float | None = None) -> None:
        """Stop timing and hand the span to the collector. Idempotent."""
        if self.end_time is not None:
            return
        self.end_time = time.time() if end_time is None else end_time
        if self._collector is not None:
            self._collector.record(self, self.end_time)

    @property
    def sampled(self) -> bool:
        return self.context.sampled
