"""Lock-guarded span buffer between request threads and the reporter."""

from __future__ import annotations

import threading

from spanwire._types import WireSpan


class SpanBuffer:
    """Unbounded append/drain queue of WireSpans.

    Any number of threads may append while one reporter thread drains.
    ``drain`` swaps the whole list out under the lock, so each appended span
    is handed to exactly one drain caller. There is no capacity bound: if the
    reporter stops draining, memory grows with the number of finished spans.
    """

    def __init__(self) -> None:
        self._spans: list[WireSpan] = []
        self._lock = threading.Lock()

    def append(self, span: WireSpan) -> bool:
        """Add a span for the next drain. Always succeeds."""
        with self._lock:
            self._spans.append(span)
        return True

    def drain(self) -> list[WireSpan]:
        """Remove and return every span appended since the previous drain."""
        with self._lock:
            spans, self._spans = self._spans, []
        return spans

    def __len__(self) -> int:
        with self._lock:
            return len(self._spans)
