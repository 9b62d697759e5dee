"""Reporter thread that periodically flushes the collector."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from spanwire._collector import Collector
from spanwire._types import WireSpan

logger = logging.getLogger("spanwire.reporter")

SpanHandler = Callable[[list[WireSpan]], None]


def _discard(spans: list[WireSpan]) -> None:
    """Handler used when no transport is configured."""


class RemoteReporter:
    """Daemon thread that drains the collector every ``flush_interval_ms``."""

    def __init__(
        self,
        collector: Collector,
        *,
        flush_interval_ms: int = 1000,
        handler: SpanHandler = _discard,
    ) -> None:
        self._collector = collector
        self._flush_interval_s = flush_interval_ms / 1000.0
        self._handler = handler
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the flush loop. Calling it twice is a no-op."""
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="spanwire-reporter", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal stop, join the thread and flush whatever is left."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None
        self.flush()

    def flush(self) -> int:
        """Drain the collector once and hand the batch to the handler."""
        spans = self._collector.flush()
        if not spans:
            return 0
        try:
            self._handler(spans)
        except Exception:  # noqa: BLE001
            logger.debug("Span handler failed for %d spans", len(spans), exc_info=True)
        return len(spans)

    def _run(self) -> None:
        while not self._stop_event.wait(timeout=self._flush_interval_s):
            self.flush()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
