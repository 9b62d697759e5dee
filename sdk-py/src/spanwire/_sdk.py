"""Tracer singleton — wires config, sampler, collector, reporter and exporter."""

from __future__ import annotations

import atexit
import logging

from spanwire._collector import Collector
from spanwire._config import SpanwireConfig
from spanwire._exporter import OTLPExporter
from spanwire._reporter import RemoteReporter
from spanwire._samplers import Sampler, create_sampler
from spanwire._span import Span
from spanwire._types import TagValue

logger = logging.getLogger("spanwire.sdk")

_tracer_instance: Tracer | None = None


class Tracer:
    """Owns one sampler and one collector; spans created here report to them.

    Independent tracers (for example one per service name) never share a
    buffer or a rate-limiter balance.
    """

    def __init__(
        self,
        config: SpanwireConfig,
        *,
        sampler: Sampler | None = None,
        collector: Collector | None = None,
    ) -> None:
        self.config = config
        self.sampler = sampler if sampler is not None else create_sampler(config)
        self.collector = collector if collector is not None else Collector()
        self._reporter: RemoteReporter | None = None
        self._exporter: OTLPExporter | None = None

    def start(self) -> None:
        """Start the reporter thread with the OTLP exporter as its handler."""
        if self._reporter is not None:
            return
        self._exporter = OTLPExporter(
            endpoint=self.config.endpoint,
            service_name=self.config.service_name,
            environment=self.config.environment,
            api_key=self.config.api_key,
        )
        self._reporter = RemoteReporter(
            self.collector,
            flush_interval_ms=self.config.flush_interval_ms,
            handler=self._exporter.export,
        )
        self._reporter.start()
        logger.debug(
            "Tracer started for %s with %s sampler",
            self.config.service_name,
            self.sampler.type,
        )

    def shutdown(self) -> None:
        """Stop the reporter (flushing pending spans) and release resources."""
        if self._reporter is not None:
            self._reporter.stop()
            self._reporter = None
        if self._exporter is not None:
            self._exporter.shutdown()
            self._exporter = None
        self.sampler.close()
        logger.debug("Tracer for %s shut down", self.config.service_name)

    def start_span(
        self,
        operation_name: str,
        *,
        tags: dict[str, TagValue] | None = None,
        start_time: float | None = None,
        debug: bool = False,
    ) -> Span:
        """Create a span reporting to this tracer's collector."""
        return Span(
            operation_name,
            collector=self.collector,
            sampler=self.sampler,
            tags=tags,
            start_time=start_time,
            debug=debug,
        )


class _NoopTracer:
    """Fallback used before ``init``. Spans are created but never recorded."""

    def start_span(
        self,
        operation_name: str,
        *,
        tags: dict[str, TagValue] | None = None,
        start_time: float | None = None,
        debug: bool = False,
    ) -> Span:
        return Span(operation_name, collector=None, tags=tags, start_time=start_time)


_noop = _NoopTracer()


def _get_tracer() -> Tracer | _NoopTracer:
    """Return the active tracer or a noop fallback."""
    if _tracer_instance is not None:
        return _tracer_instance
    return _noop


def init(
    *,
    endpoint: str,
    service_name: str,
    environment: str = "development",
    flush_interval_ms: int = 1000,
    sampler_type: str = "ratelimiting",
    sampler_param: float = 10.0,
    sampler_lower_bound: float = 1.0,
    api_key: str | None = None,
) -> Tracer:
    """Initialize the process-wide tracer and start its reporter.

    Raises InvalidConfigurationError for an unusable sampler or interval.
    """
    global _tracer_instance  # noqa: PLW0603

    config = SpanwireConfig(
        endpoint=endpoint,
        service_name=service_name,
        environment=environment,
        flush_interval_ms=flush_interval_ms,
        sampler_type=sampler_type,
        sampler_param=sampler_param,
        sampler_lower_bound=sampler_lower_bound,
        api_key=api_key,
    )
    tracer = Tracer(config)

    if _tracer_instance is not None:
        _tracer_instance.shutdown()

    _tracer_instance = tracer
    _tracer_instance.start()
    atexit.register(shutdown)
    return tracer


def shutdown() -> None:
    """Shut down the tracer, flushing any remaining spans."""
    global _tracer_instance  # noqa: PLW0603
    if _tracer_instance is not None:
        _tracer_instance.shutdown()
        _tracer_instance = None
