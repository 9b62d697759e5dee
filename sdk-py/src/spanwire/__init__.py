"""spanwire: span collection and rate-limited sampling for distributed tracing."""

from __future__ import annotations

from spanwire._buffer import SpanBuffer
from spanwire._collector import Collector
from spanwire._config import InvalidConfigurationError, SpanwireConfig
from spanwire._rate_limiter import RateLimiter
from spanwire._samplers import (
    ConstSampler,
    GuaranteedThroughputProbabilisticSampler,
    ProbabilisticSampler,
    RateLimitingSampler,
    Sampler,
    create_sampler,
)
from spanwire._sdk import Tracer, _get_tracer, init, shutdown
from spanwire._span import Span
from spanwire._types import LogEvent, TagValue, TraceContext, WireSpan

__version__ = "0.1.0"

__all__ = [
    "Collector",
    "ConstSampler",
    "GuaranteedThroughputProbabilisticSampler",
    "InvalidConfigurationError",
    "LogEvent",
    "ProbabilisticSampler",
    "RateLimiter",
    "RateLimitingSampler",
    "Sampler",
    "Span",
    "SpanBuffer",
    "SpanwireConfig",
    "TraceContext",
    "Tracer",
    "WireSpan",
    "__version__",
    "create_sampler",
    "init",
    "shutdown",
    "span",
]


def span(
    operation_name: str,
    *,
    tags: dict[str, TagValue] | None = None,
    debug: bool = False,
) -> Span:
    """Create a span on the process-wide tracer.

    Usage::

        with spanwire.span("checkout") as s:
            s.set_tag("cart.items", 3)
    """
    return _get_tracer().start_span(operation_name, tags=tags, debug=debug)
