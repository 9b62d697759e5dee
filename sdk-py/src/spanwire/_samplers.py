"""Sampling policies that decide whether a new trace is recorded.

Every sampler exposes the same capability: ``sample(trace_id, operation_name)``
returns the decision and ``type``/``param`` describe the policy so the span
creation path can tag root spans with it.
"""

from __future__ import annotations

import abc
import time
from typing import TYPE_CHECKING

from spanwire._config import InvalidConfigurationError
from spanwire._rate_limiter import Clock, RateLimiter

if TYPE_CHECKING:
    from spanwire._config import SpanwireConfig

SAMPLER_TYPE_TAG_KEY = "sampler.type"
SAMPLER_PARAM_TAG_KEY = "sampler.param"

_TRACE_ID_UPPER_BOUND = 1 << 64


class Sampler(abc.ABC):
    """Capability interface shared by all sampling policies."""

    @property
    @abc.abstractmethod
    def type(self) -> str: ...

    @property
    @abc.abstractmethod
    def param(self) -> float: ...

    @abc.abstractmethod
    def sample(self, trace_id: int, operation_name: str) -> bool:
        """Return True if the trace starting with this span should be kept."""

    @property
    def tags(self) -> dict[str, str | float]:
        return {SAMPLER_TYPE_TAG_KEY: self.type, SAMPLER_PARAM_TAG_KEY: self.param}

    def close(self) -> None:
        """Release any resources held by the sampler."""


class ConstSampler(Sampler):
    """Always makes the same decision."""

    def __init__(self, decision: bool = True) -> None:
        self._decision = bool(decision)

    @property
    def type(self) -> str:
        return "const"

    @property
    def param(self) -> float:
        return 1.0 if self._decision else 0.0

    def sample(self, trace_id: int, operation_name: str) -> bool:
        return self._decision


class ProbabilisticSampler(Sampler):
    """Keeps a fixed fraction of traces, decided by the trace id.

    The decision is a pure function of the trace id so every service that
    sees the same trace id reaches the same answer.
    """

    def __init__(self, rate: float = 0.001) -> None:
        if not 0.0 <= rate <= 1.0:
            raise InvalidConfigurationError(
                f"sampling rate must be between 0.0 and 1.0, got {rate}"
            )
        self._rate = float(rate)
        self._boundary = int(_TRACE_ID_UPPER_BOUND * self._rate)

    @property
    def type(self) -> str:
        return "probabilistic"

    @property
    def param(self) -> float:
        return self._rate

    def sample(self, trace_id: int, operation_name: str) -> bool:
        return trace_id < self._boundary


class RateLimitingSampler(Sampler):
    """Samples at most ``max_traces_per_second``.

    Sampled traces follow the burstiness of the service: uniformly spaced
    requests are sampled uniformly, while a sub-second burst can have several
    consecutive requests sampled up to the bucket ceiling.
    """

    def __init__(
        self,
        max_traces_per_second: float = 10,
        *,
        clock: Clock | None = None,
    ) -> None:
        if max_traces_per_second < 0.0:
            raise InvalidConfigurationError(
                "max_traces_per_second must not be negative, "
                f"got {max_traces_per_second}"
            )
        self._max_traces_per_second = float(max_traces_per_second)
        self._rate_limiter = RateLimiter(
            credits_per_second=self._max_traces_per_second,
            max_balance=max(self._max_traces_per_second, 1.0),
            clock=clock if clock is not None else time.time,
        )

    @property
    def type(self) -> str:
        return "ratelimiting"

    @property
    def param(self) -> float:
        return self._max_traces_per_second

    def sample(self, trace_id: int, operation_name: str) -> bool:
        return self._rate_limiter.check_credit(1.0)

    def update(self, max_traces_per_second: float) -> bool:
        """Apply a new rate. Returns False when the rate is unchanged."""
        if max_traces_per_second < 0.0:
            raise InvalidConfigurationError(
                "max_traces_per_second must not be negative, "
                f"got {max_traces_per_second}"
            )
        if max_traces_per_second == self._max_traces_per_second:
            return False
        self._max_traces_per_second = float(max_traces_per_second)
        self._rate_limiter.update(
            credits_per_second=self._max_traces_per_second,
            max_balance=max(self._max_traces_per_second, 1.0),
        )
        return True


class GuaranteedThroughputProbabilisticSampler(Sampler):
    """Probabilistic sampling with a guaranteed lower-bound rate.

    The lower-bound limiter is consulted on every call, even when the
    probabilistic sampler already said yes, so its budget reflects the
    actual trace volume.
    """

    def __init__(
        self,
        lower_bound: float,
        rate: float,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._probabilistic = ProbabilisticSampler(rate)
        self._lower_bound = RateLimitingSampler(lower_bound, clock=clock)

    @property
    def type(self) -> str:
        return "lowerbound"

    @property
    def param(self) -> float:
        return self._probabilistic.param

    @property
    def lower_bound(self) -> float:
        return self._lower_bound.param

    def sample(self, trace_id: int, operation_name: str) -> bool:
        if self._probabilistic.sample(trace_id, operation_name):
            self._lower_bound.sample(trace_id, operation_name)
            return True
        return self._lower_bound.sample(trace_id, operation_name)


def create_sampler(config: SpanwireConfig, *, clock: Clock | None = None) -> Sampler:
    """Build the sampler described by ``config``."""
    kind = config.sampler_type
    if kind == "const":
        return ConstSampler(bool(config.sampler_param))
    if kind == "probabilistic":
        return ProbabilisticSampler(config.sampler_param)
    if kind == "ratelimiting":
        return RateLimitingSampler(config.sampler_param, clock=clock)
    if kind == "lowerbound":
        return GuaranteedThroughputProbabilisticSampler(
            config.sampler_lower_bound, config.sampler_param, clock=clock
        )
    raise InvalidConfigurationError(f"unknown sampler_type {kind!r}")
