"""SDK configuration."""

from __future__ import annotations

from dataclasses import dataclass

SAMPLER_TYPES = ("const", "probabilistic", "ratelimiting", "lowerbound")


class InvalidConfigurationError(ValueError):
    """Raised at construction time for values no sampler or SDK can accept."""


@dataclass(frozen=True)
class SpanwireConfig:
    """Immutable SDK configuration.

    ``sampler_param`` is interpreted per ``sampler_type``: the decision (1/0)
    for ``const``, the probability for ``probabilistic`` and ``lowerbound``,
    and traces per second for ``ratelimiting``.
    """

    endpoint: str
    service_name: str
    environment: str = "development"
    flush_interval_ms: int = 1000
    sampler_type: str = "ratelimiting"
    sampler_param: float = 10.0
    sampler_lower_bound: float = 1.0
    api_key: str | None = None

    def __post_init__(self) -> None:
        if self.sampler_type not in SAMPLER_TYPES:
            raise InvalidConfigurationError(
                f"unknown sampler_type {self.sampler_type!r}, "
                f"expected one of {', '.join(SAMPLER_TYPES)}"
            )
        if self.flush_interval_ms <= 0:
            raise InvalidConfigurationError(
                f"flush_interval_ms must be positive, got {self.flush_interval_ms}"
            )
