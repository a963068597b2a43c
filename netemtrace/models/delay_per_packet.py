"""
Per-packet delay trace models.

Unlike the other kinds these models do not yield segments: every item is a
bare ``timedelta`` applied to exactly one packet. A ``count`` of 0 yields
delays forever.
"""

import logging
from abc import abstractmethod
from datetime import timedelta
from typing import ClassVar, Optional

from pydantic import Field, model_validator

from ..core.pattern import RepeatedPatternConfig
from ..core.registry import register_config
from ..core.sampling import DEFAULT_RNG_SEED, BoundedNormal, BoundPolicy, RngAlgorithm
from ..core.solve_truncate import solve
from ..core.trace import BaseTrace, TraceConfig, TraceKind
from ..core.units import Duration

logger = logging.getLogger(__name__)


class DelayPerPacketTraceConfig(TraceConfig):
    kind: ClassVar[TraceKind] = TraceKind.DELAY_PER_PACKET


class CountedTrace(BaseTrace):
    """Stops after ``config.count`` items, or never when the count is 0."""

    def __init__(self, config: DelayPerPacketTraceConfig):
        super().__init__(config)
        self.count = config.count
        self.produced = 0

    def _next(self) -> Optional[timedelta]:
        if self.count != 0 and self.produced >= self.count:
            return None
        self.produced += 1
        return self.next_delay()

    @abstractmethod
    def next_delay(self) -> timedelta:
        pass


@register_config("StaticDelayPerPacketConfig")
class StaticDelayPerPacketConfig(DelayPerPacketTraceConfig):
    delay: Duration = timedelta(milliseconds=10)
    count: int = Field(default=0, ge=0)

    def build(self) -> "StaticDelayPerPacket":
        return StaticDelayPerPacket(self)


class StaticDelayPerPacket(CountedTrace):
    def next_delay(self) -> timedelta:
        return self.config.delay


@register_config("NormalizedDelayPerPacketConfig")
class NormalizedDelayPerPacketConfig(DelayPerPacketTraceConfig):
    """
    Per-packet delays drawn from N(mean, std_dev).

    Draws below zero become zero, then every delay is kept inside
    [lower_bound, upper_bound] according to ``bound_policy``.
    """

    mean: Duration = timedelta(milliseconds=10)
    std_dev: Duration = timedelta(0)
    lower_bound: Duration = timedelta(0)
    upper_bound: Optional[Duration] = None
    count: int = Field(default=0, ge=0)
    seed: int = Field(default=DEFAULT_RNG_SEED, ge=0)
    rng: RngAlgorithm = RngAlgorithm.PCG64
    bound_policy: BoundPolicy = BoundPolicy.CLAMP

    @model_validator(mode="after")
    def check_bounds(self) -> "NormalizedDelayPerPacketConfig":
        if self.upper_bound is not None and self.lower_bound > self.upper_bound:
            raise ValueError(f"lower_bound ({self.lower_bound}) is above upper_bound ({self.upper_bound})")
        return self

    def build(self) -> "NormalizedDelayPerPacket":
        return NormalizedDelayPerPacket(self)

    def build_truncated(self) -> "NormalizedDelayPerPacket":
        """Build a model whose average delay matches ``mean`` despite the bounds."""
        mean = self.mean.total_seconds()
        if mean == 0:
            return self.build()
        upper = self.upper_bound.total_seconds() / mean if self.upper_bound is not None else None
        center = solve(1.0, self.std_dev.total_seconds() / mean, self.lower_bound.total_seconds() / mean, upper)
        if center is None:
            center = 1.0
        logger.debug("Shifted NormalizedDelayPerPacketConfig center from %s to %.6fs", self.mean, center * mean)
        return NormalizedDelayPerPacket(self, center=center * mean)


class NormalizedDelayPerPacket(CountedTrace):
    def __init__(self, config: NormalizedDelayPerPacketConfig, center: Optional[float] = None):
        super().__init__(config)
        upper = config.upper_bound.total_seconds() if config.upper_bound is not None else None
        self.sampler = BoundedNormal(
            mean=config.mean.total_seconds() if center is None else center,
            std_dev=config.std_dev.total_seconds(),
            lower=config.lower_bound.total_seconds(),
            upper=upper,
            policy=config.bound_policy,
            seed=config.seed,
            algorithm=config.rng,
        )

    def next_delay(self) -> timedelta:
        delay = timedelta(seconds=max(0.0, self.sampler.sample()))
        # Rounding to microseconds can step just over a bound
        delay = max(delay, self.config.lower_bound)
        if self.config.upper_bound is not None:
            delay = min(delay, self.config.upper_bound)
        return delay


@register_config("RepeatedDelayPerPacketPatternConfig", repeated=True)
class RepeatedDelayPerPacketPatternConfig(RepeatedPatternConfig):
    kind: ClassVar[TraceKind] = TraceKind.DELAY_PER_PACKET
