"""
Bandwidth trace models.

Every model yields ``Segment(bw, duration)`` where ``bw`` is in bits per
second and stays constant for ``duration``.

- ``StaticBwConfig``: one fixed bandwidth for one duration
- ``NormalizedBwConfig``: a bounded random walk around a mean
- ``SawtoothBwConfig``: a periodic rise and fall between two bandwidths
- ``TraceBwConfig``: a recorded list of bandwidths replayed in order
- ``RepeatedBwPatternConfig``: any of the above played in sequence
"""

import logging
from datetime import timedelta
from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import Field, model_serializer, model_validator

from ..core.pattern import RepeatedPatternConfig
from ..core.registry import register_config
from ..core.sampling import DEFAULT_RNG_SEED, BoundedNormal, BoundPolicy, RngAlgorithm
from ..core.solve_truncate import solve
from ..core.trace import BaseTrace, Segment, StaticSegment, TraceConfig, TraceKind
from ..core.units import Bandwidth, PositiveDuration, duration_to_micros, mbps

logger = logging.getLogger(__name__)


class BwTraceConfig(TraceConfig):
    kind: ClassVar[TraceKind] = TraceKind.BW


@register_config("StaticBwConfig")
class StaticBwConfig(BwTraceConfig):
    """A single bandwidth held for ``duration``."""

    bw: Bandwidth = mbps(12)
    duration: PositiveDuration = timedelta(seconds=1)

    def build(self) -> StaticSegment:
        return StaticSegment(self, self.bw, self.duration)


@register_config("NormalizedBwConfig")
class NormalizedBwConfig(BwTraceConfig):
    """
    Bandwidth drawn from N(mean, std_dev) once per ``step``.

    Negative draws become 0 bps. With bounds set, draws are either clipped
    into them (``bound_policy="clamp"``) or made only from inside them
    (``bound_policy="truncate"``). The last step is shortened so that the
    steps add up to exactly ``duration``.
    """

    mean: Bandwidth = mbps(12)
    std_dev: Bandwidth = 0
    lower_bound: Optional[Bandwidth] = None
    upper_bound: Optional[Bandwidth] = None
    duration: PositiveDuration = timedelta(seconds=1)
    step: PositiveDuration = timedelta(milliseconds=1)
    seed: int = Field(default=DEFAULT_RNG_SEED, ge=0)
    rng: RngAlgorithm = RngAlgorithm.PCG64
    bound_policy: BoundPolicy = BoundPolicy.CLAMP

    @model_validator(mode="after")
    def check_bounds(self) -> "NormalizedBwConfig":
        if self.lower_bound is not None and self.upper_bound is not None and self.lower_bound > self.upper_bound:
            raise ValueError(f"lower_bound ({self.lower_bound}) is above upper_bound ({self.upper_bound})")
        return self

    def build(self) -> "NormalizedBw":
        return NormalizedBw(self)

    def build_truncated(self) -> "NormalizedBw":
        """Build a model whose average matches ``mean`` once bounds are applied.

        Clipping a distribution shifts its expectation toward the bounds
        (and always upward when only the implicit 0 floor applies), so the
        center of the sampled distribution is moved to compensate.
        """
        if self.mean == 0:
            return self.build()
        mean = float(self.mean)
        lower = self.lower_bound / mean if self.lower_bound is not None else None
        upper = self.upper_bound / mean if self.upper_bound is not None else None
        center = solve(1.0, self.std_dev / mean, lower, upper)
        if center is None:
            center = 1.0
        logger.debug("Shifted NormalizedBwConfig center from %s to %.1f bps", self.mean, center * mean)
        return NormalizedBw(self, center=center * mean)


class NormalizedBw(BaseTrace):
    def __init__(self, config: NormalizedBwConfig, center: Optional[float] = None):
        super().__init__(config)
        self.sampler = BoundedNormal(
            mean=float(config.mean) if center is None else center,
            std_dev=float(config.std_dev),
            lower=config.lower_bound,
            upper=config.upper_bound,
            policy=config.bound_policy,
            seed=config.seed,
            algorithm=config.rng,
        )
        self.remaining = config.duration
        self.step = config.step

    def _next(self) -> Optional[Segment]:
        if self.remaining <= timedelta(0):
            return None
        bw = max(0, int(self.sampler.sample()))
        step = min(self.step, self.remaining)
        self.remaining -= step
        return Segment(bw, step)


@register_config("SawtoothBwConfig")
class SawtoothBwConfig(BwTraceConfig):
    """
    A sawtooth wave between ``bottom`` and ``top``.

    Within each ``interval`` the bandwidth climbs linearly from ``bottom`` to
    ``top`` over the first ``interval * duty_ratio`` and falls back over the
    rest, sampled once per ``step``. Gaussian noise with ``std_dev`` is added
    to every step and limited to ``-lower_noise_bound``..``upper_noise_bound``.
    A ``duration`` of None never ends.
    """

    bottom: Bandwidth = 0
    top: Bandwidth = mbps(12)
    interval: PositiveDuration = timedelta(seconds=1)
    duty_ratio: float = Field(default=0.5, ge=0.0, le=1.0)
    duration: Optional[PositiveDuration] = timedelta(seconds=1)
    step: PositiveDuration = timedelta(milliseconds=1)
    std_dev: Bandwidth = 0
    lower_noise_bound: Optional[Bandwidth] = None
    upper_noise_bound: Optional[Bandwidth] = None
    seed: int = Field(default=DEFAULT_RNG_SEED, ge=0)
    rng: RngAlgorithm = RngAlgorithm.PCG64

    @model_validator(mode="after")
    def check_range(self) -> "SawtoothBwConfig":
        if self.bottom > self.top:
            raise ValueError(f"bottom ({self.bottom}) is above top ({self.top})")
        return self

    @model_serializer(mode="wrap")
    def keep_unbounded_duration(self, handler) -> Dict[str, Any]:
        data = handler(self)
        # None is meaningful here, it must survive exclude_none
        if self.duration is None:
            data["duration"] = None
        return data

    def build(self) -> "SawtoothBw":
        return SawtoothBw(self)


class SawtoothBw(BaseTrace):
    def __init__(self, config: SawtoothBwConfig):
        super().__init__(config)
        self.bottom = config.bottom
        self.top = config.top
        self.interval_us = duration_to_micros(config.interval)
        self.change_point_us = self.interval_us * config.duty_ratio
        self.step = config.step
        self.remaining = config.duration
        self.position_us = 0
        lower = -config.lower_noise_bound if config.lower_noise_bound is not None else None
        self.noise = BoundedNormal(
            mean=0.0,
            std_dev=float(config.std_dev),
            lower=lower,
            upper=config.upper_noise_bound,
            seed=config.seed,
            algorithm=config.rng,
        )

    def wave(self) -> float:
        span = self.top - self.bottom
        if self.position_us < self.change_point_us:
            return self.bottom + span * (self.position_us / self.change_point_us)
        falling_us = self.interval_us - self.change_point_us
        return self.top - span * ((self.position_us - self.change_point_us) / falling_us)

    def _next(self) -> Optional[Segment]:
        step = self.step
        if self.remaining is not None:
            if self.remaining <= timedelta(0):
                return None
            step = min(step, self.remaining)
            self.remaining -= step

        bw = max(0, int(self.wave() + self.noise.sample()))
        self.position_us = (self.position_us + duration_to_micros(step)) % self.interval_us
        return Segment(bw, step)


def _compact_to_fields(entries: Any) -> Dict[str, Any]:
    pattern = []
    for entry in entries:
        if not isinstance(entry, (list, tuple)) or len(entry) != 2 or not isinstance(entry[1], (list, tuple)):
            raise ValueError(f"expected [duration_ms, [bw_mbps, ...]], got {entry!r}")
        duration_ms, bandwidths_mbps = entry
        for number in (duration_ms, *bandwidths_mbps):
            if isinstance(number, bool) or not isinstance(number, (int, float)):
                raise ValueError(f"expected a number, got {number!r}")
        pattern.append((
            timedelta(microseconds=round(duration_ms * 1_000)),
            [mbps(bw) for bw in bandwidths_mbps],
        ))
    return {"pattern": pattern}


@register_config("TraceBwConfig")
class TraceBwConfig(BwTraceConfig):
    """
    Recorded bandwidths replayed in order.

    ``pattern`` holds ``(duration, [bw, ...])`` entries; each bandwidth of an
    entry lasts that entry's duration. Encoded compactly as
    ``[[duration_ms, [bw_mbps, ...]], ...]``.
    """

    pattern: Tuple[Tuple[PositiveDuration, Tuple[Bandwidth, ...]], ...] = ()

    @model_validator(mode="before")
    @classmethod
    def expand_compact_form(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            return _compact_to_fields(data)
        return data

    @model_serializer
    def to_compact_form(self) -> list:
        return [
            [duration_to_micros(duration) / 1_000, [bw / 1_000_000 for bw in bandwidths]]
            for duration, bandwidths in self.pattern
        ]

    def build(self) -> "TraceBw":
        return TraceBw(self)


class TraceBw(BaseTrace):
    def __init__(self, config: TraceBwConfig):
        super().__init__(config)
        self.pattern = config.pattern
        self.entry_index = 0
        self.bw_index = 0

    def _next(self) -> Optional[Segment]:
        while self.entry_index < len(self.pattern):
            duration, bandwidths = self.pattern[self.entry_index]
            if self.bw_index < len(bandwidths):
                bw = bandwidths[self.bw_index]
                self.bw_index += 1
                return Segment(bw, duration)
            self.entry_index += 1
            self.bw_index = 0
        return None


@register_config("RepeatedBwPatternConfig", repeated=True)
class RepeatedBwPatternConfig(RepeatedPatternConfig):
    kind: ClassVar[TraceKind] = TraceKind.BW
