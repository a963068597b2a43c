"""Delay trace models: a one-way delay held for a duration."""

from datetime import timedelta
from typing import ClassVar

from ..core.pattern import RepeatedPatternConfig
from ..core.registry import register_config
from ..core.trace import StaticSegment, TraceConfig, TraceKind
from ..core.units import Duration, PositiveDuration


class DelayTraceConfig(TraceConfig):
    kind: ClassVar[TraceKind] = TraceKind.DELAY


@register_config("StaticDelayConfig")
class StaticDelayConfig(DelayTraceConfig):
    """A single delay held for ``duration``."""

    delay: Duration = timedelta(milliseconds=10)
    duration: PositiveDuration = timedelta(seconds=1)

    def build(self) -> StaticSegment:
        return StaticSegment(self, self.delay, self.duration)


@register_config("RepeatedDelayPatternConfig", repeated=True)
class RepeatedDelayPatternConfig(RepeatedPatternConfig):
    kind: ClassVar[TraceKind] = TraceKind.DELAY
