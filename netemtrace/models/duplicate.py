"""
Duplicate trace models.

A duplicate pattern has the same shape as a loss pattern: index 0 is the
chance of duplicating a packet when the previous one was not duplicated,
index i applies after i duplications in a row.
"""

from datetime import timedelta
from typing import ClassVar, Tuple

from ..core.pattern import RepeatedPatternConfig
from ..core.registry import register_config
from ..core.trace import BaseTrace, Segment, TraceConfig, TraceKind
from ..core.units import PositiveDuration, Probability


class DuplicateTraceConfig(TraceConfig):
    kind: ClassVar[TraceKind] = TraceKind.DUPLICATE


@register_config("StaticDuplicateConfig")
class StaticDuplicateConfig(DuplicateTraceConfig):
    duplicate: Tuple[Probability, ...] = (0.1, 0.2)
    duration: PositiveDuration = timedelta(seconds=1)

    def build(self) -> "StaticDuplicate":
        return StaticDuplicate(self)


class StaticDuplicate(BaseTrace):
    def __init__(self, config: StaticDuplicateConfig):
        super().__init__(config)
        self._emitted = False

    def _next(self):
        if self._emitted:
            return None
        self._emitted = True
        return Segment(self.config.duplicate, self.config.duration)


@register_config("RepeatedDuplicatePatternConfig", repeated=True)
class RepeatedDuplicatePatternConfig(RepeatedPatternConfig):
    kind: ClassVar[TraceKind] = TraceKind.DUPLICATE
