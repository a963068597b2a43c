"""
Loss trace models.

A loss pattern is a tuple of drop probabilities: index 0 applies to a packet
that follows a delivered one, index i applies after i consecutive drops
(the last entry covers every longer run).
"""

from datetime import timedelta
from typing import ClassVar, Tuple

from ..core.pattern import RepeatedPatternConfig
from ..core.registry import register_config
from ..core.trace import BaseTrace, Segment, TraceConfig, TraceKind
from ..core.units import PositiveDuration, Probability


class LossTraceConfig(TraceConfig):
    kind: ClassVar[TraceKind] = TraceKind.LOSS


@register_config("StaticLossConfig")
class StaticLossConfig(LossTraceConfig):
    loss: Tuple[Probability, ...] = (0.1, 0.2)
    duration: PositiveDuration = timedelta(seconds=1)

    def build(self) -> "StaticLoss":
        return StaticLoss(self)


class StaticLoss(BaseTrace):
    def __init__(self, config: StaticLossConfig):
        super().__init__(config)
        self._emitted = False

    def _next(self):
        if self._emitted:
            return None
        self._emitted = True
        return Segment(self.config.loss, self.config.duration)


@register_config("RepeatedLossPatternConfig", repeated=True)
class RepeatedLossPatternConfig(RepeatedPatternConfig):
    kind: ClassVar[TraceKind] = TraceKind.LOSS
