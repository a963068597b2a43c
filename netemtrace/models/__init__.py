from .bw import (
    NormalizedBw,
    NormalizedBwConfig,
    RepeatedBwPatternConfig,
    SawtoothBw,
    SawtoothBwConfig,
    StaticBwConfig,
    TraceBw,
    TraceBwConfig,
)
from .delay import RepeatedDelayPatternConfig, StaticDelayConfig
from .delay_per_packet import (
    NormalizedDelayPerPacket,
    NormalizedDelayPerPacketConfig,
    RepeatedDelayPerPacketPatternConfig,
    StaticDelayPerPacket,
    StaticDelayPerPacketConfig,
)
from .duplicate import RepeatedDuplicatePatternConfig, StaticDuplicate, StaticDuplicateConfig
from .loss import RepeatedLossPatternConfig, StaticLoss, StaticLossConfig

__all__ = [
    "StaticBwConfig",
    "NormalizedBwConfig",
    "NormalizedBw",
    "SawtoothBwConfig",
    "SawtoothBw",
    "TraceBwConfig",
    "TraceBw",
    "RepeatedBwPatternConfig",
    "StaticDelayConfig",
    "RepeatedDelayPatternConfig",
    "StaticDelayPerPacketConfig",
    "StaticDelayPerPacket",
    "NormalizedDelayPerPacketConfig",
    "NormalizedDelayPerPacket",
    "RepeatedDelayPerPacketPatternConfig",
    "StaticLossConfig",
    "StaticLoss",
    "RepeatedLossPatternConfig",
    "StaticDuplicateConfig",
    "StaticDuplicate",
    "RepeatedDuplicatePatternConfig",
]
