"""Core netemtrace components - the trace protocol and config plumbing."""

from .trace import BaseTrace, Segment, StaticSegment, TraceConfig, TraceKind
from .registry import ConfigRegistry, register_config
from .pattern import RepeatedPattern, RepeatedPatternConfig

__all__ = [
    "BaseTrace",
    "Segment",
    "StaticSegment",
    "TraceConfig",
    "TraceKind",
    "ConfigRegistry",
    "register_config",
    "RepeatedPattern",
    "RepeatedPatternConfig",
]
