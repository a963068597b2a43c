"""netemtrace - Composable network-emulation trace models."""

__version__ = "0.4.3"
__author__ = "Kev Waithaka"
__description__ = "Synthetic bandwidth, delay, loss and duplication traces for network emulators"

from .core.trace import BaseTrace, Segment, TraceConfig, TraceKind
from .core.serde import decode, dumps, encode, loads
from . import models
from .export.mahimahi import load_mahimahi_trace, mahimahi, mahimahi_to_string

__all__ = [
    "BaseTrace",
    "Segment",
    "TraceConfig",
    "TraceKind",
    "decode",
    "dumps",
    "encode",
    "loads",
    "models",
    "load_mahimahi_trace",
    "mahimahi",
    "mahimahi_to_string",
]
