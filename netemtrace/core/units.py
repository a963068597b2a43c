"""
Value types for trace configs: bandwidths and durations.

Bandwidths are plain ``int`` bits per second and durations are
``datetime.timedelta``. Both have two interchangeable wire encodings:

- structured: ``{"secs": 1, "nanos": 500000000}`` and ``{"gbps": 0, "bps": 12000000}``
- humanized:  ``"1s 500ms"`` and ``"12Mbps"``

Decoding accepts either form; which one is produced on encode is chosen by
the ``humanized`` flag in the pydantic serialization context.
"""

import re
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Annotated, Any, Dict, List, Union

from pydantic import AfterValidator, BeforeValidator, Field, PlainSerializer, SerializationInfo

NANOS_PER_MICRO = 1_000
NANOS_PER_SEC = 1_000_000_000
BPS_PER_GBPS = 1_000_000_000

ONE_MICROSECOND = timedelta(microseconds=1)

_DURATION_UNITS_NS = {
    "ns": 1,
    "nsec": 1,
    "us": 1_000,
    "µs": 1_000,
    "usec": 1_000,
    "ms": 1_000_000,
    "msec": 1_000_000,
    "millis": 1_000_000,
    "s": NANOS_PER_SEC,
    "sec": NANOS_PER_SEC,
    "secs": NANOS_PER_SEC,
    "second": NANOS_PER_SEC,
    "seconds": NANOS_PER_SEC,
    "m": 60 * NANOS_PER_SEC,
    "min": 60 * NANOS_PER_SEC,
    "mins": 60 * NANOS_PER_SEC,
    "minute": 60 * NANOS_PER_SEC,
    "minutes": 60 * NANOS_PER_SEC,
    "h": 3_600 * NANOS_PER_SEC,
    "hr": 3_600 * NANOS_PER_SEC,
    "hrs": 3_600 * NANOS_PER_SEC,
    "hour": 3_600 * NANOS_PER_SEC,
    "hours": 3_600 * NANOS_PER_SEC,
    "d": 86_400 * NANOS_PER_SEC,
    "day": 86_400 * NANOS_PER_SEC,
    "days": 86_400 * NANOS_PER_SEC,
}

# Largest unit first, used when formatting
_DURATION_FORMAT_UNITS_US = [
    ("d", 86_400_000_000),
    ("h", 3_600_000_000),
    ("m", 60_000_000),
    ("s", 1_000_000),
    ("ms", 1_000),
    ("us", 1),
]

_BANDWIDTH_UNITS_BPS = {
    "bps": 1,
    "kbps": 1_000,
    "Kbps": 1_000,
    "Mbps": 1_000_000,
    "mbps": 1_000_000,
    "Gbps": 1_000_000_000,
    "gbps": 1_000_000_000,
    "Tbps": 1_000_000_000_000,
    "tbps": 1_000_000_000_000,
}

_BANDWIDTH_FORMAT_UNITS = [
    ("Tbps", 1_000_000_000_000),
    ("Gbps", 1_000_000_000),
    ("Mbps", 1_000_000),
    ("kbps", 1_000),
    ("bps", 1),
]

_TOKEN = re.compile(r"\s*(\d+(?:\.\d+)?)\s*([A-Za-zµ]+)\s*")


def bps(value: Union[int, float]) -> int:
    return int(round(value))


def kbps(value: Union[int, float]) -> int:
    return int(round(value * 1_000))


def mbps(value: Union[int, float]) -> int:
    return int(round(value * 1_000_000))


def gbps(value: Union[int, float]) -> int:
    return int(round(value * 1_000_000_000))


def duration_to_micros(value: timedelta) -> int:
    """Exact number of microseconds in a timedelta."""
    return value // ONE_MICROSECOND


def _tokens(text: str) -> List[tuple]:
    """Split ``"1s 500ms"`` into ``[("1", "s"), ("500", "ms")]``.

    Raises ValueError unless the whole string is made of number+unit tokens.
    """
    tokens = []
    position = 0
    text = text.strip()
    if not text:
        raise ValueError("empty value")
    while position < len(text):
        match = _TOKEN.match(text, position)
        if match is None or match.end() == position:
            raise ValueError(f"cannot parse {text!r} near position {position}")
        tokens.append((match.group(1), match.group(2)))
        position = match.end()
    return tokens


def _whole_micros(nanos: Decimal, source: Any) -> timedelta:
    # timedelta cannot hold the remainder, so refuse it rather than round
    if nanos % NANOS_PER_MICRO != 0:
        raise ValueError(f"duration {source!r} is not a whole number of microseconds")
    return timedelta(microseconds=int(nanos) // NANOS_PER_MICRO)


def parse_humanized_duration(text: str) -> timedelta:
    total_ns = Decimal(0)
    for number, unit in _tokens(text):
        if unit not in _DURATION_UNITS_NS:
            raise ValueError(f"unknown duration unit {unit!r} in {text!r}")
        total_ns += Decimal(number) * _DURATION_UNITS_NS[unit]
    return _whole_micros(total_ns, text)


def format_humanized_duration(value: timedelta) -> str:
    remaining = duration_to_micros(value)
    if remaining == 0:
        return "0s"
    parts = []
    for unit, size in _DURATION_FORMAT_UNITS_US:
        amount, remaining = divmod(remaining, size)
        if amount:
            parts.append(f"{amount}{unit}")
    return " ".join(parts)


def duration_to_struct(value: timedelta) -> Dict[str, int]:
    secs, micros = divmod(duration_to_micros(value), 1_000_000)
    return {"secs": secs, "nanos": micros * NANOS_PER_MICRO}


def duration_from_struct(value: Dict[str, Any]) -> timedelta:
    if set(value) != {"secs", "nanos"}:
        raise ValueError(f"structured duration needs exactly 'secs' and 'nanos', got {sorted(value)}")
    secs, nanos = value["secs"], value["nanos"]
    for name, part in (("secs", secs), ("nanos", nanos)):
        if isinstance(part, bool) or not isinstance(part, int) or part < 0:
            raise ValueError(f"duration {name} must be a non-negative integer, got {part!r}")
    if nanos >= NANOS_PER_SEC:
        raise ValueError(f"duration nanos must be below {NANOS_PER_SEC}, got {nanos}")
    return timedelta(seconds=secs) + _whole_micros(Decimal(nanos), value)


def parse_humanized_bandwidth(text: str) -> int:
    total = Decimal(0)
    for number, unit in _tokens(text):
        if unit not in _BANDWIDTH_UNITS_BPS:
            raise ValueError(f"unknown bandwidth unit {unit!r} in {text!r}")
        total += Decimal(number) * _BANDWIDTH_UNITS_BPS[unit]
    return int(total.to_integral_value(rounding=ROUND_HALF_EVEN))


def format_humanized_bandwidth(value: int) -> str:
    if value == 0:
        return "0bps"
    remaining = value
    parts = []
    for unit, size in _BANDWIDTH_FORMAT_UNITS:
        amount, remaining = divmod(remaining, size)
        if amount:
            parts.append(f"{amount}{unit}")
    return " ".join(parts)


def bandwidth_to_struct(value: int) -> Dict[str, int]:
    gbps_part, bps_part = divmod(value, BPS_PER_GBPS)
    return {"gbps": gbps_part, "bps": bps_part}


def bandwidth_from_struct(value: Dict[str, Any]) -> int:
    if set(value) != {"gbps", "bps"}:
        raise ValueError(f"structured bandwidth needs exactly 'gbps' and 'bps', got {sorted(value)}")
    for name in ("gbps", "bps"):
        part = value[name]
        if isinstance(part, bool) or not isinstance(part, int) or part < 0:
            raise ValueError(f"bandwidth {name} must be a non-negative integer, got {part!r}")
    return value["gbps"] * BPS_PER_GBPS + value["bps"]


def parse_duration(value: Any) -> Any:
    if isinstance(value, timedelta):
        return value
    if isinstance(value, dict):
        return duration_from_struct(value)
    if isinstance(value, str):
        return parse_humanized_duration(value)
    raise ValueError(f"expected a timedelta, a {{secs, nanos}} mapping or a string like '10ms', got {value!r}")


def parse_bandwidth(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("bandwidth cannot be a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, dict):
        return bandwidth_from_struct(value)
    if isinstance(value, str):
        return parse_humanized_bandwidth(value)
    raise ValueError(f"expected bits per second, a {{gbps, bps}} mapping or a string like '12Mbps', got {value!r}")


def is_humanized(info: SerializationInfo) -> bool:
    context = info.context
    return bool(context and context.get("humanized"))


def serialize_duration(value: timedelta, info: SerializationInfo) -> Any:
    if is_humanized(info):
        return format_humanized_duration(value)
    return duration_to_struct(value)


def serialize_bandwidth(value: int, info: SerializationInfo) -> Any:
    if is_humanized(info):
        return format_humanized_bandwidth(value)
    return bandwidth_to_struct(value)


def _non_negative(value: timedelta) -> timedelta:
    if value < timedelta(0):
        raise ValueError("duration must not be negative")
    return value


def _positive(value: timedelta) -> timedelta:
    if value <= timedelta(0):
        raise ValueError("duration must be positive")
    return value


Duration = Annotated[
    timedelta,
    BeforeValidator(parse_duration),
    AfterValidator(_non_negative),
    PlainSerializer(serialize_duration),
]
PositiveDuration = Annotated[Duration, AfterValidator(_positive)]
Bandwidth = Annotated[
    int,
    BeforeValidator(parse_bandwidth),
    Field(ge=0),
    PlainSerializer(serialize_bandwidth),
]
Probability = Annotated[float, Field(ge=0.0, le=1.0)]
