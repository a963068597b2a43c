"""
mahimahi link traces.

A mahimahi trace is one integer per line, each the millisecond at which one
MTU-sized packet may leave the link. ``mahimahi`` renders a bandwidth model
into that format and ``load_mahimahi_trace`` turns a recorded trace back into
a bandwidth config that replays it.

Example::

    >>> mahimahi(StaticBwConfig(bw=mbps(24), duration=timedelta(seconds=1)), timedelta(milliseconds=5))
    [1, 1, 2, 2, 3, 3, 4, 4, 5, 5]
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..core.exceptions import MahimahiTraceError
from ..core.trace import BaseTrace, TraceConfig, TraceKind
from ..core.units import duration_to_micros
from ..models.bw import RepeatedBwPatternConfig, StaticBwConfig

logger = logging.getLogger(__name__)

MTU_IN_BYTES = 1500
MAHIMAHI_TS_BIN = timedelta(milliseconds=1)

_BIN_US = duration_to_micros(MAHIMAHI_TS_BIN)
_MICROS_PER_SEC = 1_000_000

TraceSource = Union[BaseTrace, TraceConfig]


def _as_model(source: TraceSource, kind: TraceKind) -> BaseTrace:
    model = source.build() if isinstance(source, TraceConfig) else source
    if model.kind != kind:
        raise ValueError(f"expected a {kind.value} trace, got a {model.kind.value} trace ({model.tag})")
    return model


def _check_mtu(mtu: int) -> None:
    if mtu <= 0:
        raise ValueError(f"mtu must be positive, got {mtu}")


def mahimahi(
    source: TraceSource,
    total_duration: Optional[timedelta],
    mtu: int = MTU_IN_BYTES,
) -> List[int]:
    """Render a bandwidth model as mahimahi packet timestamps.

    Delivered bits are accumulated per 1 ms bin (in bit-microseconds, so no
    rounding creeps in) and the bin's timestamp is emitted once for every
    whole packet. Rendering stops at the first bin past ``total_duration``
    or when the model runs out, whichever comes first. The duration has no
    default: pass None explicitly to render until the model runs out.

    Args:
        source: a bandwidth model, or a config to build one from
        total_duration: length of the trace; None renders the whole model,
            which never returns for an endless one
        mtu: packet size in bytes
    """
    _check_mtu(mtu)
    model = _as_model(source, TraceKind.BW)
    if total_duration is None:
        logger.warning("Rendering %s without a duration, an endless model will never finish", model.tag)
        budget_us = None
    else:
        budget_us = duration_to_micros(total_duration)

    packet = mtu * 8 * _MICROS_PER_SEC
    timestamps = []
    timestamp = 1
    bin_remaining = _BIN_US
    transfer = 0

    def within_budget() -> bool:
        return budget_us is None or timestamp * _BIN_US <= budget_us

    for bw, duration in model:
        if not within_budget():
            break
        remaining = duration_to_micros(duration)
        while remaining > 0 and within_budget():
            chunk = min(bin_remaining, remaining)
            bin_remaining -= chunk
            remaining -= chunk
            transfer += bw * chunk
            while transfer >= packet:
                timestamps.append(timestamp)
                transfer -= packet
            if bin_remaining == 0:
                bin_remaining = _BIN_US
                timestamp += 1

    logger.debug("Rendered %d packets over %d ms from %s", len(timestamps), timestamp - 1, model.tag)
    return timestamps


def mahimahi_to_string(
    source: TraceSource,
    total_duration: Optional[timedelta],
    mtu: int = MTU_IN_BYTES,
) -> str:
    return "\n".join(str(ts) for ts in mahimahi(source, total_duration, mtu))


def mahimahi_to_file(
    source: TraceSource,
    path: Union[str, Path],
    total_duration: Optional[timedelta],
    mtu: int = MTU_IN_BYTES,
) -> None:
    Path(path).write_text(mahimahi_to_string(source, total_duration, mtu))


def parse_mahimahi(text: str) -> List[int]:
    """Read mahimahi trace text into timestamps. Blank lines are ignored."""
    timestamps = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            timestamp = int(line)
        except ValueError:
            raise MahimahiTraceError(f"line {line_number}: {line!r} is not an integer timestamp") from None
        if timestamp < 0:
            raise MahimahiTraceError(f"line {line_number}: timestamp {timestamp} is negative")
        timestamps.append(timestamp)
    return timestamps


def load_mahimahi_trace(
    trace: Iterable[int],
    count: Optional[int] = None,
    mtu: int = MTU_IN_BYTES,
) -> RepeatedBwPatternConfig:
    """Build a bandwidth config that replays a mahimahi trace.

    Every timestamp becomes one packet's worth of bandwidth for that
    millisecond (12 Mbps for a 1500 byte MTU), gaps become 0 bps and equal
    neighbours are merged. Each pass starts counting from 0 ms, so
    ``[1, 1, 5, 6]`` replays as 24 Mbps for 1 ms, 0 bps for 3 ms and
    12 Mbps for 2 ms. Timestamps equal to 0 are added to the last
    millisecond of the pass.

    Args:
        trace: non-decreasing millisecond timestamps
        count: number of passes; None or 0 replays forever

    Raises:
        MahimahiTraceError: timestamps decrease, are negative, or are all 0
    """
    _check_mtu(mtu)
    per_packet = mtu * 8 * 1_000  # one packet per millisecond, in bps
    pattern: List[List[int]] = []  # [bw, duration_ms]

    def append(bw: int, duration_ms: int) -> None:
        if pattern and pattern[-1][0] == bw:
            pattern[-1][1] += duration_ms
        else:
            pattern.append([bw, duration_ms])

    zero_count = 0
    last_ts = 0
    last_count = 0
    for ts in trace:
        if ts < 0:
            raise MahimahiTraceError(f"timestamps must not be negative, got {ts}")
        if ts == 0:
            zero_count += 1
            continue
        if ts < last_ts:
            raise MahimahiTraceError(f"timestamps must be non-decreasing, {ts} follows {last_ts}")
        if ts == last_ts:
            last_count += 1
            continue
        if last_ts > 0:
            append(per_packet * last_count, 1)
        if ts - last_ts > 1:
            append(0, ts - last_ts - 1)
        last_ts = ts
        last_count = 1

    if last_count == 0:
        raise MahimahiTraceError("trace must contain at least one non-zero timestamp")
    append(per_packet * (last_count + zero_count), 1)

    logger.debug("Loaded mahimahi trace of %d ms into %d segments", last_ts, len(pattern))
    return RepeatedBwPatternConfig(
        pattern=[StaticBwConfig(bw=bw, duration=timedelta(milliseconds=ms)) for bw, ms in pattern],
        count=count or 0,
    )


def delay_per_packet_trace(source: TraceSource, count: Optional[int] = None) -> List[int]:
    """Whole-millisecond delays (rounded down), one per packet.

    Stops after ``count`` packets or when the model runs out.
    """
    model = _as_model(source, TraceKind.DELAY_PER_PACKET)
    if count is None:
        logger.warning("Rendering %s without a packet count, an endless model will never finish", model.tag)
        delays = model
    else:
        delays = model.take(count)
    result = [delay // MAHIMAHI_TS_BIN for delay in delays]
    logger.debug("Rendered %d per-packet delays from %s", len(result), model.tag)
    return result
