from .mahimahi import (
    MAHIMAHI_TS_BIN,
    MTU_IN_BYTES,
    delay_per_packet_trace,
    load_mahimahi_trace,
    mahimahi,
    mahimahi_to_file,
    mahimahi_to_string,
    parse_mahimahi,
)

__all__ = [
    "MAHIMAHI_TS_BIN",
    "MTU_IN_BYTES",
    "delay_per_packet_trace",
    "load_mahimahi_trace",
    "mahimahi",
    "mahimahi_to_file",
    "mahimahi_to_string",
    "parse_mahimahi",
]
