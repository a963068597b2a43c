"""
Tagged encoding of trace config trees.

Every node is encoded as a single-key mapping from its registered tag to its
fields, e.g.::

    {"RepeatedBwPatternConfig": {"pattern": [{"StaticBwConfig": {...}}], "count": 2}}

so a tree of mixed models decodes back to the right classes without any
outside type hints. Decoding is all-or-nothing.
"""

import json
import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from .exceptions import TraceDecodeError, UnknownTraceTagError
from .registry import ConfigRegistry
from .trace import Segment, TraceConfig, TraceKind
from .units import (
    bandwidth_to_struct,
    duration_to_struct,
    format_humanized_bandwidth,
    format_humanized_duration,
)

logger = logging.getLogger(__name__)


def encode(config: TraceConfig, humanized: bool = False) -> Dict[str, Any]:
    """Encode a config tree into JSON-compatible tagged mappings."""
    if not isinstance(config, TraceConfig):
        raise TypeError(f"expected a TraceConfig, got {type(config).__name__}")
    body = config.model_dump(mode="json", exclude_none=True, context={"humanized": humanized})
    return {config.tag: body}


def decode(data: Any, kind: Optional[TraceKind] = None) -> TraceConfig:
    """Rebuild a config tree from its tagged encoding.

    Raises:
        UnknownTraceTagError: the top-level tag is not registered
        TraceDecodeError: anything else is wrong anywhere in the tree
    """
    if not isinstance(data, dict) or len(data) != 1:
        raise TraceDecodeError(f"expected a mapping with exactly one tag, got {data!r}")

    (tag, body), = data.items()
    config_class = ConfigRegistry.get_config(tag)
    if config_class is None:
        raise UnknownTraceTagError(tag)
    if kind is not None and config_class.kind != kind:
        raise TraceDecodeError(
            f"{tag} describes {config_class.kind.value} traces, expected {TraceKind(kind).value}"
        )
    if body is None:
        body = {}

    try:
        config = config_class.model_validate(body)
    except ValidationError as e:
        raise TraceDecodeError(f"invalid {tag}: {e}") from e

    logger.debug("Decoded %s", tag)
    return config


def dumps(config: TraceConfig, humanized: bool = False, **json_kwargs) -> str:
    json_kwargs.setdefault("separators", (",", ":"))
    json_kwargs.setdefault("ensure_ascii", False)
    return json.dumps(encode(config, humanized=humanized), **json_kwargs)


def loads(text: Union[str, bytes], kind: Optional[TraceKind] = None) -> TraceConfig:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise TraceDecodeError(f"config is not valid JSON: {e}") from e
    return decode(data, kind=kind)


def encode_segment(kind: TraceKind, item: Any, humanized: bool = False) -> Dict[str, Any]:
    """Render one item produced by a model of ``kind``."""
    def encode_duration(value: timedelta) -> Any:
        return format_humanized_duration(value) if humanized else duration_to_struct(value)

    kind = TraceKind(kind)
    if kind == TraceKind.DELAY_PER_PACKET:
        return {"delay": encode_duration(item)}

    value, duration = Segment(*item)
    if kind == TraceKind.BW:
        value = format_humanized_bandwidth(value) if humanized else bandwidth_to_struct(value)
    elif kind == TraceKind.DELAY:
        value = encode_duration(value)
    else:
        value = list(value)
    return {"value": value, "duration": encode_duration(duration)}
