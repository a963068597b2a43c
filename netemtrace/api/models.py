from typing import Optional, Dict, Any
from pydantic import BaseModel, Field

from .. import __version__
from ..core.units import PositiveDuration
from ..export.mahimahi import MTU_IN_BYTES


class ModelInfo(BaseModel):
    tag: str
    kind: str
    description: Optional[str] = None
    config_schema: Dict[str, Any]


class MahimahiRequest(BaseModel):
    config: Dict[str, Any] = Field(..., description="Tagged bandwidth config, e.g. {\"StaticBwConfig\": {...}}")
    duration: PositiveDuration = Field(..., description="Length of the trace, e.g. \"10s\"")
    mtu: int = Field(default=MTU_IN_BYTES, gt=0, description="Packet size in bytes")


class StreamRequest(BaseModel):
    config: Dict[str, Any] = Field(..., description="Tagged config of any trace kind")
    max_items: int = Field(default=1_000, gt=0, le=1_000_000)
    humanized: bool = False  # "12Mbps" / "10ms" instead of structured values


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str = __version__
    models_available: int = 0
