from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse, StreamingResponse
from typing import List
import asyncio
import json
import logging

from .models import HealthResponse, MahimahiRequest, ModelInfo, StreamRequest
from ..core.exceptions import TraceDecodeError, UnknownTraceTagError
from ..core.registry import ConfigRegistry
from ..core.serde import decode, encode_segment
from ..core.trace import TraceConfig
from ..export.mahimahi import mahimahi_to_string

logger = logging.getLogger(__name__)

router = APIRouter()


def decode_or_raise(data) -> TraceConfig:
    try:
        return decode(data)
    except UnknownTraceTagError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TraceDecodeError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/", response_model=HealthResponse)
async def health_check():
    return HealthResponse(models_available=len(ConfigRegistry.list_configs()))


@router.get("/models", response_model=List[ModelInfo])
async def list_models():
    models_info = []

    for tag in ConfigRegistry.list_configs():
        config_class = ConfigRegistry.get_config(tag)
        if config_class:
            models_info.append(ModelInfo(
                tag=tag,
                kind=config_class.kind.value,
                description=config_class.__doc__,
                config_schema=config_class.model_json_schema()
            ))

    return models_info


@router.post("/mahimahi", response_class=PlainTextResponse)
def render_mahimahi(request: MahimahiRequest):
    config = decode_or_raise(request.config)
    try:
        trace = mahimahi_to_string(config, request.duration, request.mtu)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return PlainTextResponse(trace)


@router.post("/stream")
async def stream_trace(request: StreamRequest):
    config = decode_or_raise(request.config)
    model = config.build()
    logger.debug("Streaming up to %d items from %s", request.max_items, model.tag)

    async def generate_stream():
        for _ in range(request.max_items):
            item = model.advance()
            if item is None:
                break
            record = encode_segment(model.kind, item, humanized=request.humanized)
            yield f"data: {json.dumps(record)}\n\n"
            await asyncio.sleep(0)

    return StreamingResponse(
        generate_stream(),
        media_type="text/plain",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )
