from fastapi import FastAPI
from contextlib import asynccontextmanager

from .. import __version__
from .routes import router
from ..core.registry import ConfigRegistry


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: make sure every bundled trace model is registered
    ConfigRegistry.discover_models()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="netemtrace",
        description="Synthetic network-emulation traces for mahimahi and friends",
        version=__version__,
        lifespan=lifespan
    )

    app.include_router(router)

    return app


app = create_app()
