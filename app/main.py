from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.simulator import build_default_simulator


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    simulator = build_default_simulator()
    simulator.start()
    try:
        yield
    finally:
        simulator.shutdown()
        build_default_simulator.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Sensor Simulator",
        description="Simulated environmental sensors broadcasting readings over UDP.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
