from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from datastore.timeseries import build_default_store
from logging_config import configure_logging


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    store = build_default_store()
    try:
        yield
    finally:
        store.initialize()
        build_default_store.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Device Temperature Store",
        description="In-memory time-series store for per-device temperature readings.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
