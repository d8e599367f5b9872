from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from datastore.connection import build_default_provider
from logging_config import configure_logging
from services.readings import build_default_store


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    store = build_default_store()
    try:
        yield
    finally:
        store.provider.dispose()
        build_default_store.cache_clear()
        build_default_provider.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Home Temperature",
        description="Read-only HTTP access to recorded home temperature readings.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
