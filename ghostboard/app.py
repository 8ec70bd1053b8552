"""FastAPI application factory and configuration."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel

from . import models  # noqa: F401 - ensure models are registered with SQLModel
from .api import register_routes
from .catalog import ensure_segments
from .core import ALLOWED_CORS_ORIGINS, DB_RESET, SEGMENT_CACHE_TTL_SECONDS, engine
from .core.logging import setup_logging
from .services.cache import SegmentCache
from .services.sync import SyncOrchestrator

logger = logging.getLogger(__name__)


def create_app(
    bind: Optional[Engine] = None, orchestrator: Optional[SyncOrchestrator] = None
) -> FastAPI:
    db_engine = bind or engine

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if DB_RESET:
            SQLModel.metadata.drop_all(db_engine)
        SQLModel.metadata.create_all(db_engine)
        with Session(db_engine) as session:
            ensure_segments(session)
        logger.info("Ghostboard API ready")
        yield

    app = FastAPI(title="Ghostboard API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    segment_cache: SegmentCache = SegmentCache(SEGMENT_CACHE_TTL_SECONDS)
    app.state.segment_cache = segment_cache
    app.state.orchestrator = orchestrator or SyncOrchestrator(bind=db_engine, cache=segment_cache)

    register_routes(app)
    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ghostboard.app:app", host="127.0.0.1", port=3000, reload=True)
