from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Settings
from .connections import ConnectionRegistry
from .logging_config import get_logger, setup_logging
from .routers import health as health_router
from .routers import rooms as rooms_router
from .routers import websockets as ws_router
from .state import RoomStore

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[RoomStore] = None) -> FastAPI:
    """Build the FastAPI app. *settings* and *store* are injectable for tests."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title="quizcast", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.room_store = store if store is not None else RoomStore(audience=settings.broadcast_audience)
    app.state.connections = ConnectionRegistry()

    app.include_router(health_router.router)
    app.include_router(rooms_router.router)
    app.include_router(ws_router.router)

    logger.info(
        "quizcast app ready (audience=%s, counts_request_subscribes=%s)",
        settings.broadcast_audience,
        settings.counts_request_subscribes,
    )
    return app


__all__ = ["create_app"]
