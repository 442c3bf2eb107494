# floatvid/services/api/app.py
from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from floatvid import __version__
from floatvid.common.settings import get_settings
from floatvid.services.api.routers import health, stream, subtitle

if TYPE_CHECKING:
    from floatvid.services.streaming.server import StreamingServer


def create_app(server: "StreamingServer | None" = None) -> FastAPI:
    """
    The local playback endpoint. Bound to loopback and serving one user, so
    there is no auth; CORS is open because the player page is served from a
    different origin (file:// or the app's own scheme).
    """
    cfg = get_settings()
    app = FastAPI(
        title="floatvid streaming",
        version=__version__,
        docs_url=None if cfg.app_env == "production" else "/docs",
        openapi_url=None if cfg.app_env == "production" else "/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["*"],
        allow_credentials=False,
    )

    # Routers
    app.include_router(health.router)
    app.include_router(subtitle.router)
    app.include_router(stream.router)

    app.state.streaming = server
    return app
