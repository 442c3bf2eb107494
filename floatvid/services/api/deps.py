# floatvid/services/api/deps.py
from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING

from fastapi import HTTPException, Request

if TYPE_CHECKING:
    from floatvid.services.streaming.server import StreamingServer


def get_streaming_server(request: Request) -> "StreamingServer":
    """The StreamingServer that owns this app (set by create_app)."""
    server = getattr(request.app.state, "streaming", None)
    if server is None:
        raise HTTPException(status_code=HTTPStatus.SERVICE_UNAVAILABLE, detail="Streaming server not attached")
    return server


def require_source(request: Request) -> "StreamingServer":
    """Like get_streaming_server, but 400 until a video source has been configured."""
    server = get_streaming_server(request)
    if server.source is None:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="Video source info is not set.")
    return server
