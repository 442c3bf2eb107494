# floatvid/services/api/routers/stream.py
from __future__ import annotations

from http import HTTPStatus
from typing import AsyncIterator, Callable

import aiofiles
from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.responses import FileResponse, Response, StreamingResponse

from floatvid.common.logging import get_logger
from floatvid.domain.enums.stream_container import StreamContainer
from floatvid.domain.errors import ServerStartFailed
from floatvid.services.api.deps import get_streaming_server, require_source
from floatvid.services.transcode.manager import TranscodeSession

logger = get_logger(__name__)

router = APIRouter(tags=["stream"])

HLS_MEDIA_TYPE = "application/vnd.apple.mpegurl"
NO_STORE = {"Cache-Control": "no-store"}


class TranscodeStreamResponse(StreamingResponse):
    """StreamingResponse that runs `on_close` however the response ends, client disconnects included."""

    def __init__(self, content, *, on_close: Callable[[], None], **kwargs):
        super().__init__(content, **kwargs)
        self._on_close = on_close

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self._on_close()


async def _pipe_stdout(session: TranscodeSession, chunk_size: int, on_close: Callable[[], None]) -> AsyncIterator[bytes]:
    stdout = session.process.stdout
    try:
        while True:
            data = await stdout.read(chunk_size)
            if not data:
                break
            yield data
    finally:
        on_close()


def _require_container(server, container: StreamContainer) -> None:
    if server.container is not container:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=f"Server streams {server.container}, not {container}")


@router.get("/video.mp4")
async def progressive_video(
    start_time: float = Query(0.0, alias="startTime", ge=0),
    server=Depends(require_source),
) -> Response:
    """
    Live fragmented-MP4 transcode starting at `startTime` seconds. Every request
    (including every seek) replaces the running ffmpeg; the child is
    terminated as soon as this response ends or the client goes away.
    """
    _require_container(server, StreamContainer.FMP4)
    logger.info("Request received for video stream, startTime: %ss", start_time)
    try:
        session = await server.open_progressive(start_time)
    except ServerStartFailed as e:
        raise HTTPException(status_code=HTTPStatus.SERVICE_UNAVAILABLE, detail=str(e)) from e

    def release() -> None:
        server.manager.release(session)

    return TranscodeStreamResponse(
        _pipe_stdout(session, server.cfg.chunk_size, release),
        on_close=release,
        media_type="video/mp4",
        headers={**NO_STORE, "Connection": "keep-alive"},
    )


@router.get("/stream.m3u8")
async def hls_manifest(
    start_time: float = Query(0.0, alias="startTime", ge=0),
    server=Depends(require_source),
) -> Response:
    _require_container(server, StreamContainer.HLS)
    server.touch()
    try:
        session = await server.ensure_hls(start_time)
    except ServerStartFailed as e:
        raise HTTPException(status_code=HTTPStatus.SERVICE_UNAVAILABLE, detail=str(e)) from e

    manifest = await server.wait_for_manifest(session)
    if manifest is None:
        raise HTTPException(status_code=HTTPStatus.GATEWAY_TIMEOUT, detail="Manifest not ready")
    try:
        async with aiofiles.open(manifest, "r", encoding="utf-8") as f:
            body = await f.read()
    except FileNotFoundError as e:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail="Manifest gone") from e
    return Response(content=body, media_type=HLS_MEDIA_TYPE, headers=NO_STORE)


@router.get("/{segment}.ts")
async def hls_segment(segment: str, server=Depends(get_streaming_server)) -> Response:
    _require_container(server, StreamContainer.HLS)
    server.touch()
    path = server.segment_path(f"{segment}.ts")
    if path is None:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail="Segment not found")
    return FileResponse(path, media_type="video/mp2t")
