# floatvid/services/api/responses.py
from __future__ import annotations

import mimetypes
from http import HTTPStatus
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles
import aiofiles.os
from starlette.responses import PlainTextResponse, Response, StreamingResponse

from floatvid.common.http.ranges import RangeNotSatisfiable, parse_range
from floatvid.common.logging import get_logger
from floatvid.domain.errors import (
    FileAccessDenied,
    FileNotFound,
    PlaybackError,
    UnsupportedSubtitleFormat,
)
from floatvid.domain.ports.subtitles import SubtitleConverterPort

logger = get_logger(__name__)

VTT_MEDIA_TYPE = "text/vtt; charset=utf-8"
CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
DEFAULT_CHUNK = 1024 * 1024


def video_media_type(path: Path) -> str:
    ct, _ = mimetypes.guess_type(str(path))
    if ct and ct.startswith("video/"):
        return ct
    return "video/mp4"


def status_for(exc: PlaybackError) -> HTTPStatus:
    if isinstance(exc, FileNotFound):
        return HTTPStatus.NOT_FOUND
    if isinstance(exc, FileAccessDenied):
        return HTTPStatus.FORBIDDEN
    if isinstance(exc, UnsupportedSubtitleFormat):
        return HTTPStatus.UNSUPPORTED_MEDIA_TYPE
    return HTTPStatus.INTERNAL_SERVER_ERROR


async def _iter_open_file(f, start: int, length: int, chunk_size: int) -> AsyncIterator[bytes]:
    try:
        await f.seek(start)
        remaining = length
        while remaining > 0:
            data = await f.read(min(chunk_size, remaining))
            if not data:
                break
            remaining -= len(data)
            yield data
    finally:
        await f.close()


async def file_range_response(
    path: Path,
    range_header: Optional[str],
    *,
    chunk_size: int = DEFAULT_CHUNK,
    media_type: Optional[str] = None,
) -> Response:
    """
    Serve `path` honoring a single byte range: 206 with exact
    Content-Length/Content-Range, 200 for the whole file, 416 for ranges
    outside the file, 404/403/500 for missing, unreadable and broken files.
    """
    media_type = media_type or video_media_type(path)
    try:
        st = await aiofiles.os.stat(path)
        f = await aiofiles.open(path, "rb")
    except FileNotFoundError:
        return PlainTextResponse("Not found", status_code=HTTPStatus.NOT_FOUND)
    except PermissionError:
        return PlainTextResponse("Forbidden", status_code=HTTPStatus.FORBIDDEN)
    except IsADirectoryError:
        return PlainTextResponse("Not found", status_code=HTTPStatus.NOT_FOUND)
    except OSError as e:
        logger.error("Error opening %s: %s", path, e)
        return PlainTextResponse("Internal error", status_code=HTTPStatus.INTERNAL_SERVER_ERROR)

    size = st.st_size
    try:
        rng = parse_range(range_header, size)
    except RangeNotSatisfiable:
        await f.close()
        return Response(
            status_code=HTTPStatus.REQUESTED_RANGE_NOT_SATISFIABLE,
            headers={"Content-Range": f"bytes */{size}", "Accept-Ranges": "bytes"},
        )

    if rng is None:
        return StreamingResponse(
            _iter_open_file(f, 0, size, chunk_size),
            status_code=HTTPStatus.OK,
            media_type=media_type,
            headers={"Accept-Ranges": "bytes", "Content-Length": str(size)},
        )
    return StreamingResponse(
        _iter_open_file(f, rng.start, rng.length, chunk_size),
        status_code=HTTPStatus.PARTIAL_CONTENT,
        media_type=media_type,
        headers=rng.headers(),
    )


async def subtitle_response(converter: SubtitleConverterPort, path: Path) -> Response:
    try:
        text = await converter.convert(path)
    except PlaybackError as e:
        status = status_for(e)
        logger.warning("Subtitle %s failed (%s): %s", path, int(status), e)
        return PlainTextResponse(e.message, status_code=status, headers=CORS_HEADERS)
    return Response(content=text, media_type=VTT_MEDIA_TYPE, headers=CORS_HEADERS)
