# floatvid/services/api/schemes.py
from __future__ import annotations

from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote

from starlette.responses import Response

from floatvid.domain.ports.subtitles import SubtitleConverterPort
from floatvid.services.api.responses import DEFAULT_CHUNK, file_range_response, subtitle_response
from floatvid.services.subtitles.converter import SubtitleConverter

LOCAL_VIDEO_SCHEME = "local-video"
LOCAL_SUBTITLE_SCHEME = "local-subtitle"


def local_video_url(path: Path | str) -> str:
    """Percent-encoded, so `path_from_url` gives back the exact file name."""
    return f"{LOCAL_VIDEO_SCHEME}:{quote(str(path))}"


def local_subtitle_url(path: Path | str) -> str:
    return f"{LOCAL_SUBTITLE_SCHEME}:{quote(str(path))}"


def path_from_url(url: str, scheme: str) -> Path:
    """
    "local-video:/abs/path.mp4" -> Path("/abs/path.mp4").
    Accepts the "scheme://" form too; browsers percent-encode what they request.
    """
    prefix = f"{scheme}:"
    if not url.lower().startswith(prefix):
        raise ValueError(f"not a {scheme}: URL: {url!r}")
    rest = url[len(prefix):]
    if rest.startswith("//"):
        rest = rest[2:]
    return Path(unquote(rest))


async def resolve_local_video(url: str, range_header: Optional[str] = None, *, chunk_size: int = DEFAULT_CHUNK) -> Response:
    """Answer a `local-video:` request the way an HTTP file server answers a ranged GET."""
    return await file_range_response(path_from_url(url, LOCAL_VIDEO_SCHEME), range_header, chunk_size=chunk_size)


async def resolve_local_subtitle(url: str, converter: Optional[SubtitleConverterPort] = None) -> Response:
    """Answer a `local-subtitle:` request with WebVTT converted from the referenced file."""
    return await subtitle_response(converter or SubtitleConverter(), path_from_url(url, LOCAL_SUBTITLE_SCHEME))
