# floatvid/services/api/routers/subtitle.py
from __future__ import annotations

from http import HTTPStatus

from fastapi import APIRouter, Depends
from starlette.responses import PlainTextResponse, Response

from floatvid.services.api.deps import get_streaming_server
from floatvid.services.api.responses import CORS_HEADERS, subtitle_response

router = APIRouter(tags=["subtitle"])


@router.get("/subtitle")
async def get_subtitle(server=Depends(get_streaming_server)) -> Response:
    source = server.source
    if source is None or source.subtitle_path is None:
        return PlainTextResponse("Subtitle not found.", status_code=HTTPStatus.NOT_FOUND, headers=CORS_HEADERS)
    return await subtitle_response(server.converter, source.subtitle_path)
