# floatvid/services/api/routers/health.py
from __future__ import annotations
from fastapi import APIRouter, Depends
from floatvid.common.settings import get_settings
from floatvid.services.api.deps import get_streaming_server

router = APIRouter(tags=["health"])

@router.get("/healthz")
def healthz(server=Depends(get_streaming_server)):
    s = get_settings()
    session = server.manager.session
    return {
        "ok": True,
        "app": s.app_name,
        "env": s.app_env,
        "container": str(server.container),
        "state": str(server.manager.state),
        "source": str(server.source.path) if server.source else None,
        "session": {
            "pid": session.pid,
            "start_sec": session.start_sec,
            "alive": session.alive,
        } if session else None,
    }
