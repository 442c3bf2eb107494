# floatvid/services/streaming/server.py
from __future__ import annotations

import asyncio
import contextlib
import shutil
import socket
import tempfile
import time
import uuid
from pathlib import Path
from typing import Optional

import aiofiles.os
import uvicorn

from floatvid.common.logging import get_logger
from floatvid.common.path.safe import safe_join
from floatvid.common.settings import StreamingConfig, get_settings
from floatvid.domain.entities.playback import StreamSource
from floatvid.domain.enums.stream_container import StreamContainer
from floatvid.domain.errors import ServerStartFailed, TranscodeProcessError
from floatvid.domain.ports.subtitles import SubtitleConverterPort
from floatvid.services.api.app import create_app
from floatvid.services.subtitles.converter import SubtitleConverter
from floatvid.services.transcode.encoders import EncoderProbe
from floatvid.services.transcode.manager import TranscodeProcessManager, TranscodeSession

logger = get_logger(__name__)

GRACEFUL_SHUTDOWN_SEC = 2.0
CLOSE_TIMEOUT_SEC = 5.0


class StreamingServer:
    """
    Loopback HTTP endpoint the embedded player reads transcoded video from.

    Holds the current StreamSource, one TranscodeProcessManager and one
    SubtitleConverter, and runs uvicorn on the current event loop. The FastAPI
    app (`self.app`) finds this object through `app.state.streaming`.
    """

    def __init__(
        self,
        *,
        manager: Optional[TranscodeProcessManager] = None,
        converter: Optional[SubtitleConverterPort] = None,
        cfg: Optional[StreamingConfig] = None,
        encoders: Optional[EncoderProbe] = None,
    ) -> None:
        self.cfg = cfg or get_settings().streaming
        if manager is None:
            manager = TranscodeProcessManager(streaming=self.cfg, encoders=encoders or EncoderProbe())
        self.manager = manager
        self.encoders = manager.encoders
        self.converter = converter or SubtitleConverter()
        self.source: Optional[StreamSource] = None
        self.app = create_app(self)

        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None
        self._reaper: Optional[asyncio.Task] = None
        self._bound_port: Optional[int] = None
        self._work_dir: Optional[Path] = None
        self._hls_lock = asyncio.Lock()
        self._last_touch = time.monotonic()

    # ---- state ----------------------------------------------------------------
    @property
    def container(self) -> StreamContainer:
        return self.cfg.container

    @property
    def is_listening(self) -> bool:
        return self._serve_task is not None and not self._serve_task.done()

    @property
    def base_url(self) -> str:
        return f"http://{self.cfg.host}:{self._bound_port or self.cfg.port}"

    def video_url(self) -> str:
        if self.container is StreamContainer.HLS:
            return f"{self.base_url}/stream.m3u8"
        return f"{self.base_url}/video.mp4"

    def subtitle_url(self) -> Optional[str]:
        if self.source is None or self.source.subtitle_path is None:
            return None
        return f"{self.base_url}/subtitle"

    # ---- lifecycle ------------------------------------------------------------
    async def configure(self, source: StreamSource) -> None:
        """Point the server at a new file; a running transcode of another file is stopped."""
        if self.source is not None and Path(self.source.path) != Path(source.path):
            await self.manager.stop()
        self.source = source
        self.touch()
        logger.info(
            "Streaming source set: %s (video %s, audio %s, subtitle %s)",
            Path(source.path).name,
            "copy" if source.video_codec_supported else "transcode",
            "copy" if source.audio_codec_supported else "transcode",
            source.subtitle_path.name if source.subtitle_path else None,
        )

    async def start(self) -> None:
        if self.is_listening:
            return

        sock = self._bind()
        self._bound_port = sock.getsockname()[1]
        config = uvicorn.Config(
            self.app,
            host=self.cfg.host,
            port=self._bound_port,
            log_config=None,
            access_log=False,
            lifespan="off",
            timeout_graceful_shutdown=int(GRACEFUL_SHUTDOWN_SEC),
        )
        server = uvicorn.Server(config)
        self._server = server
        self._serve_task = asyncio.create_task(self._serve(server, sock), name="floatvid-uvicorn")

        try:
            await asyncio.wait_for(self._wait_started(server, self._serve_task), timeout=self.cfg.start_timeout_sec)
        except asyncio.TimeoutError as e:
            await self._abort_serve()
            raise ServerStartFailed(
                f"Streaming server did not start within {self.cfg.start_timeout_sec:g}s"
            ) from e
        except ServerStartFailed:
            await self._abort_serve()
            raise

        if self.container is StreamContainer.HLS:
            self._reaper = asyncio.create_task(self._reap_idle(), name="floatvid-hls-reaper")
        logger.info("Streaming server listening on %s", self.base_url)

    async def stop_session(self) -> None:
        """Stop transcoding and forget the source; the server keeps listening."""
        await self.manager.stop()
        self.source = None

    async def close(self) -> None:
        if self._reaper is not None:
            self._reaper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reaper
            self._reaper = None

        await self.manager.stop()

        if self._server is not None and self._serve_task is not None:
            self._server.should_exit = True
            try:
                await asyncio.wait_for(asyncio.shield(self._serve_task), timeout=CLOSE_TIMEOUT_SEC)
            except asyncio.TimeoutError:
                logger.warning("Streaming server slow to stop; forcing exit")
                self._server.force_exit = True
                await self._abort_serve()
            except ServerStartFailed as e:
                logger.debug("Streaming server had already failed: %s", e)
        self._server = None
        self._serve_task = None
        self._bound_port = None

        if self._work_dir is not None:
            shutil.rmtree(self._work_dir, ignore_errors=True)
            self._work_dir = None
        logger.info("Streaming server closed.")

    async def wait_closed(self) -> None:
        """Block until uvicorn exits (Ctrl-C in the CLI)."""
        if self._serve_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._serve_task

    # ---- request-side helpers (used by the routers) --------------------------
    def touch(self) -> None:
        self._last_touch = time.monotonic()

    async def open_progressive(self, start_sec: float) -> TranscodeSession:
        """Fresh fragmented-MP4 transcode at `start_sec`; replaces whatever is running."""
        source = self._require_source()
        session = TranscodeSession.from_source(source, start_sec=start_sec, container=StreamContainer.FMP4)
        return await self.manager.start(session)

    async def ensure_hls(self, start_sec: float) -> TranscodeSession:
        """
        Current HLS session if it covers (source, start_sec) and is still
        producing or finished cleanly; otherwise a new one in its own directory.
        """
        source = self._require_source()
        async with self._hls_lock:
            current = self.manager.session
            if (
                current is not None
                and current.container is StreamContainer.HLS
                and current.matches(source.path, start_sec)
                and (current.alive or current.exit_code == 0)
            ):
                return current
            session = TranscodeSession.from_source(
                source,
                start_sec=start_sec,
                container=StreamContainer.HLS,
                output_dir=self._session_dir(),
            )
            return await self.manager.start(session)

    async def wait_for_manifest(self, session: TranscodeSession) -> Optional[Path]:
        manifest = session.manifest_path
        if manifest is None:
            return None
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.cfg.manifest_wait_sec
        while True:
            if await aiofiles.os.path.exists(manifest):
                return manifest
            if session.process is not None and not session.alive:
                logger.error("[ffmpeg] pid %s exited (%s) before writing %s", session.pid, session.exit_code, manifest.name)
                return None
            if loop.time() >= deadline:
                logger.error("Timed out after %ss waiting for %s", self.cfg.manifest_wait_sec, manifest)
                return None
            await asyncio.sleep(self.cfg.manifest_poll_sec)

    def segment_path(self, name: str) -> Optional[Path]:
        session = self.manager.session
        if session is None or session.output_dir is None:
            return None
        try:
            path = safe_join(session.output_dir, name)
        except ValueError:
            logger.warning("Rejected segment name %r", name)
            return None
        return path if path.is_file() else None

    # ---- internals ------------------------------------------------------------
    def _require_source(self) -> StreamSource:
        if self.source is None:
            raise TranscodeProcessError("Video source info is not set.")
        return self.source

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.cfg.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.cfg.host, self.cfg.port))
        except OSError as e:
            sock.close()
            raise ServerStartFailed(
                f"Cannot bind {self.cfg.host}:{self.cfg.port}: {e}", detail=str(e)
            ) from e
        return sock

    @staticmethod
    async def _serve(server: uvicorn.Server, sock: socket.socket) -> None:
        try:
            await server.serve(sockets=[sock])
        except SystemExit as e:
            # uvicorn exits the process on startup errors
            raise ServerStartFailed(f"Streaming server failed to start (exit {e.code})") from e
        finally:
            sock.close()

    @staticmethod
    async def _wait_started(server: uvicorn.Server, task: asyncio.Task) -> None:
        while not server.started:
            if task.done():
                task.result()
                raise ServerStartFailed("Streaming server exited during startup")
            await asyncio.sleep(0.05)

    async def _abort_serve(self) -> None:
        task = self._serve_task
        if task is not None and not task.done():
            task.cancel()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError, ServerStartFailed):
                await task
        self._server = None
        self._serve_task = None
        self._bound_port = None

    def _session_dir(self) -> Path:
        if self._work_dir is None:
            base = self.cfg.effective_work_dir
            base.mkdir(parents=True, exist_ok=True)
            self._work_dir = Path(tempfile.mkdtemp(prefix="server-", dir=base))
        return self._work_dir / f"session-{uuid.uuid4().hex}"

    async def _reap_idle(self) -> None:
        timeout = self.cfg.hls_idle_timeout_sec
        interval = min(max(timeout / 4, 0.05), 5.0)
        while True:
            await asyncio.sleep(interval)
            session = self.manager.session
            if session is None or session.container is not StreamContainer.HLS:
                continue
            idle = time.monotonic() - self._last_touch
            if idle >= timeout:
                logger.info("HLS session idle for %.0fs; stopping transcode", idle)
                await self.manager.stop()
