# floatvid/services/transcode/manager.py
from __future__ import annotations

import asyncio
import contextlib
import shlex
import shutil
import signal
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Deque, Optional

from floatvid.common.logging import get_logger
from floatvid.common.settings import FFmpegConfig, StreamingConfig, get_settings
from floatvid.domain.entities.playback import StreamSource
from floatvid.domain.enums.stream_container import StreamContainer
from floatvid.domain.enums.transcode_state import TranscodeState
from floatvid.domain.errors import ServerStartFailed
from floatvid.services.transcode.commands import (
    HLS_MANIFEST_NAME,
    build_transcode_cmd,
    pick_audio_codec,
    pick_video_codec,
)
from floatvid.services.transcode.encoders import EncoderProbe

logger = get_logger(__name__)

Spawner = Callable[..., Awaitable[Any]]

STDERR_TAIL_LINES = 20


@dataclass(eq=False)
class TranscodeSession:
    """
    One ffmpeg run for one (source, start offset). Owned by a single
    TranscodeProcessManager; `process` is set only once the child is spawned.
    """
    source_path: Path
    video_codec_supported: bool
    audio_codec_supported: bool
    start_sec: float = 0.0
    subtitle_path: Optional[Path] = None
    container: StreamContainer = StreamContainer.FMP4
    output_dir: Optional[Path] = None  # hls only

    process: Optional[Any] = field(default=None, repr=False)
    stopping: bool = False
    exit_code: Optional[int] = None
    watcher: Optional[asyncio.Task] = field(default=None, repr=False)

    @classmethod
    def from_source(
        cls,
        source: StreamSource,
        *,
        start_sec: float = 0.0,
        container: StreamContainer = StreamContainer.FMP4,
        output_dir: Optional[Path] = None,
    ) -> "TranscodeSession":
        return cls(
            source_path=Path(source.path),
            video_codec_supported=source.video_codec_supported,
            audio_codec_supported=source.audio_codec_supported,
            start_sec=float(start_sec),
            subtitle_path=source.subtitle_path,
            container=container,
            output_dir=output_dir,
        )

    @property
    def alive(self) -> bool:
        return self.process is not None and self.process.returncode is None

    @property
    def pid(self) -> Optional[int]:
        return getattr(self.process, "pid", None)

    @property
    def manifest_path(self) -> Optional[Path]:
        return self.output_dir / HLS_MANIFEST_NAME if self.output_dir else None

    def matches(self, source_path: Path | str, start_sec: float) -> bool:
        return Path(source_path) == self.source_path and abs(float(start_sec) - self.start_sec) < 1e-3


class TranscodeProcessManager:
    """
    Owns at most one live ffmpeg child.

    idle -> running: start(session). Any running session is stopped and its
                     exit awaited before the new child is spawned.
    running -> idle: stop(), release() on client disconnect, or the child
                     exiting on its own (observed by the session's watcher task,
                     which logs the exit).

    start/stop are serialized by a lock, so concurrent seeks queue up instead
    of overlapping.
    """

    def __init__(
        self,
        *,
        ff: Optional[FFmpegConfig] = None,
        streaming: Optional[StreamingConfig] = None,
        encoders: Optional[EncoderProbe] = None,
        spawner: Optional[Spawner] = None,
    ) -> None:
        cfg = get_settings()
        self.ff = ff or cfg.ffmpeg.model_copy(update={"bin": cfg.ffmpeg_bin})
        self.streaming = streaming or cfg.streaming
        self.encoders = encoders or EncoderProbe(ff=self.ff)
        self._spawn = spawner or asyncio.create_subprocess_exec
        self._session: Optional[TranscodeSession] = None
        self._lock = asyncio.Lock()

    # ---- state ----------------------------------------------------------------
    @property
    def session(self) -> Optional[TranscodeSession]:
        return self._session

    @property
    def state(self) -> TranscodeState:
        if self._session is not None and self._session.alive:
            return TranscodeState.running
        return TranscodeState.idle

    @property
    def is_running(self) -> bool:
        return self.state is TranscodeState.running

    # ---- transitions ----------------------------------------------------------
    async def start(self, session: TranscodeSession) -> TranscodeSession:
        async with self._lock:
            await self._stop_locked()

            hw = False
            if not session.video_codec_supported:
                hw = await self.encoders.hardware_available()
            vcodec = pick_video_codec(session.video_codec_supported, hw, self.ff)
            acodec = pick_audio_codec(session.audio_codec_supported, self.ff)

            if session.container is StreamContainer.HLS:
                if session.output_dir is None:
                    raise ValueError("HLS sessions need an output_dir")
                try:
                    session.output_dir.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise ServerStartFailed(
                        f"Could not create HLS output directory {session.output_dir}: {e}", detail=str(e)
                    ) from e

            cmd = build_transcode_cmd(
                source=session.source_path,
                start_sec=session.start_sec,
                video_codec=vcodec,
                audio_codec=acodec,
                container=session.container,
                ff=self.ff,
                streaming=self.streaming,
                output_dir=session.output_dir,
            )
            logger.debug("[ffmpeg] cmd: %s", " ".join(shlex.quote(p) for p in cmd))
            try:
                proc = await self._spawn(
                    *cmd,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=(
                        asyncio.subprocess.PIPE
                        if session.container is StreamContainer.FMP4
                        else asyncio.subprocess.DEVNULL
                    ),
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                self._remove_output(session)
                raise ServerStartFailed(f"Could not spawn ffmpeg ({self.ff.bin}): {e}", detail=str(e)) from e

            session.process = proc
            session.stopping = False
            self._session = session
            session.watcher = asyncio.create_task(self._watch(session), name=f"ffmpeg-watch-{proc.pid}")
            logger.info(
                "[ffmpeg] Spawned pid %s for %s at %.3fs (video=%s, audio=%s, %s)",
                proc.pid, session.source_path.name, session.start_sec, vcodec, acodec, session.container,
            )
            return session

    async def stop(self) -> None:
        async with self._lock:
            await self._stop_locked()

    def release(self, session: TranscodeSession) -> None:
        """
        Send SIGTERM to `session`'s child without awaiting it. Used from the
        client-disconnect path, where the response task may already be
        cancelled; the session's watcher reaps the process.
        """
        if session.stopping or not session.alive:
            return
        logger.info("[ffmpeg] Client disconnected, terminating pid %s", session.pid)
        session.stopping = True
        with contextlib.suppress(ProcessLookupError):
            session.process.terminate()

    # ---- internals ------------------------------------------------------------
    async def _stop_locked(self) -> None:
        session = self._session
        if session is None:
            return
        self._session = None
        await self._terminate(session)
        if session.watcher is not None:
            await session.watcher
        self._remove_output(session)

    async def _terminate(self, session: TranscodeSession) -> None:
        proc = session.process
        if proc is None or proc.returncode is not None:
            return
        logger.info("[ffmpeg] Killing pid %s", proc.pid)
        session.stopping = True
        with contextlib.suppress(ProcessLookupError):
            proc.terminate()
        try:
            await asyncio.wait_for(proc.wait(), timeout=self.ff.stop_grace_sec)
        except asyncio.TimeoutError:
            logger.warning("[ffmpeg] pid %s ignored SIGTERM for %ss; killing", proc.pid, self.ff.stop_grace_sec)
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()

    async def _watch(self, session: TranscodeSession) -> None:
        proc = session.process
        tail: Deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        if proc.stderr is not None:
            async for raw in proc.stderr:
                line = raw.decode("utf-8", "replace").rstrip()
                if line:
                    tail.append(line)
        rc = await proc.wait()
        session.exit_code = rc

        if session.stopping or rc == -signal.SIGTERM:
            logger.info("[ffmpeg] pid %s killed intentionally.", proc.pid)
        elif rc == 0:
            logger.info("[ffmpeg] pid %s finished processing.", proc.pid)
        else:
            logger.error("[ffmpeg] pid %s exited with code %s:\n%s", proc.pid, rc, "\n".join(tail))
        # The session stays current (state reads idle) so a finished HLS run
        # keeps serving its last segments; the next start/stop cleans it up.

    @staticmethod
    def _remove_output(session: TranscodeSession) -> None:
        if session.output_dir is not None and session.output_dir.exists():
            shutil.rmtree(session.output_dir, ignore_errors=True)
            logger.debug("Removed %s", session.output_dir)
