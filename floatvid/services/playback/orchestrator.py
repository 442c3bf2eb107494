# floatvid/services/playback/orchestrator.py
from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from floatvid.common.logging import get_logger
from floatvid.domain.entities.playback import PlaybackDescriptor, PlaybackFailure, StreamSource
from floatvid.domain.enums.playback_mode import PlaybackMode
from floatvid.domain.errors import is_recoverable, recovery_hint, user_message
from floatvid.domain.policies.playback_decision import decide
from floatvid.domain.ports.probe import MediaProbePort
from floatvid.services.api.schemes import local_subtitle_url, local_video_url
from floatvid.services.probe.ffmpeg_probe_adapter import FFmpegProbeAdapter
from floatvid.services.streaming.server import StreamingServer
from floatvid.services.subtitles.sidecar import find_sidecar_subtitle

logger = get_logger(__name__)

PlayCallback = Callable[[PlaybackDescriptor], None]
ErrorCallback = Callable[[PlaybackFailure], None]


def describe_failure(exc: BaseException) -> PlaybackFailure:
    return PlaybackFailure(
        message=user_message(exc),
        hint=recovery_hint(exc),
        recoverable=is_recoverable(exc),
        error=exc,
    )


class PlaybackOrchestrator:
    """
    One playback request end to end: sidecar lookup, probe, decide, then
    either a direct local-video: descriptor or a streaming-server descriptor.

    The streaming server is created on first use, so a request that fails
    before the decision leaves no server or ffmpeg process behind.
    """

    def __init__(
        self,
        probe: Optional[MediaProbePort] = None,
        server: Optional[StreamingServer] = None,
        on_play: Optional[PlayCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self.probe = probe or FFmpegProbeAdapter()
        self._server = server
        self.on_play = on_play
        self.on_error = on_error

    @property
    def server(self) -> StreamingServer:
        if self._server is None:
            self._server = StreamingServer()
        return self._server

    async def play_file(self, path: Path | str) -> PlaybackDescriptor:
        path = Path(path)
        logger.info("Play request: %s", path)
        subtitle = await find_sidecar_subtitle(path)
        if subtitle is None:
            logger.info("No subtitle file found next to %s", path.name)

        try:
            report = await self.probe.probe(path)
            mode = decide(report)
            if mode is PlaybackMode.native:
                descriptor = await self._native(path, subtitle)
            else:
                source = StreamSource(
                    path=path,
                    video_codec_supported=report.video_codec_supported,
                    audio_codec_supported=report.audio_codec_supported,
                    duration_sec=report.duration_sec,
                    subtitle_path=subtitle,
                )
                descriptor = await self._stream(source)
        except Exception as e:
            failure = describe_failure(e)
            logger.error("Playback of %s failed: %s", path, failure.message)
            if self.on_error is not None:
                self.on_error(failure)
            raise

        logger.info("Playing %s (%s): %s", path.name, descriptor.mode, descriptor.video_source)
        if self.on_play is not None:
            self.on_play(descriptor)
        return descriptor

    async def stop(self) -> None:
        """Stop transcoding; the streaming server stays up for the next file."""
        if self._server is not None:
            await self._server.stop_session()

    async def shutdown(self) -> None:
        if self._server is not None:
            await self._server.close()

    # ---- internals ------------------------------------------------------------
    async def _native(self, path: Path, subtitle: Optional[Path]) -> PlaybackDescriptor:
        if self._server is not None:
            await self._server.stop_session()
        return PlaybackDescriptor(
            mode=PlaybackMode.native,
            video_source=local_video_url(path),
            subtitle_source=local_subtitle_url(subtitle) if subtitle else None,
        )

    async def _stream(self, source: StreamSource) -> PlaybackDescriptor:
        server = self.server
        await server.configure(source)
        await server.start()
        return PlaybackDescriptor(
            mode=PlaybackMode.stream,
            video_source=server.video_url(),
            subtitle_source=server.subtitle_url(),
            duration_sec=source.duration_sec,
        )
