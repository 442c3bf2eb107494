# tests/services/test_playback_orchestrator.py
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

import pytest

from floatvid.domain.entities.playback import PlaybackFailure, StreamSource
from floatvid.domain.entities.probe import MediaCapabilityReport
from floatvid.domain.enums.playback_mode import PlaybackMode
from floatvid.domain.errors import FileNotFound, ServerStartFailed
from floatvid.services.playback.orchestrator import PlaybackOrchestrator, describe_failure


class _FakeProbe:
    def __init__(self, report: Optional[MediaCapabilityReport] = None, error: Optional[Exception] = None):
        self.report = report
        self.error = error
        self.paths: List[Path] = []

    async def probe(self, path):
        self.paths.append(Path(path))
        if self.error is not None:
            raise self.error
        return self.report


class _FakeServer:
    """Records the calls the orchestrator makes on the streaming server."""

    def __init__(self, start_error: Optional[Exception] = None):
        self.start_error = start_error
        self.calls: List[str] = []
        self.source: Optional[StreamSource] = None

    async def configure(self, source):
        self.calls.append("configure")
        self.source = source

    async def start(self):
        self.calls.append("start")
        if self.start_error is not None:
            raise self.start_error

    async def stop_session(self):
        self.calls.append("stop_session")
        self.source = None

    async def close(self):
        self.calls.append("close")

    def video_url(self):
        return "http://127.0.0.1:8888/video.mp4"

    def subtitle_url(self):
        if self.source is None or self.source.subtitle_path is None:
            return None
        return "http://127.0.0.1:8888/subtitle"


def _report(video_ok: bool, audio_ok: bool, duration: float = 120.0) -> MediaCapabilityReport:
    return MediaCapabilityReport(
        duration_sec=duration,
        video_codec="h264" if video_ok else "hevc",
        audio_codec="aac" if audio_ok else "ac3",
        video_codec_supported=video_ok,
        audio_codec_supported=audio_ok,
    )


def _orchestrator(probe, server):
    played, failed = [], []
    orch = PlaybackOrchestrator(probe=probe, server=server, on_play=played.append, on_error=failed.append)
    return orch, played, failed


def test_native_playback_with_subtitle(tmp_path):
    video = tmp_path / "movie.mp4"
    video.write_bytes(b"")
    sub = tmp_path / "movie.srt"
    sub.write_text("x", encoding="utf-8")
    server = _FakeServer()
    orch, played, failed = _orchestrator(_FakeProbe(_report(True, True)), server)

    d = asyncio.run(orch.play_file(video))

    assert d.mode is PlaybackMode.native
    assert d.video_source == "local-video:" + quote(str(video))
    assert d.subtitle_source == "local-subtitle:" + quote(str(sub))
    assert d.duration_sec is None
    assert played == [d]
    assert failed == []
    assert server.calls == ["stop_session"]


def test_stream_playback(tmp_path):
    video = tmp_path / "movie.mkv"
    video.write_bytes(b"")
    server = _FakeServer()
    orch, played, _ = _orchestrator(_FakeProbe(_report(False, True, duration=120.0)), server)

    d = asyncio.run(orch.play_file(video))

    assert d.to_payload() == {
        "type": "stream",
        "videoSource": "http://127.0.0.1:8888/video.mp4",
        "duration": 120.0,
    }
    assert server.calls == ["configure", "start"]
    assert server.source.path == video
    assert server.source.video_codec_supported is False
    assert server.source.audio_codec_supported is True
    assert played == [d]


def test_stream_playback_with_subtitle(tmp_path):
    video = tmp_path / "movie.avi"
    video.write_bytes(b"")
    (tmp_path / "movie.smi").write_text("<SAMI>", encoding="utf-8")
    server = _FakeServer()
    orch, _, _ = _orchestrator(_FakeProbe(_report(True, False)), server)

    d = asyncio.run(orch.play_file(video))
    assert d.subtitle_source == "http://127.0.0.1:8888/subtitle"
    assert server.source.subtitle_path == tmp_path / "movie.smi"


def test_missing_subtitle_is_not_an_error(tmp_path):
    video = tmp_path / "movie.mp4"
    video.write_bytes(b"")
    orch, played, failed = _orchestrator(_FakeProbe(_report(True, True)), _FakeServer())

    d = asyncio.run(orch.play_file(video))
    assert d.subtitle_source is None
    assert "subtitleSource" not in d.to_payload()
    assert failed == []


def test_probe_failure_has_no_side_effects(tmp_path):
    server = _FakeServer()
    orch, played, failed = _orchestrator(_FakeProbe(error=FileNotFound(tmp_path / "gone.mp4")), server)

    with pytest.raises(FileNotFound):
        asyncio.run(orch.play_file(tmp_path / "gone.mp4"))

    assert server.calls == []
    assert played == []
    assert len(failed) == 1
    assert isinstance(failed[0], PlaybackFailure)
    assert failed[0].recoverable is False
    assert "could not be found" in failed[0].message


def test_server_start_failure_is_reported(tmp_path):
    video = tmp_path / "movie.mkv"
    video.write_bytes(b"")
    server = _FakeServer(start_error=ServerStartFailed("port 8888 busy"))
    orch, played, failed = _orchestrator(_FakeProbe(_report(False, False)), server)

    with pytest.raises(ServerStartFailed):
        asyncio.run(orch.play_file(video))
    assert played == []
    assert failed[0].recoverable is True
    assert failed[0].hint == "Please try again."


def test_stop_and_shutdown(tmp_path):
    server = _FakeServer()
    orch, _, _ = _orchestrator(_FakeProbe(_report(True, True)), server)
    asyncio.run(orch.stop())
    asyncio.run(orch.shutdown())
    assert server.calls == ["stop_session", "close"]


def test_describe_failure_for_unexpected_errors():
    f = describe_failure(RuntimeError("boom"))
    assert f.message == "An unexpected error occurred: boom"
    assert f.recoverable is True
