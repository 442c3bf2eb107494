# floatvid/services/probe/ffmpeg_probe_adapter.py
from __future__ import annotations

import asyncio
import contextlib
import shlex
from pathlib import Path
from typing import Optional

import aiofiles

from floatvid.common.logging import get_logger
from floatvid.common.probe.ffmpeg_info import build_probe_cmd, parse_ffmpeg_info
from floatvid.common.settings import get_settings
from floatvid.domain.entities.probe import MediaCapabilityReport
from floatvid.domain.errors import (
    InvalidDuration,
    ProbeFailed,
    UnsupportedFormat,
    classify_os_error,
)
from floatvid.domain.policies.playback_decision import codec_support
from floatvid.domain.ports.probe import MediaProbePort

logger = get_logger(__name__)


class FFmpegProbeAdapter(MediaProbePort):
    """
    Infrastructure adapter implementing MediaProbePort by scraping the banner
    `ffmpeg -i <file>` writes to stderr. One subprocess per call, no retries.
    """

    def __init__(self, ffmpeg_bin: Optional[str] = None, timeout_sec: Optional[float] = None):
        cfg = get_settings()
        self.ffmpeg_bin = ffmpeg_bin or cfg.ffmpeg_bin
        self.timeout_sec = float(timeout_sec or cfg.ffmpeg.probe_timeout_sec)
        self._video_allow = list(cfg.codecs.video_allow)
        self._audio_allow = list(cfg.codecs.audio_allow)

    # ---- Port API -------------------------------------------------------------
    async def probe(self, path: Path | str) -> MediaCapabilityReport:
        if not path:
            raise ProbeFailed("No path provided to probe().")
        path = Path(path)
        await self._check_readable(path)

        stderr = await self._run(path)
        return self.report_from_output(path, stderr)

    # ---- Parsing --------------------------------------------------------------
    def report_from_output(self, path: Path, text: str) -> MediaCapabilityReport:
        info = parse_ffmpeg_info(text)

        if info["duration_token"] is None:
            raise ProbeFailed(f"Could not read media info from {path}", path=path, detail=text[-2000:])
        if info["codec_video"] is None:
            raise UnsupportedFormat(path, audio_codec=info["codec_audio"], detail="no video stream")
        duration = info["duration_sec"]
        if duration is None or duration <= 0:
            raise InvalidDuration(path, duration or 0.0)

        video_ok, audio_ok = codec_support(
            info["codec_video"],
            info["codec_audio"],
            video_allow=self._video_allow,
            audio_allow=self._audio_allow,
        )
        report = MediaCapabilityReport(
            duration_sec=duration,
            video_codec=info["codec_video"],
            audio_codec=info["codec_audio"],
            video_codec_supported=video_ok,
            audio_codec_supported=audio_ok,
            container=info["container"],
        )
        logger.info(
            "Probed %s: video=%s (%s) audio=%s (%s) duration=%.3fs",
            path.name,
            report.video_codec, "ok" if video_ok else "unsupported",
            report.audio_codec, "ok" if audio_ok else "unsupported",
            report.duration_sec,
        )
        return report

    # ---- internals ------------------------------------------------------------
    @staticmethod
    async def _check_readable(path: Path) -> None:
        try:
            async with aiofiles.open(path, "rb"):
                pass
        except OSError as e:
            raise classify_os_error(e, path) from e

    async def _run(self, path: Path) -> str:
        cmd = build_probe_cmd(path, ffmpeg_bin=self.ffmpeg_bin)
        logger.debug("probe cmd: %s", " ".join(shlex.quote(p) for p in cmd))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProbeFailed(
                f"Failed to execute ffmpeg ({self.ffmpeg_bin}); install ffmpeg or set FFMPEG_BIN.",
                path=path,
                detail=str(e),
            ) from e

        try:
            _, err = await asyncio.wait_for(proc.communicate(), timeout=self.timeout_sec)
        except asyncio.TimeoutError as e:
            # wait_for cancelled communicate(); the child itself is still running
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise ProbeFailed(f"ffmpeg probe timed out after {self.timeout_sec:g}s", path=path) from e

        # Non-zero exit is the normal outcome of an info pass.
        logger.debug("probe rc=%s for %s", proc.returncode, path)
        return (err or b"").decode("utf-8", "replace")
